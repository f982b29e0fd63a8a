"""Per-frame render parameters.

A FrameParameters is one frame's complete render configuration. Field
aliases follow the render engine's flag names (``fr``, ``dn``, ``k00``...)
so camera scripts can be written either way.
"""

from typing import Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator


Vec3 = tuple[float, float, float]


def _split_vector(v):
    """Accept ``"1 2 3"``, ``"1,2,3"`` or a sequence."""
    if isinstance(v, str):
        return tuple(float(x) for x in v.replace(",", " ").split())
    return v


class FrameParameters(BaseModel):
    """Immutable render configuration for one frame.

    Either ``angle`` (sweep orbit around ``at``) or ``eye`` (explicit pose)
    must be set; an explicit eye wins when both are present.
    """

    angle: Optional[float] = None
    eye: Optional[Vec3] = Field(None, alias="fr")
    at: Vec3
    up: Vec3
    near: float = Field(alias="dn")
    far: float = Field(alias="df")
    image_distance: float = Field(alias="di")
    right_handed: bool = Field(alias="rh")
    at_relative: bool = Field(alias="ar")
    u_range: tuple[float, float] = Field(alias="ur")
    v_range: tuple[float, float] = Field(alias="vr")
    step: float = Field(gt=0)
    value_kernel: str = Field(alias="k00")
    derivative_kernel: str = Field(alias="k11")
    resolution: tuple[int, int] = Field(alias="is")
    orbit_radius: float = Field(gt=0)
    orbit_height: float

    model_config = ConfigDict(
        extra='forbid',
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    @field_validator("eye", "at", "up", "u_range", "v_range", "resolution", mode="before")
    @classmethod
    def parse_vector(cls, v):
        return _split_vector(v)

    def has_pose(self) -> bool:
        return self.eye is not None or self.angle is not None

    def eye_position(self) -> Vec3:
        """Explicit eye, or the orbit position for ``angle`` around ``at``."""
        if self.eye is not None:
            return self.eye
        return orbit_eye(self.angle, self.at, self.up, self.orbit_radius, self.orbit_height)

    def describe(self) -> str:
        if self.eye is not None:
            return "eye=({:g},{:g},{:g})".format(*self.eye)
        return f"angle={self.angle:g}"


def orbit_eye(angle: float, at: Vec3, up: Vec3, radius: float, height: float) -> Vec3:
    """Eye position at ``angle`` degrees on a circle around ``at``.

    The circle lies in the plane perpendicular to ``up``, ``height`` units
    along ``up``. With ``up = (0, 0, 1)`` angle 0 is on the +x axis and
    angle 90 on the +y axis.
    """
    u = np.asarray(up, dtype=float)
    norm = np.linalg.norm(u)
    if norm == 0:
        raise ValueError("up vector must be non-zero")
    u = u / norm

    ref = np.array([1.0, 0.0, 0.0])
    if abs(np.dot(ref, u)) > 0.9:
        ref = np.array([0.0, 1.0, 0.0])
    e1 = ref - np.dot(ref, u) * u
    e1 /= np.linalg.norm(e1)
    e2 = np.cross(u, e1)

    theta = np.deg2rad(angle)
    eye = np.asarray(at, dtype=float) + radius * (np.cos(theta) * e1 + np.sin(theta) * e2) + height * u
    # Round away float noise so sin(180) and friends print cleanly
    eye = np.round(eye, 9) + 0.0
    return tuple(float(x) for x in eye)
