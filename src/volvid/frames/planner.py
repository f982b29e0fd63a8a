"""Ordered per-frame parameter planning.

Builds the ParameterSequence for one (query, measure) run, either from an
inclusive integer angle sweep or from a cascading camera script, then keeps
every Nth frame.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from volvid.contracts import ConfigurationError, assert_sequence
from volvid.frames.camera_script import load_camera_script
from volvid.frames.params import FrameParameters
from volvid.schemas.internal import InternalConfig

__all__ = ['ParameterPlanner', 'ParameterSequence', 'sample_every', 'cascade']

logger = logging.getLogger(__name__)

ParameterSequence = Tuple[FrameParameters, ...]


def sample_every(items: Sequence, interval: int) -> list:
    """Keep index 0, interval, 2*interval, ... and drop ``None`` entries."""
    if interval < 1:
        raise ConfigurationError(f"interval must be >= 1, got {interval}")
    return [item for item in items[::interval] if item is not None]


def cascade(entries: Sequence[Optional[dict]], defaults: Dict[str, Any]) -> List[Optional[FrameParameters]]:
    """Resolve script records in order.

    Each record inherits every field from the record before it, and fields
    no record has named yet come from ``defaults``. ``None`` records resolve
    to ``None`` and leave the inheritance chain untouched.
    """
    resolved = []
    inherited: Dict[str, Any] = {}
    for i, entry in enumerate(entries):
        if entry is None:
            resolved.append(None)
            continue
        inherited = {**inherited, **_canonical_names(entry)}
        try:
            resolved.append(FrameParameters.model_validate({**defaults, **inherited}))
        except ValidationError as e:
            raise ConfigurationError(f"Camera script record {i} is invalid: {e}") from e
    return resolved


def _canonical_names(entry: dict) -> dict:
    """Map engine flag aliases (``fr``, ``k00``...) to field names."""
    aliases = {
        field.alias: name
        for name, field in FrameParameters.model_fields.items()
        if field.alias
    }
    return {aliases.get(key, key): value for key, value in entry.items()}


class ParameterPlanner:
    """Plans the ordered frames of a run.

    Parameters
    ----------
    config : InternalConfig
        Uses ``config.camera`` for the sweep/script choice, interval and up
        vector and ``config.render`` for the fixed per-frame defaults.

    Examples
    --------
    Sweep 0..9 keeping every third angle::

        planner = ParameterPlanner(config)   # angle_start=0, angle_end=9, interval=3
        [f.angle for f in planner.plan()]    # [0.0, 3.0, 6.0, 9.0]
    """

    def __init__(self, config: InternalConfig):
        self.camera = config.camera
        self.render = config.render

    def defaults(self) -> Dict[str, Any]:
        """Fixed per-run defaults every frame starts from."""
        r = self.render
        return {
            "at": r.at,
            "up": self.camera.up,
            "near": r.near,
            "far": r.far,
            "image_distance": r.image_distance,
            "right_handed": r.right_handed,
            "at_relative": r.at_relative,
            "u_range": r.u_range,
            "v_range": r.v_range,
            "step": r.step,
            "value_kernel": r.value_kernel,
            "derivative_kernel": r.derivative_kernel,
            "resolution": r.resolution,
            "orbit_radius": self.camera.orbit_radius,
            "orbit_height": self.camera.orbit_height,
        }

    def sweep_angles(self) -> List[int]:
        """Inclusive integer angles in configured order (descending if end < start)."""
        start, end = self.camera.angle_start, self.camera.angle_end
        direction = 1 if end >= start else -1
        return list(range(start, end + direction, direction))

    def plan(self) -> ParameterSequence:
        """Build the sampled ParameterSequence.

        Raises
        ------
        ConfigurationError
            If the script is unreadable or invalid, the interval is below 1,
            a frame has neither angle nor eye, frames disagree on resolution,
            or nothing is left after sampling.
        """
        defaults = self.defaults()
        if self.camera.script:
            entries = load_camera_script(self.camera.script)
            frames = cascade(entries, defaults)
            mode = f"script {self.camera.script}"
        else:
            frames = [
                FrameParameters.model_validate({**defaults, "angle": a})
                for a in self.sweep_angles()
            ]
            mode = f"sweep {self.camera.angle_start}..{self.camera.angle_end}"

        sampled = sample_every(frames, self.camera.interval)
        if not sampled:
            raise ConfigurationError(
                f"No frames to render from {mode} with interval {self.camera.interval}"
            )

        for i, frame in enumerate(sampled):
            if not frame.has_pose():
                raise ConfigurationError(f"Frame {i} has neither an angle nor an eye position")
        resolutions = {frame.resolution for frame in sampled}
        if len(resolutions) > 1:
            raise ConfigurationError(f"Frames must share one resolution, got {sorted(resolutions)}")

        sequence = tuple(sampled)
        if not self.camera.script:
            assert_sequence(sequence)
        logger.info("Planned %d frames from %s (interval %d)", len(sequence), mode, self.camera.interval)
        return sequence
