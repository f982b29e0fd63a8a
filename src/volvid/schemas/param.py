"""ParamConfig: Expert defaults for the volvid pipeline.

This module defines the complete default configuration. ALL pipeline
parameters must have defaults here. No runtime code should define fallback
values - this is the single source of truth for defaults.

Runtime code NEVER reads from ParamConfig directly - it only receives InternalConfig.
"""

from typing import Literal, Optional
from pydantic import Field, field_validator
from volvid.schemas.base import VolvidBaseModel, split_names


Vec3 = tuple[float, float, float]


# =============================================================================
# Nested Configuration Models
# =============================================================================

class CameraConfig(VolvidBaseModel):
    """Frame planning: angular sweep or camera script."""
    angle_start: int = 0
    angle_end: int = Field(359, description="Inclusive last angle of the sweep")
    interval: int = Field(1, ge=1, description="Keep every Nth planned frame")
    script: Optional[str] = Field(None, description="JSON camera script; overrides the sweep")
    up: Vec3 = (0.0, 0.0, 1.0)
    orbit_radius: float = Field(10.0, gt=0, description="Sweep eye distance from look-at point")
    orbit_height: float = Field(0.0, description="Sweep eye offset along the up vector")


class RenderConfig(VolvidBaseModel):
    """Per-frame render defaults and engine settings."""
    program: str = "mrender"
    at: Vec3 = (0.0, 0.0, 0.0)
    near: float = -2.0
    far: float = 2.0
    image_distance: float = 0.0
    right_handed: bool = False
    at_relative: bool = True
    u_range: tuple[float, float] = (-1.0, 1.0)
    v_range: tuple[float, float] = (-1.0, 1.0)
    step: float = Field(0.01, gt=0)
    value_kernel: str = "tent"
    derivative_kernel: str = "cubicd:1,0"
    resolution: tuple[int, int] = (640, 480)
    threads: int = Field(1, ge=1)
    volume_ext: str = "nrrd"


class ToolkitConfig(VolvidBaseModel):
    """Image toolkit (``unu``) settings."""
    program: str = "unu"
    slab_axis: int = Field(2, ge=0, description="Axis frames are joined along and diced from")
    dice_digits: int = Field(3, ge=1, le=9)


class EqualizeConfig(VolvidBaseModel):
    """Slab histogram equalization."""
    enabled: bool = False
    bins: int = Field(3000, ge=2)
    smart: int = Field(1, ge=0)
    amount: float = Field(1.0, ge=0, le=1.0)


class ColormapConfig(VolvidBaseModel):
    """Colormap remap; skipped when path is None."""
    path: Optional[str] = None


class QuantizeConfig(VolvidBaseModel):
    """Quantization to 8-bit frames."""
    bits: Literal[8] = 8
    nan_fill: float = Field(0.0, description="Sentinel replacing non-finite samples")
    image_ext: Literal["png"] = "png"


class VideoConfig(VolvidBaseModel):
    """Video encoder settings."""
    program: str = "mencoder"
    fps: int = Field(25, ge=1)
    bitrate_factor: float = Field(60.0, gt=0, description="Tunable; bitrate = factor * fps * w * h / 256")
    codec: str = "mpeg4"
    extension: str = "avi"


class CacheConfig(VolvidBaseModel):
    """Artifact key settings."""
    digest: Literal["sha1", "md5", "sha256", "blake2b"] = "sha1"
    key_length: int = Field(10, ge=4, le=64)


class CleanupConfig(VolvidBaseModel):
    """Intermediate artifact retention."""
    keep_intermediates: bool = False
    keep_stages: list[str] = Field(default_factory=list, description="Stage tags never deleted")

    @field_validator("keep_stages", mode="before")
    @classmethod
    def split_stage_names(cls, v):
        return split_names(v)


class ExecutorConfig(VolvidBaseModel):
    """External process execution."""
    workers: int = Field(1, ge=1, le=64)
    timeout_sec: Optional[float] = Field(None, gt=0)
    stream_progress: bool = False


class LoggingConfig(VolvidBaseModel):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


# =============================================================================
# Main ParamConfig
# =============================================================================

class ParamConfig(VolvidBaseModel):
    """Complete expert configuration with all defaults.

    This config is NOT used directly by runtime code. It serves as the
    base layer in config resolution:

        internal_cfg = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    input: Optional[str] = None
    base_dir: str = "volvid_output"
    queries: list[str] = Field(default_factory=list)
    measures: list[str] = Field(default_factory=list)
    camera: CameraConfig = Field(default_factory=CameraConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    toolkit: ToolkitConfig = Field(default_factory=ToolkitConfig)
    equalize: EqualizeConfig = Field(default_factory=EqualizeConfig)
    colormap: ColormapConfig = Field(default_factory=ColormapConfig)
    quantize: QuantizeConfig = Field(default_factory=QuantizeConfig)
    video: VideoConfig = Field(default_factory=VideoConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    cleanup: CleanupConfig = Field(default_factory=CleanupConfig)
    executor: ExecutorConfig = Field(default_factory=ExecutorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("queries", "measures", mode="before")
    @classmethod
    def split_name_lists(cls, v):
        return split_names(v)
