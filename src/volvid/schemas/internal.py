"""InternalConfig: Authoritative runtime configuration.

This is the ONLY config schema that runtime code sees. It is fully validated,
normalized, and contains NO optional fields that processing code depends on.

All .get() calls, fallback defaults, and validation logic are FORBIDDEN in
runtime code - everything is explicit here.
"""

from typing import Literal, Optional
from pydantic import Field, ConfigDict
from volvid.schemas.base import VolvidBaseModel


Vec3 = tuple[float, float, float]


# =============================================================================
# Nested Configuration Models (Runtime)
# =============================================================================

class InternalCameraConfig(VolvidBaseModel):
    """Runtime frame planning configuration."""
    angle_start: int
    angle_end: int
    interval: int
    script: Optional[str]  # None selects sweep mode
    up: Vec3
    orbit_radius: float
    orbit_height: float


class InternalRenderConfig(VolvidBaseModel):
    """Runtime render defaults."""
    program: str
    at: Vec3
    near: float
    far: float
    image_distance: float
    right_handed: bool
    at_relative: bool
    u_range: tuple[float, float]
    v_range: tuple[float, float]
    step: float
    value_kernel: str
    derivative_kernel: str
    resolution: tuple[int, int]
    threads: int
    volume_ext: str


class InternalToolkitConfig(VolvidBaseModel):
    """Runtime image toolkit configuration."""
    program: str
    slab_axis: int
    dice_digits: int


class InternalEqualizeConfig(VolvidBaseModel):
    """Runtime equalization configuration."""
    enabled: bool
    bins: int
    smart: int
    amount: float


class InternalColormapConfig(VolvidBaseModel):
    """Runtime colormap configuration."""
    path: Optional[str]


class InternalQuantizeConfig(VolvidBaseModel):
    """Runtime quantization configuration."""
    bits: Literal[8]
    nan_fill: float
    image_ext: str


class InternalVideoConfig(VolvidBaseModel):
    """Runtime encoder configuration."""
    program: str
    fps: int
    bitrate_factor: float
    codec: str
    extension: str


class InternalCacheConfig(VolvidBaseModel):
    """Runtime artifact key configuration."""
    digest: Literal["sha1", "md5", "sha256", "blake2b"]
    key_length: int


class InternalCleanupConfig(VolvidBaseModel):
    """Runtime retention configuration."""
    keep_intermediates: bool
    keep_stages: list[str]


class InternalExecutorConfig(VolvidBaseModel):
    """Runtime execution configuration."""
    workers: int = Field(ge=1)
    timeout_sec: Optional[float]
    stream_progress: bool


class InternalLoggingConfig(VolvidBaseModel):
    """Runtime logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


# =============================================================================
# Main InternalConfig
# =============================================================================

class InternalConfig(VolvidBaseModel):
    """Authoritative runtime configuration.

    Usage
    -----
    Runtime modules receive InternalConfig and access fields directly:

        def __init__(self, config: InternalConfig):
            self.fps = config.video.fps  # NOT .get()

    Rules
    -----
    - NO .get() calls
    - NO fallback defaults
    - NO validation

    All of that happens during config resolution, not in runtime code.
    """

    input: str
    base_dir: str
    queries: list[str] = Field(min_length=1)
    measures: list[str] = Field(min_length=1)
    camera: InternalCameraConfig
    render: InternalRenderConfig
    toolkit: InternalToolkitConfig
    equalize: InternalEqualizeConfig
    colormap: InternalColormapConfig
    quantize: InternalQuantizeConfig
    video: InternalVideoConfig
    cache: InternalCacheConfig
    cleanup: InternalCleanupConfig
    executor: InternalExecutorConfig
    logging: InternalLoggingConfig
    run_id: Optional[str] = None
    output_dirs: Optional[dict[str, str]] = None

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        frozen=True,  # Immutable after construction
    )
