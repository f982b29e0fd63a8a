"""UserConfig: Forgiving, minimal user-facing configuration.

This schema accepts user inputs with aliases for the common knobs
(e.g., QUERIES → queries, HEQ → equalize.enabled).

UserConfig is intentionally minimal - users only specify what they want
to override from the expert defaults.
"""

from typing import Optional, Any
from pydantic import Field, field_validator
from volvid.schemas.base import VolvidBaseModel, split_names


class UserConfig(VolvidBaseModel):
    """User-facing configuration schema.

    Usage
    -----
        user_cfg = UserConfig(
            input="/data/engine.nrrd",
            queries="val gmag",
            measures="max mean",
            angles=(0, 359),
            interval=5,
            heq=True,
        )

        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    # Top-level run settings
    input: Optional[str] = Field(None, alias="INPUT")
    base_dir: Optional[str] = Field(None, alias="BASE_DIR")
    queries: Optional[list[str]] = Field(None, alias="QUERIES")
    measures: Optional[list[str]] = Field(None, alias="MEASURES")

    # Camera settings (flat aliases)
    angles: Optional[tuple[int, int]] = Field(None, alias="ANGLES")
    interval: Optional[int] = Field(None, alias="INTERVAL")
    camera_script: Optional[str] = Field(None, alias="CAMERA_SCRIPT")
    up: Optional[tuple[float, float, float]] = Field(None, alias="UP")

    # Render settings (flat aliases)
    resolution: Optional[tuple[int, int]] = Field(None, alias="RESOLUTION")
    step: Optional[float] = Field(None, alias="STEP")
    threads: Optional[int] = Field(None, alias="THREADS")

    # Post-processing (flat aliases)
    heq: Optional[bool] = Field(None, alias="HEQ")
    colormap: Optional[str] = Field(None, alias="COLORMAP")
    keep_intermediates: Optional[bool] = Field(None, alias="KEEP_INTERMEDIATES")
    keep_stages: Optional[list[str]] = Field(None, alias="KEEP_STAGES")
    workers: Optional[int] = Field(None, alias="WORKERS")

    # Nested overrides (advanced users)
    camera: Optional[dict[str, Any]] = None
    render: Optional[dict[str, Any]] = None
    toolkit: Optional[dict[str, Any]] = None
    equalize: Optional[dict[str, Any]] = None
    quantize: Optional[dict[str, Any]] = None
    video: Optional[dict[str, Any]] = None
    cache: Optional[dict[str, Any]] = None
    executor: Optional[dict[str, Any]] = None

    model_config = VolvidBaseModel.model_config.copy()
    # Allow forgiving input dictionaries (ignore unknown legacy keys)
    model_config.update({"populate_by_name": True, "extra": "ignore"})

    @field_validator("queries", "measures", "keep_stages", mode="before")
    @classmethod
    def split_name_lists(cls, v):
        """Accept "val,gmag" or "val gmag" as well as lists."""
        return split_names(v)

    @field_validator("step", mode="before")
    @classmethod
    def coerce_step(cls, v):
        """Accept int, float or numeric string for step."""
        if v is not None:
            return float(v)
        return v

    def to_internal_overrides(self) -> dict:
        """Convert flat UserConfig to nested InternalConfig structure.

        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}

        for name in ("input", "base_dir", "queries", "measures"):
            value = getattr(self, name)
            if value is not None:
                overrides[name] = value

        # Camera section
        camera = {}
        if self.angles is not None:
            camera["angle_start"], camera["angle_end"] = self.angles
        if self.interval is not None:
            camera["interval"] = self.interval
        if self.camera_script is not None:
            camera["script"] = self.camera_script
        if self.up is not None:
            camera["up"] = self.up
        if self.camera is not None:
            camera.update(self.camera)
        if camera:
            overrides["camera"] = camera

        # Render section
        render = {}
        if self.resolution is not None:
            render["resolution"] = self.resolution
        if self.step is not None:
            render["step"] = self.step
        if self.threads is not None:
            render["threads"] = self.threads
        if self.render is not None:
            render.update(self.render)
        if render:
            overrides["render"] = render

        equalize = {}
        if self.heq is not None:
            equalize["enabled"] = self.heq
        if self.equalize is not None:
            equalize.update(self.equalize)
        if equalize:
            overrides["equalize"] = equalize

        if self.colormap is not None:
            overrides["colormap"] = {"path": self.colormap}

        cleanup = {}
        if self.keep_intermediates is not None:
            cleanup["keep_intermediates"] = self.keep_intermediates
        if self.keep_stages is not None:
            cleanup["keep_stages"] = self.keep_stages
        if cleanup:
            overrides["cleanup"] = cleanup

        executor = {}
        if self.workers is not None:
            executor["workers"] = self.workers
        if self.executor is not None:
            executor.update(self.executor)
        if executor:
            overrides["executor"] = executor

        # Remaining nested sections pass through untouched
        for name in ("toolkit", "quantize", "video", "cache"):
            section = getattr(self, name)
            if section is not None:
                overrides[name] = dict(section)

        return overrides
