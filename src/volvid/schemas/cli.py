"""CLIConfig: Command-line operational overrides.

Minimal configuration for operational parameters that commonly change
between runs: input volume, output directory, query/measure selection,
post-processing toggles, verbosity.
"""

from typing import Literal, Optional
from pydantic import field_validator
from volvid.schemas.base import VolvidBaseModel, split_names


class CLIConfig(VolvidBaseModel):
    """Command-line configuration overrides.

    Highest priority in config resolution.

    Usage
    -----
        cli_cfg = CLIConfig(queries="val", heq=True, base_dir="/scratch/videos")
        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    input: Optional[str] = None
    base_dir: Optional[str] = None
    queries: Optional[list[str]] = None
    measures: Optional[list[str]] = None
    colormap: Optional[str] = None
    heq: Optional[bool] = None
    keep: Optional[bool] = None
    workers: Optional[int] = None
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = None

    @field_validator("queries", "measures", mode="before")
    @classmethod
    def split_name_lists(cls, v):
        return split_names(v)

    def to_internal_overrides(self) -> dict:
        """Convert CLI config to internal config structure."""
        overrides = {}

        for name in ("input", "base_dir", "queries", "measures"):
            value = getattr(self, name)
            if value is not None:
                overrides[name] = value

        if self.colormap is not None:
            overrides["colormap"] = {"path": self.colormap}
        if self.heq is not None:
            overrides["equalize"] = {"enabled": self.heq}
        if self.keep is not None:
            overrides["cleanup"] = {"keep_intermediates": self.keep}
        if self.workers is not None:
            overrides["executor"] = {"workers": self.workers}
        if self.log_level is not None:
            overrides["logging"] = {"level": self.log_level}

        return overrides
