"""Complete runtime initialization for the video pipeline.

This module handles ALL initialization responsibilities:
- Configuration resolution (CLI > User > Param)
- Output directory setup
- Cleanup handling (--rerun)
- Configuration persistence with run ID
"""

import importlib.util
import shutil
import json
import logging
from pathlib import Path
from typing import Dict, Optional
from datetime import datetime, timezone

from volvid.schemas.resolve import resolve_config
from volvid.schemas.param import ParamConfig
from volvid.schemas.user import UserConfig
from volvid.schemas.cli import CLIConfig
from volvid.schemas.internal import InternalConfig
from volvid.setup_directories import setup_output_directories

logger = logging.getLogger(__name__)


def load_user_config_dict(config_path: str) -> dict:
    """Load user config dict from a Python file exposing ``CONFIG``.

    Raises
    ------
    FileNotFoundError
        If config file does not exist.
    ValueError
        If no CONFIG dict found in file.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    spec = importlib.util.spec_from_file_location("config_module", path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Could not load config module from {path}")

    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    for name in dir(module):
        if name.startswith('CONFIG'):
            obj = getattr(module, name)
            if isinstance(obj, dict):
                return obj

    raise ValueError(f"No CONFIG dict found in {path}")


def generate_run_id() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def _handle_rerun_cleanup(base_dir: str, rerun: bool) -> None:
    """Delete the output directory when a clean rerun is requested."""
    if not rerun:
        return

    base_dir_path = Path(base_dir).expanduser()
    if base_dir_path.exists():
        logger.info("Cleaning output directory: %s", base_dir_path)
        shutil.rmtree(base_dir_path)


def _persist_runtime_config(config: InternalConfig, output_dirs: Dict[str, Path]) -> Path:
    """Save the resolved configuration next to the outputs."""
    config_file = Path(output_dirs["base"]) / f"runtime_config_{config.run_id}.json"

    config_dict = config.model_dump()
    config_dict["created_at"] = datetime.now(timezone.utc).isoformat()

    with open(config_file, 'w') as f:
        json.dump(config_dict, f, indent=2, default=str)

    logger.info("Runtime config saved: %s", config_file)
    return config_file


def init_runtime_config(config_path: Optional[str],
                        cli_args: Optional[dict] = None,
                        rerun: bool = False) -> InternalConfig:
    """Complete runtime initialization - single entry point for scripts.

    1. Configuration resolution (CLI > User > Param)
    2. Cleanup handling (rerun)
    3. Output directory setup
    4. Configuration persistence with run ID

    Parameters
    ----------
    config_path : str or None
        User config Python file. None runs from expert defaults + CLI only.
    cli_args : dict, optional
        CLIConfig-compatible overrides; None values are dropped.
    rerun : bool, optional
        Delete the output directory first.

    Returns
    -------
    InternalConfig
        Resolved config with ``run_id`` and ``output_dirs`` set.
    """
    user_cfg = UserConfig()
    if config_path:
        user_cfg = UserConfig.model_validate(load_user_config_dict(config_path))

    cli_dict = {k: v for k, v in (cli_args or {}).items() if v is not None}
    cli_cfg = CLIConfig.model_validate(cli_dict)

    internal_config_dict = resolve_config(ParamConfig(), user_cfg, cli_cfg).model_dump()

    _handle_rerun_cleanup(internal_config_dict["base_dir"], rerun)
    output_dirs = setup_output_directories(internal_config_dict["base_dir"])

    internal_config_dict["output_dirs"] = {k: str(v) for k, v in output_dirs.items()}
    internal_config_dict["run_id"] = generate_run_id()

    config = InternalConfig.model_validate(internal_config_dict)
    _persist_runtime_config(config, output_dirs)
    return config


__all__ = ['init_runtime_config', 'load_user_config_dict']
