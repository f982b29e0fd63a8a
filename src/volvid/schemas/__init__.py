"""Pydantic configuration schemas for the volvid pipeline.

Exports
-------
resolve_config : function
    Single entrypoint for configuration resolution
InternalConfig : class
    Fully validated, authoritative runtime configuration
ParamConfig : class
    Expert defaults (complete)
UserConfig : class
    User-facing configuration (forgiving, minimal)
CLIConfig : class
    Command-line operational overrides
"""

from volvid.schemas.resolve import resolve_config
from volvid.schemas.internal import InternalConfig
from volvid.schemas.param import ParamConfig
from volvid.schemas.user import UserConfig
from volvid.schemas.cli import CLIConfig

__all__ = [
    'resolve_config',
    'InternalConfig',
    'ParamConfig',
    'UserConfig',
    'CLIConfig',
]
