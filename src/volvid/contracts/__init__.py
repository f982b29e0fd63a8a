"""Pipeline contracts and the error taxonomy.

Contracts fail immediately and loudly when a stage does not produce its
promised artifacts. The error classes here are the only ones the
orchestrator turns into a failed run.
"""

from volvid.contracts.failure import (
    VolvidError,
    ConfigurationError,
    StageError,
    ExternalFailure,
    Cancelled,
    ContractViolation,
)
from volvid.contracts.base import require
from volvid.contracts.artifacts import assert_sequence, assert_artifacts_exist, assert_diced

__all__ = [
    "VolvidError",
    "ConfigurationError",
    "StageError",
    "ExternalFailure",
    "Cancelled",
    "ContractViolation",
    "require",
    "assert_sequence",
    "assert_artifacts_exist",
    "assert_diced",
]
