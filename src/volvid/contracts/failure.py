"""Centralized failure taxonomy for the video pipeline.

Every error a run can end with is one of these types. Stages raise them;
the orchestrator is the single place that catches them and decides whether
the current (query, measure) run is over.
"""


class VolvidError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(VolvidError, ValueError):
    """Raised when a run cannot be planned from its configuration.

    Examples: an empty parameter sequence, an unreadable camera script,
    an unreadable colormap, frames with mismatched output resolutions.
    """


class StageError(VolvidError):
    """Raised when an external stage does not produce its artifact.

    Parameters
    ----------
    stage : str
        Stage kind, e.g. ``"render"`` or ``"quantize"``.
    command : str
        The command line that was run (shell-quoted for display).
    diagnostics : str
        Captured diagnostic (stderr) text from the external program.
    """

    def __init__(self, stage: str, command: str, diagnostics: str = "", message: str = ""):
        self.stage = stage
        self.command = command
        self.diagnostics = diagnostics
        super().__init__(message or f"{stage} failed: {command}")

    def summary(self) -> str:
        tail = self.diagnostics.strip().splitlines()[-5:]
        lines = [str(self), f"  command: {self.command}"]
        if tail:
            lines.append("  stderr:")
            lines.extend(f"    {line}" for line in tail)
        return "\n".join(lines)


class ExternalFailure(StageError):
    """External program exited non-zero, could not start, or left no output."""


class Cancelled(StageError):
    """External program was terminated on request or after its timeout."""


class ContractViolation(RuntimeError):
    """Raised when a pipeline contract is violated.

    This indicates a stage did not produce the invariants it promised
    (wrong number of diced slices, no finite values to quantize), not bad
    user input.
    """
    pass
