"""Cached execution of external stages.

The filesystem is the cache: an artifact whose path exists is never
rebuilt. The executor checks, runs and verifies under a per-path lock so
two workers never produce the same keyed artifact at once. Other processes
writing the same names concurrently are not guarded against.
"""

import logging
import re
import threading
from pathlib import Path
from typing import Dict, Optional

from volvid.contracts import ExternalFailure, StageError
from volvid.frames.naming import Artifact
from volvid.stages.backends import Backend, SubprocessBackend
from volvid.stages.invocation import StageInvocation, StageOutput

__all__ = ['StageExecutor']

logger = logging.getLogger(__name__)

TOOLS = ("render", "toolkit", "encoder")

_PERCENT = re.compile(r"(\d{1,3}(?:\.\d+)?)\s*%")


class StageExecutor:
    """Runs StageInvocations through per-tool backends.

    Parameters
    ----------
    backends : dict, optional
        Backend per tool name (``render``, ``toolkit``, ``encoder``).
        Missing tools use a shared :class:`SubprocessBackend`.
    timeout : float, optional
        Seconds before a single external call is cancelled.
    stream_progress : bool, optional
        Forward diagnostic lines as they arrive and log percentages found
        in them at DEBUG level.
    cancel_event : threading.Event, optional
        Set by the caller to terminate the running call.

    Notes
    -----
    The executor never retries. A failed call raises
    :class:`ExternalFailure` (or :class:`Cancelled`) and the orchestrator
    decides what happens to the run.
    """

    def __init__(self, backends: Optional[Dict[str, Backend]] = None,
                 timeout: Optional[float] = None,
                 stream_progress: bool = False,
                 cancel_event: Optional[threading.Event] = None):
        default = SubprocessBackend()
        self.backends: Dict[str, Backend] = {tool: default for tool in TOOLS}
        self.backends.update(backends or {})
        self.timeout = timeout
        self.stream_progress = stream_progress
        self.cancel_event = cancel_event or threading.Event()

        self.invocations = 0
        self.skips = 0
        self._stats_lock = threading.Lock()
        self._path_locks: Dict[Path, threading.Lock] = {}
        self._path_locks_lock = threading.Lock()

    @classmethod
    def from_config(cls, config, backends=None, cancel_event=None) -> "StageExecutor":
        return cls(
            backends=backends,
            timeout=config.executor.timeout_sec,
            stream_progress=config.executor.stream_progress,
            cancel_event=cancel_event,
        )

    def cancel(self):
        """Ask the running and all following calls to stop."""
        self.cancel_event.set()

    def _lock_for(self, path: Path) -> threading.Lock:
        with self._path_locks_lock:
            return self._path_locks.setdefault(Path(path), threading.Lock())

    def run(self, artifact: Artifact, invocation: StageInvocation) -> Artifact:
        """Produce ``artifact`` unless it already exists.

        Returns
        -------
        Artifact
            The requested artifact, existing or freshly produced.

        Raises
        ------
        ExternalFailure
            Program failed, or exited cleanly without writing the artifact.
        Cancelled
            Cancelled or timed out.
        """
        with self._lock_for(artifact.path):
            if artifact.exists():
                with self._stats_lock:
                    self.skips += 1
                logger.info("Skipped %s: %s exists", invocation.operation, artifact.path.name)
                return artifact

            try:
                output = self.call(invocation)
                if not artifact.exists():
                    raise ExternalFailure(
                        invocation.operation, invocation.command(), output.diagnostics,
                        f"{invocation.operation} exited cleanly but did not write {artifact.path}"
                    )
            except StageError:
                self._discard(artifact, invocation)
                raise
            return artifact

    def _discard(self, artifact: Artifact, invocation: StageInvocation) -> None:
        """Remove whatever a failed stage left at its keyed names.

        A partial file under a keyed name would be taken for a finished
        artifact by the next run.
        """
        for path in {Path(artifact.path), *map(Path, invocation.outputs)}:
            try:
                path.unlink()
                logger.warning("Removed partial output %s", path.name)
            except FileNotFoundError:
                pass

    def call(self, invocation: StageInvocation) -> StageOutput:
        """Run ``invocation`` unconditionally and check its exit status."""
        backend = self.backends[invocation.tool]
        on_line = self._progress_reporter(invocation) if self.stream_progress else None

        logger.debug("Running: %s", invocation.command())
        output = backend.execute(
            invocation,
            cancel_event=self.cancel_event,
            timeout=self.timeout,
            on_line=on_line,
        )
        with self._stats_lock:
            self.invocations += 1

        if output.returncode != 0:
            raise ExternalFailure(
                invocation.operation, invocation.command(), output.diagnostics,
                f"{invocation.operation} exited with status {output.returncode}"
                + (f" (inputs: {', '.join(str(p) for p in invocation.inputs)})" if invocation.inputs else "")
            )
        return output

    def _progress_reporter(self, invocation: StageInvocation):
        last = [None]

        def report(line: str):
            match = _PERCENT.search(line)
            if match is None:
                logger.debug("%s: %s", invocation.operation, line)
                return
            percent = match.group(1)
            if percent != last[0]:
                last[0] = percent
                logger.debug("%s progress: %s%%", invocation.operation, percent)

        return report
