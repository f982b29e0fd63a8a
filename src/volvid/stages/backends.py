"""Execution backends for external programs.

The orchestrator never spawns processes itself. Each external tool is
bound to a Backend; the production one is SubprocessBackend, tests swap
in a recorder.
"""

import logging
import subprocess
import threading
import time
from typing import Callable, Optional, Protocol

from volvid.contracts import Cancelled, ExternalFailure
from volvid.stages.invocation import StageInvocation, StageOutput

__all__ = ['Backend', 'SubprocessBackend']

logger = logging.getLogger(__name__)


class Backend(Protocol):
    """Runs one StageInvocation to completion."""

    def execute(
        self,
        invocation: StageInvocation,
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
        on_line: Optional[Callable[[str], None]] = None,
    ) -> StageOutput:
        ...


class SubprocessBackend:
    """Runs invocations as child processes.

    Stderr is read line by line on a helper thread so diagnostics can be
    streamed to ``on_line`` while the program runs. The main thread polls
    the child and terminates it when ``cancel_event`` is set or ``timeout``
    seconds have passed, raising :class:`Cancelled`.

    Parameters
    ----------
    poll_interval : float, optional
        Seconds between cancellation checks (default 0.1).
    kill_grace : float, optional
        Seconds to wait after SIGTERM before SIGKILL (default 5).
    """

    def __init__(self, poll_interval: float = 0.1, kill_grace: float = 5.0):
        self.poll_interval = poll_interval
        self.kill_grace = kill_grace

    def execute(self, invocation, cancel_event=None, timeout=None, on_line=None) -> StageOutput:
        argv = invocation.argv()
        try:
            proc = subprocess.Popen(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except OSError as e:
            raise ExternalFailure(
                invocation.operation, invocation.command(), str(e),
                f"{invocation.operation}: cannot start {argv[0]}: {e}"
            ) from e

        stdout_parts = []
        stderr_lines = []

        def read_stdout():
            stdout_parts.append(proc.stdout.read())

        def read_stderr():
            for line in proc.stderr:
                stderr_lines.append(line)
                if on_line is not None:
                    on_line(line.rstrip("\n"))

        readers = [
            threading.Thread(target=read_stdout, daemon=True),
            threading.Thread(target=read_stderr, daemon=True),
        ]
        for reader in readers:
            reader.start()

        deadline = time.monotonic() + timeout if timeout else None
        while True:
            try:
                proc.wait(timeout=self.poll_interval)
                break
            except subprocess.TimeoutExpired:
                pass
            if cancel_event is not None and cancel_event.is_set():
                self._terminate(proc, readers)
                raise Cancelled(
                    invocation.operation, invocation.command(), "".join(stderr_lines),
                    f"{invocation.operation} cancelled"
                )
            if deadline is not None and time.monotonic() > deadline:
                self._terminate(proc, readers)
                raise Cancelled(
                    invocation.operation, invocation.command(), "".join(stderr_lines),
                    f"{invocation.operation} timed out after {timeout:g}s"
                )

        for reader in readers:
            reader.join()
        return StageOutput(
            returncode=proc.returncode,
            stdout="".join(stdout_parts),
            diagnostics="".join(stderr_lines),
            lines=[line.rstrip("\n") for line in stderr_lines],
        )

    def _terminate(self, proc, readers):
        proc.terminate()
        try:
            proc.wait(timeout=self.kill_grace)
        except subprocess.TimeoutExpired:
            logger.warning("Process %d ignored SIGTERM, killing", proc.pid)
            proc.kill()
            proc.wait()
        for reader in readers:
            reader.join(timeout=1)
