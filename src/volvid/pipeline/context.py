"""Run-scoped state for one (query, measure) run.

Everything a run mutates lives on its RunContext; nothing is kept in
module or process globals.
"""

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import numpy as np

from volvid.frames.naming import Artifact, ArtifactNamer
from volvid.frames.planner import ParameterSequence
from volvid.stages.tools import MinMaxReport

__all__ = ['RunStats', 'RunContext', 'RunResult']


class RunStats:
    """Global min/max and non-finite flag over a run's current artifacts.

    The first finite observation seeds each bound; later observations only
    widen the range. Folding is lock-protected and commutative, so scan
    order (or worker interleaving) does not change the result.
    """

    def __init__(self):
        self.lo: Optional[float] = None
        self.hi: Optional[float] = None
        self.has_nan = False
        self.observations = 0
        self._lock = threading.Lock()

    def fold(self, report: MinMaxReport) -> None:
        with self._lock:
            self.observations += 1
            if report.has_nonfinite:
                self.has_nan = True
            if np.isfinite(report.lo):
                self.lo = report.lo if self.lo is None else min(self.lo, report.lo)
            if np.isfinite(report.hi):
                self.hi = report.hi if self.hi is None else max(self.hi, report.hi)

    @property
    def has_range(self) -> bool:
        return self.lo is not None and self.hi is not None

    def range(self) -> Tuple[float, float]:
        return self.lo, self.hi

    def __repr__(self):
        return f"RunStats(lo={self.lo}, hi={self.hi}, has_nan={self.has_nan}, n={self.observations})"


@dataclass
class RunContext:
    """Everything one run plans and accumulates, passed into every state."""
    query: str
    measure: str
    frames: ParameterSequence
    namer: ArtifactNamer
    sequence_key: str
    heq_token: Union[str, bool]
    colormap_path: Optional[Path]
    colormap_content: Optional[bytes]
    video: Artifact
    stats: RunStats = field(default_factory=RunStats)
    stages: Dict[str, List[Artifact]] = field(default_factory=dict)
    current: List[Artifact] = field(default_factory=list)
    intermediates: List[Artifact] = field(default_factory=list)

    def track(self, *artifacts: Artifact) -> None:
        """Remember artifacts for cleanup."""
        for artifact in artifacts:
            if artifact not in self.intermediates:
                self.intermediates.append(artifact)


@dataclass
class RunResult:
    """Outcome of one (query, measure) run."""
    query: str
    measure: str
    status: str  # completed | cached | failed | cancelled
    output: Optional[Path] = None
    error: Optional[str] = None
    frames: int = 0
    invocations: int = 0
    skips: int = 0
    video_key: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status in ("completed", "cached")

    def as_row(self) -> dict:
        return {
            "query": self.query,
            "measure": self.measure,
            "status": self.status,
            "frames": self.frames,
            "invocations": self.invocations,
            "skips": self.skips,
            "video_key": self.video_key,
            "output": str(self.output) if self.output else None,
            "error": self.error,
        }
