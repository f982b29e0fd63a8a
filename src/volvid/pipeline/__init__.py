"""Pipeline modules.

- context: RunStats, RunContext, RunResult
- orchestrator: PipelineOrchestrator (stages for one query/measure pair)
- driver: RunDriver (query × measure batch)
- run_tracker: SQLite-based run tracking
"""

from volvid.pipeline.context import RunStats, RunContext, RunResult
from volvid.pipeline.orchestrator import PipelineOrchestrator
from volvid.pipeline.driver import RunDriver
from volvid.pipeline.run_tracker import RunTracker

__all__ = [
    "RunStats",
    "RunContext",
    "RunResult",
    "PipelineOrchestrator",
    "RunDriver",
    "RunTracker",
]
