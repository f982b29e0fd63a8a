"""Batch driver over the query × measure product.

Runs the orchestrator once per pair in configured order, reports
``[index/total]`` progress, isolates failures between pairs, and records
every outcome in the run tracker.
"""

import itertools
import logging
from pathlib import Path
from typing import List, Optional, Tuple

import pandas as pd

from volvid.contracts import ContractViolation
from volvid.pipeline.context import RunResult
from volvid.pipeline.orchestrator import PipelineOrchestrator
from volvid.pipeline.run_tracker import RunTracker
from volvid.schemas.internal import InternalConfig
from volvid.stages.executor import StageExecutor

__all__ = ['RunDriver']

logger = logging.getLogger(__name__)


class RunDriver:
    """Drives one batch: every configured query with every configured measure.

    Outer loop is ``config.queries`` in order, inner loop
    ``config.measures`` in order. One pair failing never stops the batch;
    a caller-requested cancel (Ctrl+C) does.

    Parameters
    ----------
    config : InternalConfig
        Resolved runtime configuration.
    output_dirs : dict
        Directory map from ``setup_output_directories``.
    executor : StageExecutor, optional
        Shared by every run of the batch; created from config if omitted.
    tracker : RunTracker, optional
        Created under ``output_dirs["logs"]`` by :meth:`start` if omitted.

    Example usage::

        driver = RunDriver(config, output_dirs)
        results = driver.start()
        print(driver.summary())
        sys.exit(driver.exit_code)
    """

    def __init__(self, config: InternalConfig, output_dirs: dict,
                 executor: Optional[StageExecutor] = None,
                 tracker: Optional[RunTracker] = None):
        self.config = config
        self.output_dirs = {k: Path(v) for k, v in output_dirs.items()}
        self.executor = executor or StageExecutor.from_config(config)
        self.orchestrator = PipelineOrchestrator(config, self.output_dirs, executor=self.executor)
        self.tracker = tracker
        self.stem = self.orchestrator.stem
        self.results: List[RunResult] = []
        self.cancelled = False
        self._in_flight: Optional[Tuple[str, str]] = None

    def _setup_logging(self):
        """Configure root logging (console + file) and the run tracker."""
        log_level = getattr(logging, self.config.logging.level.upper(), logging.INFO)

        log_dir = self.output_dirs["logs"]
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / f"volvid_{self.stem}.log"

        formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        root = logging.getLogger()
        root.setLevel(log_level)
        for handler in root.handlers[:]:
            root.removeHandler(handler)

        fh = logging.FileHandler(log_path)
        fh.setLevel(log_level)
        fh.setFormatter(formatter)
        root.addHandler(fh)

        ch = logging.StreamHandler()
        ch.setLevel(log_level)
        ch.setFormatter(formatter)
        root.addHandler(ch)

        logger.info("Logging: level=%s, file=%s", logging.getLevelName(log_level), log_path)

        if self.tracker is None:
            self.tracker = RunTracker(log_dir / f"{self.stem}_runs.db")

    def pairs(self) -> List[Tuple[str, str]]:
        return list(itertools.product(self.config.queries, self.config.measures))

    def start(self) -> List[RunResult]:
        """Set up logging, run the batch, and log the final statistics."""
        self._setup_logging()

        logger.info("=" * 60)
        logger.info("Volume video batch: %s", self.config.input)
        logger.info("=" * 60)

        try:
            self.run()
        except KeyboardInterrupt:
            logger.info("\nShutdown signal received (Ctrl+C)")
            self.executor.cancel()
            self.cancelled = True
            self._abandon_in_flight()
        finally:
            if self.tracker:
                stats = self.tracker.get_statistics(self.stem)
                logger.info("Statistics: total=%d, completed=%d, cached=%d, failed=%d, cancelled=%d",
                            stats.get('total', 0), stats.get('completed', 0), stats.get('cached', 0),
                            stats.get('failed', 0), stats.get('cancelled', 0))
                for row in self.tracker.get_failed_runs(self.stem):
                    reason = (row["error_message"] or "").partition("\n")[0]
                    logger.warning("Not finished: %s/%s %s (%s)", row["query"], row["measure"], row["status"], reason)
                self.tracker.close()
            logger.info("=" * 60)

        return self.results

    def run(self) -> List[RunResult]:
        """Run every pair in order; returns one RunResult per pair run."""
        pairs = self.pairs()
        total = len(pairs)
        self.results = []

        if self.tracker:
            for query, measure in pairs:
                self.tracker.register_run(self.stem, query, measure)

        for index, (query, measure) in enumerate(pairs, start=1):
            if self.executor.cancel_event.is_set():
                self.cancelled = True
                logger.info("Batch cancelled; %d of %d runs not started", total - index + 1, total)
                break

            logger.info("[%d/%d] %s / %s", index, total, query, measure)
            if self.tracker:
                self.tracker.mark_started(self.stem, query, measure)

            self._in_flight = (query, measure)
            result = self._run_one(query, measure)

            if self.tracker:
                self.tracker.mark_finished(
                    self.stem, query, measure, result.status,
                    output_path=result.output, video_key=result.video_key,
                    frames=result.frames, error=result.error,
                )
            self.results.append(result)
            self._in_flight = None

        failed = sum(1 for r in self.results if not r.ok)
        logger.info("Batch done: %d runs, %d failed", len(self.results), failed)
        return self.results

    def _abandon_in_flight(self):
        """Record the pair interrupted mid-run as cancelled."""
        if self._in_flight is None:
            return
        query, measure = self._in_flight
        self._in_flight = None
        self.results.append(RunResult(query, measure, "cancelled", error="Interrupted"))
        if self.tracker:
            self.tracker.mark_finished(self.stem, query, measure, "cancelled", error="Interrupted")

    def _run_one(self, query: str, measure: str) -> RunResult:
        try:
            return self.orchestrator.run(query, measure)
        except ContractViolation as e:
            logger.critical("Pipeline contract violated in %s/%s: %s", query, measure, e)
            return RunResult(query, measure, "failed", error=f"Contract violation: {e}")
        except Exception as e:
            logger.exception("Unexpected error in %s/%s", query, measure)
            return RunResult(query, measure, "failed", error=f"{type(e).__name__}: {e}")

    @property
    def failed(self) -> bool:
        """True if any run of the batch did not produce a video."""
        return any(not r.ok for r in self.results)

    @property
    def exit_code(self) -> int:
        """0 only if every pair produced a video and the batch was not cancelled."""
        return 1 if self.failed or self.cancelled else 0

    def summary(self) -> pd.DataFrame:
        """One row per run, in batch order."""
        columns = ["query", "measure", "status", "frames", "invocations",
                   "skips", "video_key", "output", "error"]
        return pd.DataFrame([r.as_row() for r in self.results], columns=columns)
