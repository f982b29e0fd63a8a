"""SQLite-based run state tracker.

Records every (stem, query, measure) run of a batch with its status, key,
output and error, so a batch can be inspected after the fact and reruns
show which pairs previously failed.
"""

import sqlite3
import logging
import threading
from pathlib import Path
from datetime import datetime, timezone
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

VALID_STATUSES = ('pending', 'running', 'completed', 'cached', 'failed', 'cancelled')


class RunTracker:
    """Tracks run state across batches.

    **Database Schema:**

    SQLite table `video_runs`:

    - run_id: ``{stem}-{query}-{measure}``
    - stem, query, measure
    - status: pending, running, completed, cached, failed, cancelled
    - video_key, output_path, frames, error_message
    - started_at, finished_at, updated_at (ISO format)

    **Thread Safety:**

    All methods are thread-safe via internal locking.

    **Typical Usage:**

        tracker = RunTracker(db_path)
        tracker.register_run("engine", "val", "max")
        tracker.mark_started("engine", "val", "max")
        ...
        tracker.mark_finished("engine", "val", "max", "completed", output_path=video)
        stats = tracker.get_statistics()
        tracker.close()
    """

    def __init__(self, db_path: Path | str):
        """Initialize tracker.

        Parameters
        ----------
        db_path : Path or str
            Path to SQLite database file. Created if doesn't exist.
            Typically: output_dirs/logs/{stem}_runs.db
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = None
        self._lock = threading.Lock()

        self._init_database()
        logger.info("Run tracker initialized: %s", self.db_path)

    @staticmethod
    def run_id(stem: str, query: str, measure: str) -> str:
        return f"{stem}-{query}-{measure}"

    def _get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _init_database(self):
        """Create database schema if it doesn't exist."""
        conn = self._get_connection()

        with self._lock:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS video_runs (
                    run_id TEXT PRIMARY KEY,
                    stem TEXT NOT NULL,
                    query TEXT NOT NULL,
                    measure TEXT NOT NULL,

                    status TEXT DEFAULT 'pending',
                    video_key TEXT,
                    output_path TEXT,
                    frames INTEGER,
                    error_message TEXT,

                    started_at TEXT,
                    finished_at TEXT,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_status ON video_runs(status)")
            conn.commit()

    def register_run(self, stem: str, query: str, measure: str) -> bool:
        """Register a pair for tracking.

        Returns
        -------
        bool
            True if newly registered, False if already in database. An
            existing row is reset to pending so the new batch owns it.
        """
        run_id = self.run_id(stem, query, measure)
        conn = self._get_connection()
        now = datetime.now(timezone.utc).isoformat()

        with self._lock:
            cursor = conn.execute("SELECT run_id FROM video_runs WHERE run_id = ?", (run_id,))
            if cursor.fetchone():
                conn.execute(
                    "UPDATE video_runs SET status = 'pending', updated_at = ? WHERE run_id = ?",
                    (now, run_id),
                )
                conn.commit()
                return False

            conn.execute("""
                INSERT INTO video_runs (run_id, stem, query, measure, status, updated_at)
                VALUES (?, ?, ?, ?, 'pending', ?)
            """, (run_id, stem, query, measure, now))
            conn.commit()
            logger.debug("Registered run: %s", run_id)
            return True

    def mark_started(self, stem: str, query: str, measure: str):
        now = datetime.now(timezone.utc).isoformat()
        conn = self._get_connection()
        with self._lock:
            conn.execute("""
                UPDATE video_runs
                SET status = 'running', started_at = ?, finished_at = NULL,
                    error_message = NULL, updated_at = ?
                WHERE run_id = ?
            """, (now, now, self.run_id(stem, query, measure)))
            conn.commit()

    def mark_finished(self, stem: str, query: str, measure: str, status: str,
                      output_path: Optional[Path] = None,
                      video_key: Optional[str] = None,
                      frames: Optional[int] = None,
                      error: Optional[str] = None):
        """Record a run's final state.

        Raises
        ------
        ValueError
            If status is not one of the terminal statuses.
        """
        if status not in VALID_STATUSES[2:]:
            raise ValueError(f"Invalid status: {status}. Must be one of {VALID_STATUSES[2:]}")

        now = datetime.now(timezone.utc).isoformat()
        conn = self._get_connection()
        with self._lock:
            conn.execute("""
                UPDATE video_runs
                SET status = ?, output_path = ?, video_key = ?, frames = ?,
                    error_message = ?, finished_at = ?, updated_at = ?
                WHERE run_id = ?
            """, (
                status,
                str(output_path) if output_path else None,
                video_key,
                frames,
                error,
                now,
                now,
                self.run_id(stem, query, measure),
            ))
            conn.commit()
            logger.debug("Marked %s: %s", status, self.run_id(stem, query, measure))

    def get_run_status(self, stem: str, query: str, measure: str) -> Optional[Dict]:
        """Full row for a run, or None if never registered."""
        conn = self._get_connection()
        with self._lock:
            cursor = conn.execute(
                "SELECT * FROM video_runs WHERE run_id = ?",
                (self.run_id(stem, query, measure),),
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def get_failed_runs(self, stem: Optional[str] = None) -> List[Dict]:
        """Runs whose last attempt failed or was cancelled."""
        query = "SELECT * FROM video_runs WHERE status IN ('failed', 'cancelled')"
        params = []
        if stem:
            query += " AND stem = ?"
            params.append(stem)
        query += " ORDER BY run_id"

        conn = self._get_connection()
        with self._lock:
            return [dict(row) for row in conn.execute(query, params).fetchall()]

    def get_statistics(self, stem: Optional[str] = None) -> Dict:
        """Summary counts per status."""
        conn = self._get_connection()
        where_clause, params = ("WHERE stem = ?", (stem,)) if stem else ("", ())

        with self._lock:
            cursor = conn.execute(f"""
                SELECT
                    COUNT(*) as total,
                    SUM(CASE WHEN status = 'completed' THEN 1 ELSE 0 END) as completed,
                    SUM(CASE WHEN status = 'cached' THEN 1 ELSE 0 END) as cached,
                    SUM(CASE WHEN status = 'failed' THEN 1 ELSE 0 END) as failed,
                    SUM(CASE WHEN status = 'cancelled' THEN 1 ELSE 0 END) as cancelled,
                    SUM(CASE WHEN status = 'pending' THEN 1 ELSE 0 END) as pending
                FROM video_runs
                {where_clause}
            """, params)
            row = cursor.fetchone()
            return {k: (v or 0) for k, v in dict(row).items()} if row else {}

    def close(self):
        """Close database connection. Safe to call multiple times."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
