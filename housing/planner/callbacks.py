"""
Planner Callbacks - progress monitoring for auto-assign runs.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime

from .run_log import PlannerRunLog

logger = logging.getLogger(__name__)


class PlannerProgressCallback:
    """Counts commits as they land; safe to call from commit worker threads."""

    def __init__(self, run_log: PlannerRunLog | None = None, report_every: int = 25) -> None:
        self.run_log = run_log or PlannerRunLog()
        self.report_every = report_every
        self._lock = threading.Lock()
        self.total = 0
        self.committed = 0
        self.rejected = 0
        self.start_time = datetime.now()

    def on_plan_ready(self, total_placements: int, unplaced: int) -> None:
        with self._lock:
            self.total = total_placements
        self.run_log.log_progress(f"Planned {total_placements} placements, {unplaced} participants without a bed")

    def on_commit(self, succeeded: bool) -> None:
        with self._lock:
            if succeeded:
                self.committed += 1
            else:
                self.rejected += 1
            done = self.committed + self.rejected
            total = self.total
            rejected = self.rejected

        if done % self.report_every == 0 or done == total:
            elapsed = (datetime.now() - self.start_time).total_seconds()
            logger.info(f"Auto-assign progress: {done}/{total} placements processed ({rejected} rejected)")
            self.run_log.log_progress(f"{done}/{total} placements processed after {elapsed:.1f}s")

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return {"total": self.total, "committed": self.committed, "rejected": self.rejected}
