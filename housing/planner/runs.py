"""
Planner run registry.

Keeps background auto-assign runs in memory so callers can poll their
status and progress, and cancel them. Cancellation stops further commits;
whatever a run already committed stays.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from ..errors import Conflict, NotFound
from ..models import AutoAssignRequest, AutoAssignResult
from .callbacks import PlannerProgressCallback
from .planner import AutoAssignPlanner
from .run_log import PlannerRunLog

logger = logging.getLogger(__name__)


class RunStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


FINISHED_STATUSES = frozenset({RunStatus.COMPLETED, RunStatus.CANCELLED, RunStatus.FAILED})


@dataclass
class PlannerRun:
    id: str
    request: AutoAssignRequest
    status: RunStatus = RunStatus.PENDING
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    started_at: datetime | None = None
    completed_at: datetime | None = None
    result: AutoAssignResult | None = None
    error_message: str | None = None
    log_path: str | None = None
    cancel_event: threading.Event = field(default_factory=threading.Event)
    callback: PlannerProgressCallback = field(default_factory=PlannerProgressCallback)

    @property
    def finished(self) -> bool:
        return self.status in FINISHED_STATUSES


class PlannerRunRegistry:
    """In-memory registry of planner runs, keyed by run id."""

    def __init__(
        self,
        planner: AutoAssignPlanner,
        debug_mode: bool = False,
        logs_dir: str | None = None,
        max_history: int = 100,
    ):
        """
        Args:
            planner: Planner executing the runs
            debug_mode: Log every placement decision at DEBUG
            logs_dir: Directory for per-run JSON logs; None disables them
            max_history: Finished runs kept before the oldest are dropped
        """
        self.planner = planner
        self.debug_mode = debug_mode
        self.logs_dir = logs_dir
        self.max_history = max_history
        self._runs: dict[str, PlannerRun] = {}
        self._lock = threading.Lock()

    def create(self, request: AutoAssignRequest) -> PlannerRun:
        run = PlannerRun(
            id=uuid.uuid4().hex,
            request=request,
            callback=PlannerProgressCallback(PlannerRunLog(debug_mode=self.debug_mode)),
        )
        with self._lock:
            self._runs[run.id] = run
            self._prune()
        logger.info(f"Auto-assign run {run.id} created")
        return run

    def execute(self, run_id: str) -> PlannerRun:
        """Run a pending run to completion on the calling thread."""
        run = self.get(run_id)
        with self._lock:
            if run.status != RunStatus.PENDING:
                return run
            run.status = RunStatus.RUNNING
            run.started_at = datetime.now(UTC)

        try:
            result = self.planner.run(run.request, cancel_event=run.cancel_event, callback=run.callback)
        except Exception as e:
            logger.error(f"Auto-assign run {run_id} failed: {e}", exc_info=True)
            with self._lock:
                run.status = RunStatus.FAILED
                run.error_message = str(e)
                run.completed_at = datetime.now(UTC)
            return run

        with self._lock:
            run.result = result
            run.status = RunStatus.CANCELLED if result.cancelled else RunStatus.COMPLETED
            run.completed_at = datetime.now(UTC)

        if self.logs_dir:
            run.log_path = run.callback.run_log.save_to_file(run.id, self.logs_dir)
        logger.info(f"Auto-assign run {run_id} {run.status.value}")
        return run

    def get(self, run_id: str) -> PlannerRun:
        with self._lock:
            run = self._runs.get(run_id)
        if run is None:
            raise NotFound("Auto-assign run", run_id)
        return run

    def list_runs(self) -> list[PlannerRun]:
        with self._lock:
            return sorted(self._runs.values(), key=lambda run: run.created_at, reverse=True)

    def cancel(self, run_id: str) -> PlannerRun:
        """Request cancellation; a run that has not started is cancelled at once."""
        run = self.get(run_id)
        with self._lock:
            if run.finished:
                raise Conflict(f"Auto-assign run {run_id} already {run.status.value}")
            run.cancel_event.set()
            if run.status == RunStatus.PENDING:
                run.status = RunStatus.CANCELLED
                run.completed_at = datetime.now(UTC)
                run.result = AutoAssignResult(cancelled=True)
        logger.info(f"Auto-assign run {run_id} cancellation requested")
        return run

    def _prune(self) -> None:
        finished = sorted((run for run in self._runs.values() if run.finished), key=lambda run: run.created_at)
        excess = len(self._runs) - self.max_history
        for run in finished[: max(excess, 0)]:
            del self._runs[run.id]
