"""
Pydantic schemas for auto-assign endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from housing.models import AutoAssignRequest, AutoAssignResult
from housing.planner import PlannerRun


class RunProgress(BaseModel):
    total: int = 0
    committed: int = 0
    rejected: int = 0


class AutoAssignRunResponse(BaseModel):
    """Status of a background auto-assign run."""

    run_id: str
    status: str
    request: AutoAssignRequest
    progress: RunProgress
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    result: AutoAssignResult | None = None
    error_message: str | None = None

    @classmethod
    def from_run(cls, run: PlannerRun) -> AutoAssignRunResponse:
        return cls(
            run_id=run.id,
            status=run.status.value,
            request=run.request,
            progress=RunProgress(**run.callback.snapshot()),
            created_at=run.created_at,
            started_at=run.started_at,
            completed_at=run.completed_at,
            result=run.result,
            error_message=run.error_message,
        )
