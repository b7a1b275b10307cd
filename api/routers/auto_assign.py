"""
Auto-Assign Router - batch planner runs.

POST /api/auto-assign runs the planner and returns when it is done. The
/runs endpoints start a run in the background and let the client poll it
or cancel it.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status

from housing.models import AutoAssignRequest, AutoAssignResult

from ..dependencies import HousingServices, get_services
from ..schemas import AutoAssignRunResponse
from ..services.auto_assign_runner import run_auto_assign_task

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auto-assign"])


@router.post("/auto-assign")
async def auto_assign(request: AutoAssignRequest, services: HousingServices = Depends(get_services)) -> AutoAssignResult:
    """Run the planner to completion; partial success is reported, not raised."""
    return await asyncio.to_thread(services.planner.run, request)


@router.post("/auto-assign/runs", status_code=status.HTTP_202_ACCEPTED)
async def start_auto_assign_run(
    request: AutoAssignRequest,
    background_tasks: BackgroundTasks,
    services: HousingServices = Depends(get_services),
) -> AutoAssignRunResponse:
    run = services.runs.create(request)
    background_tasks.add_task(run_auto_assign_task, services.runs, run.id)
    return AutoAssignRunResponse.from_run(run)


@router.get("/auto-assign/runs")
async def list_auto_assign_runs(services: HousingServices = Depends(get_services)) -> list[AutoAssignRunResponse]:
    return [AutoAssignRunResponse.from_run(run) for run in services.runs.list_runs()]


@router.get("/auto-assign/runs/{run_id}")
async def get_auto_assign_run(run_id: str, services: HousingServices = Depends(get_services)) -> AutoAssignRunResponse:
    return AutoAssignRunResponse.from_run(services.runs.get(run_id))


@router.post("/auto-assign/runs/{run_id}/cancel")
async def cancel_auto_assign_run(
    run_id: str, services: HousingServices = Depends(get_services)
) -> AutoAssignRunResponse:
    """Stop further commits; assignments already made are kept."""
    return AutoAssignRunResponse.from_run(services.runs.cancel(run_id))
