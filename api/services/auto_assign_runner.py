"""
Auto-assign runner - executes planner runs as FastAPI background tasks.
"""

from __future__ import annotations

import asyncio
import logging

from housing.planner import PlannerRunRegistry, RunStatus

logger = logging.getLogger(__name__)


async def run_auto_assign_task(registry: PlannerRunRegistry, run_id: str) -> None:
    """Execute a pending run off the event loop and log how it ended."""
    logger.info(f"Starting auto-assign run {run_id}")
    run = await asyncio.to_thread(registry.execute, run_id)

    if run.status == RunStatus.FAILED:
        logger.error(f"Auto-assign run {run_id} failed: {run.error_message}")
    elif run.result is not None:
        logger.info(
            f"Auto-assign run {run_id} {run.status.value}: "
            f"{run.result.assigned} assigned, {run.result.skipped} skipped"
        )
