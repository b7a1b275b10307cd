"""Auto-assign planner."""

from .callbacks import PlannerProgressCallback
from .planner import AutoAssignPlanner
from .run_log import PlannerRunLog
from .runs import PlannerRun, PlannerRunRegistry, RunStatus
from .strategies import STRATEGIES, Placement, PlanState, Unit

__all__ = [
    "STRATEGIES",
    "AutoAssignPlanner",
    "Placement",
    "PlanState",
    "PlannerProgressCallback",
    "PlannerRun",
    "PlannerRunLog",
    "PlannerRunRegistry",
    "RunStatus",
    "Unit",
]
