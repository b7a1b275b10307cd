"""Housing allocation engine: inventory, assignment ledger, manual and automatic assignment."""

from .errors import (
    CapacityBelowOccupancy,
    Conflict,
    DuplicateRoomNumber,
    GenderMismatch,
    HousingError,
    HousingTypeMismatch,
    InventoryError,
    NotFound,
    RoomFull,
    RoomUnavailable,
)
from .manual import ManualAssignmentService
from .planner import AutoAssignPlanner, PlannerRunRegistry
from .store import AssignmentLedger, Database, InventoryStore

__all__ = [
    "AssignmentLedger",
    "AutoAssignPlanner",
    "CapacityBelowOccupancy",
    "Conflict",
    "Database",
    "DuplicateRoomNumber",
    "GenderMismatch",
    "HousingError",
    "HousingTypeMismatch",
    "InventoryError",
    "InventoryStore",
    "ManualAssignmentService",
    "NotFound",
    "PlannerRunRegistry",
    "RoomFull",
    "RoomUnavailable",
]
