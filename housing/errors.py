"""Housing engine error taxonomy.

Every rejected assignment attempt maps to exactly one of these classes.
The manual API hands them to the operator as-is; the planner turns them
into a skip plus a recorded reason.
"""

from __future__ import annotations


class HousingError(Exception):
    """Base exception for all housing engine errors."""

    code = "housing_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFound(HousingError):
    """Raised when a building, room, assignment or participant does not exist."""

    code = "not_found"

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found")


class RoomFull(HousingError):
    """Raised when a room has no free bed at commit time."""

    code = "room_full"

    def __init__(self, room_label: str, capacity: int, occupancy: int, requested: int = 1):
        self.capacity = capacity
        self.occupancy = occupancy
        self.requested = requested
        super().__init__(
            f"Room {room_label} is full ({occupancy}/{capacity} beds taken, {requested} requested)"
        )


class RoomUnavailable(HousingError):
    """Raised when a room is flagged unavailable or is not a housing room."""

    code = "room_unavailable"


class GenderMismatch(HousingError):
    """Raised when a participant's gender differs from a single-gender room."""

    code = "gender_mismatch"


class HousingTypeMismatch(HousingError):
    """Raised when a room's housing type does not admit the participant's cohort."""

    code = "housing_type_mismatch"


class Conflict(HousingError):
    """Raised when a concurrent writer won the race or a lock wait timed out."""

    code = "conflict"


class InventoryError(HousingError):
    """Base class for building/room maintenance errors."""

    code = "invalid_inventory"


class DuplicateRoomNumber(InventoryError):
    """Raised when room numbers clash with existing rooms of the same building."""

    code = "duplicate_room_number"

    def __init__(self, building_id: str, room_numbers: list[str]):
        self.building_id = building_id
        self.room_numbers = room_numbers
        super().__init__(f"Room numbers already exist in building {building_id}: {', '.join(room_numbers)}")


class CapacityBelowOccupancy(InventoryError):
    """Raised when a room edit would leave more occupants than beds."""

    code = "capacity_below_occupancy"


# Errors the planner downgrades to a skip
ASSIGNMENT_ERRORS: tuple[type[HousingError], ...] = (
    RoomFull,
    RoomUnavailable,
    GenderMismatch,
    HousingTypeMismatch,
    NotFound,
    Conflict,
)
