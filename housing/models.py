"""
Domain models for the housing engine.

Buildings and rooms mirror the inventory tables; participants are a closed
set of tagged variants (Individual | GroupBucket) so eligibility rules can
match on them exhaustively.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator


class Gender(str, Enum):
    """Participant gender."""

    MALE = "male"
    FEMALE = "female"


class RoomGender(str, Enum):
    """Gender a building or room is reserved for."""

    MALE = "male"
    FEMALE = "female"
    MIXED = "mixed"


class HousingType(str, Enum):
    YOUTH_UNDER_18 = "youth_under_18"
    CHAPERONE_ADULT = "chaperone_adult"
    CLERGY = "clergy"
    GENERAL = "general"


class RoomType(str, Enum):
    SINGLE = "single"
    DOUBLE = "double"
    TRIPLE = "triple"
    QUAD = "quad"
    CUSTOM = "custom"


# Bed count implied by a room type when no explicit capacity is given
ROOM_TYPE_BEDS: dict[RoomType, int] = {
    RoomType.SINGLE: 1,
    RoomType.DOUBLE: 2,
    RoomType.TRIPLE: 3,
    RoomType.QUAD: 4,
}


class RoomPurpose(str, Enum):
    HOUSING = "housing"
    SMALL_GROUP = "small_group"  # Meeting rooms, never receive beds
    BOTH = "both"


class Cohort(str, Enum):
    """Eligibility class of a participant for housing-type rules."""

    YOUTH = "youth"  # Under 18
    ADULT = "adult"  # Chaperones and other adults
    CLERGY = "clergy"


class AssignmentKind(str, Enum):
    INDIVIDUAL = "individual"
    GROUP = "group"


class Strategy(str, Enum):
    FILL_ROOMS = "fill_rooms"
    BALANCE_ROOMS = "balance_rooms"
    PARISH_TOGETHER = "parish_together"


class GenderFilter(str, Enum):
    ALL = "all"
    MALE = "male"
    FEMALE = "female"


class TypeFilter(str, Enum):
    ALL = "all"
    YOUTH = "youth"
    CHAPERONE = "chaperone"
    CLERGY = "clergy"


def default_capacity(room_type: RoomType, capacity: int | None) -> int:
    """Resolve a room's bed count from its type when capacity is omitted."""
    if capacity is not None:
        return capacity
    if room_type == RoomType.CUSTOM:
        raise ValueError("capacity is required for custom rooms")
    return ROOM_TYPE_BEDS[room_type]


# =============================================================================
# Inventory
# =============================================================================


class Building(BaseModel):
    """A building as stored in the inventory."""

    id: str
    name: str
    gender: RoomGender
    housing_type: HousingType
    floor_count: int = Field(default=1, ge=1)
    display_order: int = 0
    notes: str | None = None


class BuildingCreate(BaseModel):
    name: str = Field(min_length=1)
    gender: RoomGender
    housing_type: HousingType
    floor_count: int = Field(default=1, ge=1)
    display_order: int | None = None  # None appends after the last building
    notes: str | None = None


class BuildingUpdate(BaseModel):
    """Partial building update; only fields explicitly set are written."""

    name: str | None = Field(default=None, min_length=1)
    gender: RoomGender | None = None
    housing_type: HousingType | None = None
    floor_count: int | None = Field(default=None, ge=1)
    display_order: int | None = None
    notes: str | None = None


class Room(BaseModel):
    """A room with its live occupancy and the building attributes it inherits."""

    id: str
    building_id: str
    building_name: str
    building_gender: RoomGender
    building_housing_type: HousingType
    building_display_order: int = 0
    room_number: str
    floor: int = 1
    capacity: int = Field(ge=1)
    room_type: RoomType = RoomType.DOUBLE
    purpose: RoomPurpose = RoomPurpose.HOUSING
    gender: RoomGender | None = None  # Override; None inherits the building's
    housing_type: HousingType | None = None  # Override; None inherits the building's
    is_available: bool = True
    is_ada_accessible: bool = False
    ada_features: str | None = None
    notes: str | None = None
    current_occupancy: int = Field(default=0, ge=0)

    @property
    def effective_gender(self) -> RoomGender:
        return self.gender or self.building_gender

    @property
    def effective_housing_type(self) -> HousingType:
        return self.housing_type or self.building_housing_type

    @property
    def available_beds(self) -> int:
        return max(self.capacity - self.current_occupancy, 0)

    @property
    def is_full(self) -> bool:
        return self.current_occupancy >= self.capacity

    @property
    def accepts_beds(self) -> bool:
        """Whether the room takes part in bed allocation at all."""
        return self.purpose != RoomPurpose.SMALL_GROUP

    @property
    def label(self) -> str:
        """Human readable name, e.g. 'St. Joseph Hall 101'."""
        return f"{self.building_name} {self.room_number}"


class RoomCreate(BaseModel):
    building_id: str
    room_number: str = Field(min_length=1)
    floor: int = 1
    room_type: RoomType = RoomType.DOUBLE
    capacity: int | None = Field(default=None, ge=1)
    purpose: RoomPurpose = RoomPurpose.HOUSING
    gender: RoomGender | None = None
    housing_type: HousingType | None = None
    is_available: bool = True
    is_ada_accessible: bool = False
    ada_features: str | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def fill_capacity(self) -> RoomCreate:
        self.capacity = default_capacity(self.room_type, self.capacity)
        return self


class RoomUpdate(BaseModel):
    """Partial room update; passing gender/housing_type as null clears the override."""

    room_number: str | None = Field(default=None, min_length=1)
    floor: int | None = None
    room_type: RoomType | None = None
    capacity: int | None = Field(default=None, ge=1)
    purpose: RoomPurpose | None = None
    gender: RoomGender | None = None
    housing_type: HousingType | None = None
    is_available: bool | None = None
    is_ada_accessible: bool | None = None
    ada_features: str | None = None
    notes: str | None = None


class BulkRoomCreate(BaseModel):
    """Create rooms `{prefix}{n}{suffix}` for every n in [start_number, end_number]."""

    start_number: int = Field(ge=0)
    end_number: int = Field(ge=0)
    prefix: str = ""
    suffix: str = ""
    floor: int = 1
    room_type: RoomType = RoomType.DOUBLE
    capacity: int | None = Field(default=None, ge=1)
    purpose: RoomPurpose = RoomPurpose.HOUSING

    @field_validator("end_number")
    @classmethod
    def validate_range(cls, v: int, info: ValidationInfo) -> int:
        start = info.data.get("start_number")
        if start is not None and v < start:
            raise ValueError("end_number must be greater than or equal to start_number")
        return v

    @property
    def room_numbers(self) -> list[str]:
        return [f"{self.prefix}{n}{self.suffix}" for n in range(self.start_number, self.end_number + 1)]

    @property
    def resolved_capacity(self) -> int:
        return default_capacity(self.room_type, self.capacity)


class InventoryImportRow(BaseModel):
    """One already-parsed row of the buildings/rooms template."""

    building_name: str = Field(min_length=1)
    gender: RoomGender
    housing_type: HousingType
    floor_count: int = Field(default=1, ge=1)
    room_number: str = Field(min_length=1)
    floor: int = 1
    room_type: RoomType = RoomType.DOUBLE
    capacity: int | None = Field(default=None, ge=1)
    is_ada_accessible: bool = False
    ada_features: str | None = None
    notes: str | None = None


class InventoryImportResult(BaseModel):
    buildings_created: int = 0
    rooms_created: int = 0


class DeletionSummary(BaseModel):
    """What a cascading delete removed."""

    buildings_removed: int = 0
    rooms_removed: int = 0
    assignments_removed: int = 0


# =============================================================================
# Participants
# =============================================================================


class Individual(BaseModel):
    """One registrant needing one bed."""

    kind: Literal["individual"] = "individual"
    id: str
    first_name: str
    last_name: str
    gender: Gender
    is_minor: bool
    is_clergy: bool = False
    group_id: str | None = None
    parish: str | None = None
    roommate_preference: str | None = None  # Free text, advisory only

    @model_validator(mode="after")
    def validate_clergy(self) -> Individual:
        if self.is_clergy and self.is_minor:
            raise ValueError("clergy participants cannot be minors")
        return self

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def cohort(self) -> Cohort:
        if self.is_clergy:
            return Cohort.CLERGY
        return Cohort.YOUTH if self.is_minor else Cohort.ADULT

    @property
    def beds_needed(self) -> int:
        return 1


class GroupBucket(BaseModel):
    """Same-gender, same-cohort members of one group registration awaiting beds."""

    kind: Literal["group"] = "group"
    group_id: str
    group_name: str
    parish: str | None = None
    gender: Gender
    cohort: Cohort = Cohort.YOUTH
    size: int = Field(ge=1)

    @property
    def key(self) -> tuple[str, Gender, Cohort]:
        return (self.group_id, self.gender, self.cohort)

    @property
    def name(self) -> str:
        return f"{self.group_name} ({self.gender.value} {self.cohort.value})"

    @property
    def is_minor(self) -> bool:
        return self.cohort == Cohort.YOUTH

    @property
    def beds_needed(self) -> int:
        return self.size


Participant = Annotated[Individual | GroupBucket, Field(discriminator="kind")]


# =============================================================================
# Assignments
# =============================================================================


class Assignment(BaseModel):
    """One occupied bed slot."""

    id: str
    room_id: str
    bed_number: int = Field(ge=1)
    kind: AssignmentKind
    participant_id: str | None = None
    group_id: str | None = None
    gender: Gender
    cohort: Cohort
    parish: str | None = None
    assigned_by: str | None = None
    created_at: datetime


class GroupRoomAllocation(BaseModel):
    """Beds one group bucket holds in one room."""

    group_id: str
    gender: Gender
    cohort: Cohort
    room_id: str
    room_label: str = ""
    bed_numbers: list[int] = Field(default_factory=list)
    assignment_ids: list[str] = Field(default_factory=list)

    @property
    def beds(self) -> int:
        return len(self.bed_numbers)


# =============================================================================
# Auto-assign
# =============================================================================


class AutoAssignRequest(BaseModel):
    """Filter, strategy and options for one planner run."""

    gender_filter: GenderFilter = GenderFilter.ALL
    type_filter: TypeFilter = TypeFilter.ALL
    building_ids: list[str] = Field(default_factory=list)  # Empty means every building
    strategy: Strategy = Strategy.PARISH_TOGETHER
    honor_roommate_preference: bool = True
    only_unassigned: bool = True
    assigned_by: str | None = None


class PlacementRecord(BaseModel):
    """A committed planner placement, for reporting."""

    participant: str
    room_id: str
    room_label: str
    beds: int


class AutoAssignResult(BaseModel):
    """Outcome of a planner run; partial success is normal."""

    assigned: int = 0
    skipped: int = 0
    errors: list[str] = Field(default_factory=list)
    cancelled: bool = False
    placements: list[PlacementRecord] = Field(default_factory=list)
