"""
Housing validation system to audit occupancy and report issues.

The ledger enforces every rule at write time, but admins can still edit a
room after people are in it (flip its gender, change its housing type, mark
it unavailable). The validator re-reads the whole inventory and ledger and
reports anything that no longer holds, plus occupancy statistics.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from .eligibility import gender_allows, housing_type_allows
from .models import Assignment, AssignmentKind, Building, Room
from .roster import RosterProvider
from .store import AssignmentLedger, InventoryStore

logger = logging.getLogger(__name__)


class ValidationSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ValidationIssue(BaseModel):
    """Single validation issue found during analysis."""

    severity: ValidationSeverity
    type: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
    affected_ids: list[str] = Field(default_factory=list)


class BuildingBreakdown(BaseModel):
    """Occupancy of one building."""

    building_id: str
    building_name: str
    total_rooms: int = 0
    total_capacity: int = 0
    total_occupied: int = 0
    available_capacity: int = 0
    occupancy_rate: float = 0.0


class OccupancyStatistics(BaseModel):
    """Overall occupancy figures."""

    total_buildings: int = 0
    total_rooms: int = 0
    total_capacity: int = 0
    total_occupied: int = 0
    available_capacity: int = 0
    occupancy_rate: float = 0.0
    rooms_full: int = 0
    rooms_partial: int = 0
    rooms_empty: int = 0
    unavailable_rooms: int = 0
    individuals_assigned: int = 0
    group_beds_assigned: int = 0
    individuals_unassigned: int | None = None  # Only known when a roster is given
    group_beds_missing: int | None = None
    building_breakdown: list[BuildingBreakdown] = Field(default_factory=list)


class ValidationResult(BaseModel):
    statistics: OccupancyStatistics
    issues: list[ValidationIssue]
    validated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


def _rate(occupied: int, capacity: int) -> float:
    return round(occupied / capacity * 100, 1) if capacity else 0.0


class HousingValidator:
    """Validates housing assignments and reports issues."""

    def __init__(self, inventory: InventoryStore, ledger: AssignmentLedger, roster: RosterProvider | None = None):
        self.inventory = inventory
        self.ledger = ledger
        self.roster = roster

    def occupancy_statistics(self) -> OccupancyStatistics:
        rooms = [room for room in self.inventory.list_rooms() if room.accepts_beds]
        buildings = self.inventory.list_buildings()
        assignments = self.ledger.list_assignments()
        return self._statistics(buildings, rooms, assignments)

    def validate(self) -> ValidationResult:
        rooms = self.inventory.list_rooms()
        buildings = self.inventory.list_buildings()
        assignments = self.ledger.list_assignments()

        by_room: dict[str, list[Assignment]] = defaultdict(list)
        for assignment in assignments:
            by_room[assignment.room_id].append(assignment)

        issues: list[ValidationIssue] = []
        for room in rooms:
            issues.extend(self._check_room(room, by_room.get(room.id, [])))

        statistics = self._statistics(buildings, [room for room in rooms if room.accepts_beds], assignments)
        if self.roster is not None:
            issues.extend(self._check_roster(statistics, assignments))

        errors = sum(1 for issue in issues if issue.severity == ValidationSeverity.ERROR)
        logger.info(f"Housing validation: {len(issues)} issues ({errors} errors)")
        return ValidationResult(statistics=statistics, issues=issues)

    def _statistics(
        self, buildings: list[Building], rooms: list[Room], assignments: list[Assignment]
    ) -> OccupancyStatistics:
        stats = OccupancyStatistics(total_buildings=len(buildings), total_rooms=len(rooms))
        per_building: dict[str, BuildingBreakdown] = {}

        for room in rooms:
            breakdown = per_building.setdefault(
                room.building_id,
                BuildingBreakdown(building_id=room.building_id, building_name=room.building_name),
            )
            breakdown.total_rooms += 1
            breakdown.total_capacity += room.capacity
            breakdown.total_occupied += room.current_occupancy

            stats.total_capacity += room.capacity
            stats.total_occupied += room.current_occupancy
            if not room.is_available:
                stats.unavailable_rooms += 1
            if room.current_occupancy == 0:
                stats.rooms_empty += 1
            elif room.is_full:
                stats.rooms_full += 1
            else:
                stats.rooms_partial += 1

        for breakdown in per_building.values():
            breakdown.available_capacity = max(breakdown.total_capacity - breakdown.total_occupied, 0)
            breakdown.occupancy_rate = _rate(breakdown.total_occupied, breakdown.total_capacity)

        stats.available_capacity = max(stats.total_capacity - stats.total_occupied, 0)
        stats.occupancy_rate = _rate(stats.total_occupied, stats.total_capacity)
        stats.individuals_assigned = sum(1 for a in assignments if a.kind == AssignmentKind.INDIVIDUAL)
        stats.group_beds_assigned = sum(1 for a in assignments if a.kind == AssignmentKind.GROUP)
        stats.building_breakdown = list(per_building.values())
        return stats

    def _check_room(self, room: Room, assignments: list[Assignment]) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        ids = [assignment.id for assignment in assignments]
        if not assignments:
            return issues

        if len(assignments) > room.capacity:
            issues.append(
                ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    type="over_capacity",
                    message=f"{room.label} holds {len(assignments)} people in {room.capacity} beds",
                    details={"room_id": room.id, "capacity": room.capacity, "occupancy": len(assignments)},
                    affected_ids=ids,
                )
            )

        out_of_range = [a.id for a in assignments if a.bed_number > room.capacity]
        if out_of_range:
            issues.append(
                ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    type="bed_out_of_range",
                    message=f"{room.label} has assignments on beds above its capacity of {room.capacity}",
                    details={"room_id": room.id},
                    affected_ids=out_of_range,
                )
            )

        wrong_gender = [a.id for a in assignments if not gender_allows(room, a.gender)]
        if wrong_gender:
            issues.append(
                ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    type="gender_violation",
                    message=f"{room.label} is {room.effective_gender.value}-only but houses other genders",
                    details={"room_id": room.id, "room_gender": room.effective_gender.value},
                    affected_ids=wrong_gender,
                )
            )

        wrong_type = [a.id for a in assignments if not housing_type_allows(room, a.cohort)]
        if wrong_type:
            issues.append(
                ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    type="housing_type_violation",
                    message=f"{room.label} ({room.effective_housing_type.value}) houses ineligible participants",
                    details={"room_id": room.id, "housing_type": room.effective_housing_type.value},
                    affected_ids=wrong_type,
                )
            )

        if not room.accepts_beds:
            issues.append(
                ValidationIssue(
                    severity=ValidationSeverity.WARNING,
                    type="small_group_room_occupied",
                    message=f"{room.label} is a small-group room but has {len(assignments)} beds assigned",
                    details={"room_id": room.id},
                    affected_ids=ids,
                )
            )
        elif not room.is_available:
            issues.append(
                ValidationIssue(
                    severity=ValidationSeverity.WARNING,
                    type="unavailable_room_occupied",
                    message=f"{room.label} is marked unavailable but has {len(assignments)} occupants",
                    details={"room_id": room.id},
                    affected_ids=ids,
                )
            )
        return issues

    def _check_roster(self, statistics: OccupancyStatistics, assignments: list[Assignment]) -> list[ValidationIssue]:
        assert self.roster is not None
        housed = {a.participant_id for a in assignments if a.participant_id}
        unassigned = [p.id for p in self.roster.list_individuals() if p.id not in housed]

        held: dict[tuple[str, str, str], int] = defaultdict(int)
        for a in assignments:
            if a.kind == AssignmentKind.GROUP and a.group_id:
                held[(a.group_id, a.gender.value, a.cohort.value)] += 1

        missing_beds = 0
        short_groups = []
        for bucket in self.roster.list_group_buckets():
            missing = bucket.size - held[(bucket.group_id, bucket.gender.value, bucket.cohort.value)]
            if missing > 0:
                missing_beds += missing
                short_groups.append(bucket.group_id)

        statistics.individuals_unassigned = len(unassigned)
        statistics.group_beds_missing = missing_beds

        issues = []
        if unassigned:
            issues.append(
                ValidationIssue(
                    severity=ValidationSeverity.INFO,
                    type="unassigned_participants",
                    message=f"{len(unassigned)} participants have no bed",
                    affected_ids=unassigned,
                )
            )
        if short_groups:
            issues.append(
                ValidationIssue(
                    severity=ValidationSeverity.INFO,
                    type="groups_missing_beds",
                    message=f"{len(short_groups)} group buckets are missing {missing_beds} beds",
                    affected_ids=short_groups,
                )
            )
        return issues
