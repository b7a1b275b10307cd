"""
Placement strategies.

A strategy turns an ordered list of units into planned placements over an
ordered list of candidate rooms. Strategies never write: they only consume
planned free beds from a shared PlanState, which starts from each room's
live free beds and is shared by every partition of a run.

Units:
    - an individual: 1 bed
    - a roommate cluster: one bed per member, kept in one room when possible
    - a group bucket: the beds it still needs, kept in one room when possible
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from ..models import GroupBucket, Individual, Room, Strategy

logger = logging.getLogger(__name__)


@dataclass
class Unit:
    """One planner placement item."""

    members: list[Individual] = field(default_factory=list)
    bucket: GroupBucket | None = None
    bucket_beds: int = 0

    @property
    def size(self) -> int:
        return self.bucket_beds if self.bucket is not None else len(self.members)

    @property
    def parish(self) -> str | None:
        if self.bucket is not None:
            return self.bucket.parish
        return self.members[0].parish if self.members else None

    @property
    def label(self) -> str:
        if self.bucket is not None:
            return self.bucket.name
        return ", ".join(member.name for member in self.members)

    def split(self, count: int) -> tuple[Unit, Unit | None]:
        """Take `count` beds off the front; returns (head, rest or None)."""
        if count >= self.size:
            return self, None
        if self.bucket is not None:
            return (
                Unit(bucket=self.bucket, bucket_beds=count),
                Unit(bucket=self.bucket, bucket_beds=self.bucket_beds - count),
            )
        return Unit(members=self.members[:count]), Unit(members=self.members[count:])


@dataclass
class Placement:
    """A planned (not yet committed) placement of one unit part in one room."""

    room: Room
    individual: Individual | None = None
    bucket: GroupBucket | None = None
    beds: int = 1
    sequence: int = 0

    @property
    def participant_name(self) -> str:
        if self.individual is not None:
            return self.individual.name
        assert self.bucket is not None
        return self.bucket.name


class PlanState:
    """Planned free beds and occupancy per room, shared across partitions."""

    def __init__(self, rooms: list[Room]):
        self.capacity = {room.id: room.capacity for room in rooms}
        self.free = {room.id: room.available_beds for room in rooms}
        self._sequence = 0

    def free_beds(self, room: Room) -> int:
        return self.free.get(room.id, 0)

    def occupancy(self, room: Room) -> int:
        return self.capacity.get(room.id, room.capacity) - self.free_beds(room)

    def release(self, room_id: str, beds: int = 1) -> None:
        """Credit back beds that a re-planned participant will vacate."""
        if room_id in self.free:
            self.free[room_id] = min(self.free[room_id] + beds, self.capacity[room_id])

    def place(self, unit: Unit, room: Room) -> list[Placement]:
        """Consume beds for a whole unit in one room."""
        if unit.size > self.free_beds(room):
            raise ValueError(f"{unit.label} does not fit in {room.label}")
        self.free[room.id] -= unit.size

        placements = []
        if unit.bucket is not None:
            placements.append(Placement(room=room, bucket=unit.bucket, beds=unit.bucket_beds, sequence=self._next()))
        else:
            placements.extend(Placement(room=room, individual=member, sequence=self._next()) for member in unit.members)
        return placements

    def _next(self) -> int:
        self._sequence += 1
        return self._sequence


@dataclass
class PlanOutcome:
    placements: list[Placement] = field(default_factory=list)
    unplaced: list[Unit] = field(default_factory=list)

    def extend(self, other: PlanOutcome) -> None:
        self.placements.extend(other.placements)
        self.unplaced.extend(other.unplaced)


def _split_across(unit: Unit, rooms: list[Room], state: PlanState, outcome: PlanOutcome) -> None:
    """Pour a unit into rooms in the given order, splitting as needed."""
    remaining: Unit | None = unit
    for room in rooms:
        if remaining is None:
            break
        free = state.free_beds(room)
        if free <= 0:
            continue
        head, remaining = remaining.split(free)
        outcome.placements.extend(state.place(head, room))
    if remaining is not None:
        outcome.unplaced.append(remaining)


def fill_rooms(units: list[Unit], rooms: list[Room], state: PlanState) -> PlanOutcome:
    """Fill rooms to capacity in order before moving on.

    Multi-bed units are poured into the current room and spill into the
    next ones; a unit only stays whole when the current room has space.
    """
    outcome = PlanOutcome()
    for unit in units:
        _split_across(unit, rooms, state, outcome)
    return outcome


def balance_rooms(units: list[Unit], rooms: list[Room], state: PlanState) -> PlanOutcome:
    """Give each unit the least occupied room, ties broken by room order."""
    outcome = PlanOutcome()
    order = {room.id: index for index, room in enumerate(rooms)}

    for unit in units:
        candidates = sorted(
            (room for room in rooms if state.free_beds(room) > 0),
            key=lambda room: (state.occupancy(room), order[room.id]),
        )
        whole = next((room for room in candidates if state.free_beds(room) >= unit.size), None)
        if whole is not None:
            outcome.placements.extend(state.place(unit, whole))
        else:
            _split_across(unit, candidates, state, outcome)
    return outcome


def _group_by_building(rooms: list[Room]) -> dict[str, list[Room]]:
    buildings: dict[str, list[Room]] = {}
    for room in rooms:
        buildings.setdefault(room.building_id, []).append(room)
    return buildings


def parish_together(units: list[Unit], rooms: list[Room], state: PlanState) -> PlanOutcome:
    """Keep each parish in a single building when one can hold it.

    Parishes are taken in order of first appearance, unaffiliated units last.
    A parish goes to the building with the smallest free capacity that still
    holds all of it (ties by display order) and fills rooms there. When no
    building can hold it, buildings are filled largest free capacity first.
    """
    parishes: dict[str | None, list[Unit]] = {}
    for unit in units:
        parishes.setdefault(unit.parish, []).append(unit)
    unaffiliated = parishes.pop(None, [])

    buildings = _group_by_building(rooms)
    building_order = {building_id: index for index, building_id in enumerate(buildings)}

    outcome = PlanOutcome()
    for parish, parish_units in parishes.items():
        needed = sum(unit.size for unit in parish_units)
        free = {
            building_id: sum(state.free_beds(room) for room in building_rooms)
            for building_id, building_rooms in buildings.items()
        }
        fitting = [building_id for building_id in buildings if free[building_id] >= needed]

        if fitting:
            chosen = min(fitting, key=lambda building_id: (free[building_id], building_order[building_id]))
            logger.debug(f"Parish {parish}: {needed} beds in building {chosen}")
            outcome.extend(fill_rooms(parish_units, buildings[chosen], state))
        else:
            by_free = sorted(buildings, key=lambda building_id: (-free[building_id], building_order[building_id]))
            spill_rooms = [room for building_id in by_free for room in buildings[building_id]]
            logger.debug(f"Parish {parish}: {needed} beds exceed any single building; spreading")
            outcome.extend(fill_rooms(parish_units, spill_rooms, state))

    if unaffiliated:
        outcome.extend(fill_rooms(unaffiliated, rooms, state))
    return outcome


STRATEGIES: dict[Strategy, Callable[[list[Unit], list[Room], PlanState], PlanOutcome]] = {
    Strategy.FILL_ROOMS: fill_rooms,
    Strategy.BALANCE_ROOMS: balance_rooms,
    Strategy.PARISH_TOGETHER: parish_together,
}
