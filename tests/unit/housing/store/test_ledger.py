"""Tests for the assignment ledger."""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from housing.errors import Conflict, GenderMismatch, HousingTypeMismatch, NotFound, RoomFull, RoomUnavailable
from housing.models import AssignmentKind, Building, Cohort, Gender, Room, RoomPurpose, RoomUpdate
from housing.store import AssignmentLedger, Database, InventoryStore
from tests.fixtures.factories import add_room, create_bucket, create_individual


def _occupancy_matches_rows(inventory: InventoryStore, ledger: AssignmentLedger) -> bool:
    return all(
        room.current_occupancy == len(ledger.list_room_assignments(room.id)) for room in inventory.list_rooms()
    )


class TestAssign:
    def test_assign_takes_lowest_free_bed(self, ledger: AssignmentLedger, double_room: Room) -> None:
        first = ledger.assign(double_room.id, create_individual("p1"), assigned_by="admin")
        second = ledger.assign(double_room.id, create_individual("p2"))

        assert (first.bed_number, second.bed_number) == (1, 2)
        assert first.kind == AssignmentKind.INDIVIDUAL
        assert first.assigned_by == "admin"
        assert first.cohort == Cohort.YOUTH

    def test_specific_bed(self, ledger: AssignmentLedger, double_room: Room) -> None:
        assignment = ledger.assign(double_room.id, create_individual("p1"), bed_number=2)
        assert assignment.bed_number == 2

    def test_taken_bed_is_conflict(self, ledger: AssignmentLedger, double_room: Room) -> None:
        ledger.assign(double_room.id, create_individual("p1"), bed_number=2)
        with pytest.raises(Conflict):
            ledger.assign(double_room.id, create_individual("p2"), bed_number=2)

    def test_bed_outside_capacity(self, ledger: AssignmentLedger, double_room: Room) -> None:
        with pytest.raises(NotFound):
            ledger.assign(double_room.id, create_individual("p1"), bed_number=3)

    def test_full_room(self, ledger: AssignmentLedger, double_room: Room) -> None:
        ledger.assign(double_room.id, create_individual("p1"))
        ledger.assign(double_room.id, create_individual("p2"))

        with pytest.raises(RoomFull) as exc_info:
            ledger.assign(double_room.id, create_individual("p3"))
        assert exc_info.value.capacity == 2
        assert exc_info.value.occupancy == 2

    def test_unknown_room(self, ledger: AssignmentLedger) -> None:
        with pytest.raises(NotFound):
            ledger.assign("missing", create_individual("p1"))

    def test_already_housed_participant(
        self, inventory: InventoryStore, ledger: AssignmentLedger, double_room: Room, male_youth_building: Building
    ) -> None:
        other = add_room(inventory, male_youth_building, "102")
        ledger.assign(double_room.id, create_individual("p1"))

        with pytest.raises(Conflict, match="already assigned"):
            ledger.assign(other.id, create_individual("p1"))

    def test_gender_mismatch_leaves_occupancy(
        self, inventory: InventoryStore, ledger: AssignmentLedger, double_room: Room
    ) -> None:
        with pytest.raises(GenderMismatch):
            ledger.assign(double_room.id, create_individual("p1", gender=Gender.FEMALE))
        assert inventory.get_room(double_room.id).current_occupancy == 0

    def test_housing_type_mismatch(self, ledger: AssignmentLedger, double_room: Room) -> None:
        with pytest.raises(HousingTypeMismatch):
            ledger.assign(double_room.id, create_individual("p1", is_minor=False))

    def test_unavailable_room(self, inventory: InventoryStore, ledger: AssignmentLedger, double_room: Room) -> None:
        inventory.update_room(double_room.id, RoomUpdate(is_available=False))
        with pytest.raises(RoomUnavailable):
            ledger.assign(double_room.id, create_individual("p1"))

    def test_small_group_room(
        self, inventory: InventoryStore, ledger: AssignmentLedger, male_youth_building: Building
    ) -> None:
        room = add_room(inventory, male_youth_building, "Chapel", capacity=20, purpose=RoomPurpose.SMALL_GROUP)
        with pytest.raises(RoomUnavailable):
            ledger.assign(room.id, create_individual("p1"))


class TestUnassign:
    def test_unassign_then_assign_nets_one(
        self, inventory: InventoryStore, ledger: AssignmentLedger, double_room: Room
    ) -> None:
        first = ledger.assign(double_room.id, create_individual("p1"))
        ledger.unassign(first.id)
        ledger.assign(double_room.id, create_individual("p2"))

        assert inventory.get_room(double_room.id).current_occupancy == 1
        assert _occupancy_matches_rows(inventory, ledger)

    def test_unassign_unknown(self, ledger: AssignmentLedger) -> None:
        with pytest.raises(NotFound):
            ledger.unassign("missing")

    def test_unassign_participant(self, ledger: AssignmentLedger, double_room: Room) -> None:
        ledger.assign(double_room.id, create_individual("p1"))
        assert ledger.unassign_participant("p1") == 1
        assert ledger.get_participant_assignment("p1") is None

        with pytest.raises(NotFound):
            ledger.unassign_participant("p1")


class TestMove:
    def test_move_releases_old_bed(
        self, inventory: InventoryStore, ledger: AssignmentLedger, double_room: Room, male_youth_building: Building
    ) -> None:
        target = add_room(inventory, male_youth_building, "102")
        individual = create_individual("p1")
        ledger.assign(double_room.id, individual)

        moved = ledger.move(individual, target.id)

        assert moved.room_id == target.id
        assert inventory.get_room(double_room.id).current_occupancy == 0
        assert inventory.get_room(target.id).current_occupancy == 1

    def test_move_into_full_room_keeps_old_bed(
        self, inventory: InventoryStore, ledger: AssignmentLedger, double_room: Room, male_youth_building: Building
    ) -> None:
        target = add_room(inventory, male_youth_building, "102", capacity=1)
        ledger.assign(target.id, create_individual("p2"))
        individual = create_individual("p1")
        ledger.assign(double_room.id, individual)

        with pytest.raises(RoomFull):
            ledger.move(individual, target.id)
        assert ledger.get_participant_assignment("p1").room_id == double_room.id

    def test_move_within_room_to_other_bed(self, ledger: AssignmentLedger, double_room: Room) -> None:
        individual = create_individual("p1")
        ledger.assign(double_room.id, individual, bed_number=1)

        moved = ledger.move(individual, double_room.id, bed_number=2)
        assert moved.bed_number == 2
        assert len(ledger.list_room_assignments(double_room.id)) == 1

    def test_move_unhoused_assigns(self, ledger: AssignmentLedger, double_room: Room) -> None:
        assignment = ledger.move(create_individual("p1"), double_room.id)
        assert assignment.room_id == double_room.id


class TestGroupAllocations:
    def test_assign_group_beds(
        self, inventory: InventoryStore, ledger: AssignmentLedger, male_youth_building: Building
    ) -> None:
        room = add_room(inventory, male_youth_building, "201", capacity=4)
        bucket = create_bucket("st-mark", 5, parish="St. Mark")

        allocation = ledger.assign_group(room.id, bucket, 3)

        assert allocation.bed_numbers == [1, 2, 3]
        assert allocation.beds == 3
        assert allocation.room_label == "North Hall 201"
        assert ledger.count_group_beds("st-mark", Gender.MALE, Cohort.YOUTH) == 3
        assert inventory.get_room(room.id).current_occupancy == 3

    def test_group_beds_all_or_none(
        self, inventory: InventoryStore, ledger: AssignmentLedger, double_room: Room
    ) -> None:
        with pytest.raises(RoomFull):
            ledger.assign_group(double_room.id, create_bucket("st-mark", 5), 3)
        assert inventory.get_room(double_room.id).current_occupancy == 0

    def test_allocations_listed_per_room(
        self, inventory: InventoryStore, ledger: AssignmentLedger, male_youth_building: Building
    ) -> None:
        first = add_room(inventory, male_youth_building, "201", capacity=2)
        second = add_room(inventory, male_youth_building, "202", capacity=2)
        bucket = create_bucket("st-mark", 4)
        ledger.assign_group(first.id, bucket, 2)
        ledger.assign_group(second.id, bucket, 1)

        allocations = ledger.list_group_allocations("st-mark")

        assert sorted(a.beds for a in allocations) == [1, 2]
        assert ledger.group_bed_counts()[("st-mark", Gender.MALE, Cohort.YOUTH)] == 3

    def test_unassign_group_in_one_room(
        self, inventory: InventoryStore, ledger: AssignmentLedger, male_youth_building: Building
    ) -> None:
        first = add_room(inventory, male_youth_building, "201", capacity=2)
        second = add_room(inventory, male_youth_building, "202", capacity=2)
        bucket = create_bucket("st-mark", 4)
        ledger.assign_group(first.id, bucket, 2)
        ledger.assign_group(second.id, bucket, 2)

        removed = ledger.unassign_group("st-mark", Gender.MALE, Cohort.YOUTH, room_id=first.id)

        assert removed == 2
        assert inventory.get_room(first.id).current_occupancy == 0
        assert inventory.get_room(second.id).current_occupancy == 2

    def test_unassign_group_without_beds(self, ledger: AssignmentLedger) -> None:
        with pytest.raises(NotFound):
            ledger.unassign_group("st-mark", Gender.MALE, Cohort.YOUTH)

    def test_zero_beds_rejected(self, ledger: AssignmentLedger, double_room: Room) -> None:
        with pytest.raises(ValueError):
            ledger.assign_group(double_room.id, create_bucket("st-mark", 2), 0)


class TestConcurrency:
    """Writers racing for the same beds never exceed capacity."""

    def test_last_bed_goes_to_exactly_one_writer(
        self, db: Database, inventory: InventoryStore, male_youth_building: Building
    ) -> None:
        room = add_room(inventory, male_youth_building, "301", capacity=1)
        ledgers = [AssignmentLedger(db), AssignmentLedger(db)]

        def attempt(index: int) -> str:
            try:
                ledgers[index].assign(room.id, create_individual(f"p{index}"))
            except (RoomFull, Conflict) as e:
                return e.code
            return "ok"

        with ThreadPoolExecutor(max_workers=2) as executor:
            outcomes = list(executor.map(attempt, [0, 1]))

        assert outcomes.count("ok") == 1
        assert inventory.get_room(room.id).current_occupancy == 1

    def test_many_writers_fill_exactly_to_capacity(
        self, db: Database, inventory: InventoryStore, ledger: AssignmentLedger, male_youth_building: Building
    ) -> None:
        room = add_room(inventory, male_youth_building, "302", capacity=4)

        def attempt(index: int) -> bool:
            try:
                AssignmentLedger(db).assign(room.id, create_individual(f"p{index}"))
            except (RoomFull, Conflict):
                return False
            return True

        with ThreadPoolExecutor(max_workers=8) as executor:
            outcomes = list(executor.map(attempt, range(10)))

        assert sum(outcomes) == 4
        assert inventory.get_room(room.id).current_occupancy == 4
        assert sorted(a.bed_number for a in ledger.list_room_assignments(room.id)) == [1, 2, 3, 4]

    def test_stalled_writer_fails_fast_with_conflict(
        self, db: Database, inventory: InventoryStore, double_room: Room
    ) -> None:
        impatient = AssignmentLedger(Database(db.path, lock_timeout=0.2))
        blocker = db.connect()
        blocker.execute("BEGIN IMMEDIATE")
        try:
            started = time.monotonic()
            with pytest.raises(Conflict):
                impatient.assign(double_room.id, create_individual("p1"))
            elapsed = time.monotonic() - started
        finally:
            blocker.execute("ROLLBACK")
            blocker.close()

        assert elapsed < 2.0
        assert inventory.get_room(double_room.id).current_occupancy == 0
