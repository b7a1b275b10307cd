"""
Assignment Ledger - the only writer of bed assignments.

One assignment row is one occupied bed slot. Eligibility, the capacity check
and the insert run in a single BEGIN IMMEDIATE transaction, so two writers
racing for the last bed are serialized: the second one sees the room full.
The UNIQUE (room_id, bed_number) constraint and the unique participant
index back this up and surface as Conflict if ever hit.
"""

from __future__ import annotations

import logging
import sqlite3
from collections import defaultdict
from datetime import UTC, datetime

from ..eligibility import check_eligibility
from ..errors import Conflict, NotFound, RoomFull
from ..logging_config import TRACE
from ..models import (
    Assignment,
    AssignmentKind,
    Cohort,
    Gender,
    GroupBucket,
    GroupRoomAllocation,
    Individual,
    Room,
)
from .database import Database
from .inventory import fetch_room, new_id

logger = logging.getLogger(__name__)

ALLOCATION_SELECT = """
SELECT a.*, b.name || ' ' || r.room_number AS room_label
FROM assignments a
JOIN rooms r ON r.id = a.room_id
JOIN buildings b ON b.id = r.building_id
"""


def _row_to_assignment(row: sqlite3.Row) -> Assignment:
    return Assignment.model_validate({key: row[key] for key in row.keys() if key != "room_label"})


def _load_room(conn: sqlite3.Connection, room_id: str) -> Room:
    room = fetch_room(conn, room_id)
    if room is None:
        raise NotFound("Room", room_id)
    return room


def _taken_beds(conn: sqlite3.Connection, room_id: str) -> set[int]:
    rows = conn.execute("SELECT bed_number FROM assignments WHERE room_id = ?", (room_id,)).fetchall()
    return {row["bed_number"] for row in rows}


def _claim_beds(conn: sqlite3.Connection, room: Room, count: int, bed_number: int | None = None) -> list[int]:
    """Pick `count` free bed numbers, lowest first, or the one requested."""
    if room.available_beds < count:
        raise RoomFull(room.label, room.capacity, room.current_occupancy, requested=count)

    taken = _taken_beds(conn, room.id)
    if bed_number is not None:
        if not 1 <= bed_number <= room.capacity:
            raise NotFound("Bed", f"{room.label} #{bed_number}")
        if bed_number in taken:
            raise Conflict(f"Bed {bed_number} in {room.label} is already taken")
        return [bed_number]

    free = [bed for bed in range(1, room.capacity + 1) if bed not in taken]
    return free[:count]


def _participant_row(conn: sqlite3.Connection, participant_id: str) -> sqlite3.Row | None:
    return conn.execute(f"{ALLOCATION_SELECT} WHERE a.participant_id = ?", (participant_id,)).fetchone()


def _insert_assignment(
    conn: sqlite3.Connection,
    room_id: str,
    bed_number: int,
    participant: Individual | GroupBucket,
    assigned_by: str | None,
) -> Assignment:
    match participant:
        case Individual():
            kind, participant_id = AssignmentKind.INDIVIDUAL, participant.id
        case GroupBucket():
            kind, participant_id = AssignmentKind.GROUP, None

    assignment = Assignment(
        id=new_id(),
        room_id=room_id,
        bed_number=bed_number,
        kind=kind,
        participant_id=participant_id,
        group_id=participant.group_id,
        gender=participant.gender,
        cohort=participant.cohort,
        parish=participant.parish,
        assigned_by=assigned_by,
        created_at=datetime.now(UTC),
    )
    conn.execute(
        """
        INSERT INTO assignments (id, room_id, bed_number, kind, participant_id, group_id,
                                 gender, cohort, parish, assigned_by, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            assignment.id,
            assignment.room_id,
            assignment.bed_number,
            assignment.kind.value,
            assignment.participant_id,
            assignment.group_id,
            assignment.gender.value,
            assignment.cohort.value,
            assignment.parish,
            assignment.assigned_by,
            assignment.created_at.isoformat(),
        ),
    )
    return assignment


def _group_allocations(rows: list[sqlite3.Row]) -> list[GroupRoomAllocation]:
    grouped: dict[tuple[str, str, str, str], GroupRoomAllocation] = {}
    for row in rows:
        key = (row["group_id"], row["gender"], row["cohort"], row["room_id"])
        allocation = grouped.get(key)
        if allocation is None:
            allocation = GroupRoomAllocation(
                group_id=row["group_id"],
                gender=row["gender"],
                cohort=row["cohort"],
                room_id=row["room_id"],
                room_label=row["room_label"],
            )
            grouped[key] = allocation
        allocation.bed_numbers.append(row["bed_number"])
        allocation.assignment_ids.append(row["id"])
    return list(grouped.values())


class AssignmentLedger:
    """Transactional bed assignments over the inventory."""

    def __init__(self, db: Database):
        self.db = db

    # =========================================================================
    # Writes
    # =========================================================================

    def assign(
        self,
        room_id: str,
        individual: Individual,
        bed_number: int | None = None,
        assigned_by: str | None = None,
    ) -> Assignment:
        """Give one individual one bed.

        Raises:
            NotFound: room (or requested bed) does not exist
            RoomUnavailable, GenderMismatch, HousingTypeMismatch: room not eligible
            RoomFull: no free bed at commit time
            Conflict: requested bed taken, participant already housed, lock timeout
        """
        with self.db.transaction() as conn:
            room = _load_room(conn, room_id)
            check_eligibility(room, individual)

            existing = _participant_row(conn, individual.id)
            if existing is not None:
                raise Conflict(f"{individual.name} is already assigned to {existing['room_label']}")

            [bed] = _claim_beds(conn, room, 1, bed_number)
            assignment = _insert_assignment(conn, room.id, bed, individual, assigned_by)

        logger.info(f"Assigned {individual.name} to {room.label} bed {bed}")
        return assignment

    def assign_group(
        self,
        room_id: str,
        bucket: GroupBucket,
        beds: int,
        assigned_by: str | None = None,
    ) -> GroupRoomAllocation:
        """Place `beds` beds of a group bucket in one room, all or none."""
        if beds < 1:
            raise ValueError("beds must be at least 1")

        with self.db.transaction() as conn:
            room = _load_room(conn, room_id)
            check_eligibility(room, bucket)
            bed_numbers = _claim_beds(conn, room, beds)
            for bed in bed_numbers:
                _insert_assignment(conn, room.id, bed, bucket, assigned_by)
            rows = conn.execute(
                f"{ALLOCATION_SELECT} WHERE a.group_id = ? AND a.gender = ? AND a.cohort = ? AND a.room_id = ? "
                "AND a.kind = 'group' ORDER BY a.bed_number",
                (bucket.group_id, bucket.gender.value, bucket.cohort.value, room.id),
            ).fetchall()

        logger.info(f"Assigned {beds} beds of {bucket.name} to {room.label}")
        [allocation] = _group_allocations(rows)
        return allocation

    def move(
        self,
        individual: Individual,
        room_id: str,
        bed_number: int | None = None,
        assigned_by: str | None = None,
    ) -> Assignment:
        """Release the individual's current bed and take one in `room_id`, atomically.

        An individual without a bed is simply assigned. Moving into the room
        already held (without a specific bed) keeps the current assignment.
        """
        with self.db.transaction() as conn:
            room = _load_room(conn, room_id)
            check_eligibility(room, individual)

            existing = _participant_row(conn, individual.id)
            if existing is not None:
                if existing["room_id"] == room.id and bed_number in (None, existing["bed_number"]):
                    return _row_to_assignment(existing)
                conn.execute("DELETE FROM assignments WHERE id = ?", (existing["id"],))
                room = _load_room(conn, room_id)

            [bed] = _claim_beds(conn, room, 1, bed_number)
            assignment = _insert_assignment(conn, room.id, bed, individual, assigned_by)

        if existing is not None:
            logger.info(f"Moved {individual.name} from {existing['room_label']} to {room.label} bed {bed}")
        else:
            logger.info(f"Assigned {individual.name} to {room.label} bed {bed}")
        return assignment

    def unassign(self, assignment_id: str) -> Assignment:
        """Free one bed slot; returns the removed assignment."""
        with self.db.transaction() as conn:
            row = conn.execute("SELECT * FROM assignments WHERE id = ?", (assignment_id,)).fetchone()
            if row is None:
                raise NotFound("Assignment", assignment_id)
            conn.execute("DELETE FROM assignments WHERE id = ?", (assignment_id,))

        assignment = _row_to_assignment(row)
        logger.info(f"Released bed {assignment.bed_number} of room {assignment.room_id}")
        return assignment

    def unassign_participant(self, participant_id: str) -> int:
        """Free the bed an individual holds; returns beds removed."""
        with self.db.transaction() as conn:
            removed = conn.execute("DELETE FROM assignments WHERE participant_id = ?", (participant_id,)).rowcount
        if removed == 0:
            raise NotFound("Assignment for participant", participant_id)
        logger.info(f"Released bed of participant {participant_id}")
        return removed

    def unassign_group(
        self,
        group_id: str,
        gender: Gender,
        cohort: Cohort,
        room_id: str | None = None,
    ) -> int:
        """Free a group bucket's beds, in one room or everywhere; returns beds removed."""
        query = "DELETE FROM assignments WHERE kind = 'group' AND group_id = ? AND gender = ? AND cohort = ?"
        params: list[str] = [group_id, gender.value, cohort.value]
        if room_id is not None:
            query += " AND room_id = ?"
            params.append(room_id)

        with self.db.transaction() as conn:
            removed = conn.execute(query, params).rowcount
        if removed == 0:
            raise NotFound("Group allocation", f"{group_id}/{gender.value}/{cohort.value}")
        logger.info(f"Released {removed} beds of group {group_id} ({gender.value} {cohort.value})")
        return removed

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, assignment_id: str) -> Assignment:
        with self.db.read() as conn:
            row = conn.execute("SELECT * FROM assignments WHERE id = ?", (assignment_id,)).fetchone()
        if row is None:
            raise NotFound("Assignment", assignment_id)
        return _row_to_assignment(row)

    def list_room_assignments(self, room_id: str) -> list[Assignment]:
        with self.db.read() as conn:
            if fetch_room(conn, room_id) is None:
                raise NotFound("Room", room_id)
            rows = conn.execute(
                "SELECT * FROM assignments WHERE room_id = ? ORDER BY bed_number", (room_id,)
            ).fetchall()
        return [_row_to_assignment(row) for row in rows]

    def list_assignments(self) -> list[Assignment]:
        with self.db.read() as conn:
            rows = conn.execute("SELECT * FROM assignments ORDER BY room_id, bed_number").fetchall()
        return [_row_to_assignment(row) for row in rows]

    def get_participant_assignment(self, participant_id: str) -> Assignment | None:
        with self.db.read() as conn:
            row = _participant_row(conn, participant_id)
        return _row_to_assignment(row) if row else None

    def list_group_allocations(self, group_id: str) -> list[GroupRoomAllocation]:
        with self.db.read() as conn:
            rows = conn.execute(
                f"{ALLOCATION_SELECT} WHERE a.group_id = ? AND a.kind = 'group' "
                "ORDER BY a.gender, a.cohort, a.room_id, a.bed_number",
                (group_id,),
            ).fetchall()
        return _group_allocations(rows)

    def count_group_beds(self, group_id: str, gender: Gender, cohort: Cohort) -> int:
        with self.db.read() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS n FROM assignments WHERE kind = 'group' AND group_id = ? AND gender = ? AND cohort = ?",
                (group_id, gender.value, cohort.value),
            ).fetchone()
        return row["n"]

    def group_bed_counts(self) -> dict[tuple[str, Gender, Cohort], int]:
        """Beds held per group bucket key, for every bucket holding any."""
        with self.db.read() as conn:
            rows = conn.execute(
                "SELECT group_id, gender, cohort, COUNT(*) AS n FROM assignments "
                "WHERE kind = 'group' GROUP BY group_id, gender, cohort"
            ).fetchall()
        counts: dict[tuple[str, Gender, Cohort], int] = defaultdict(int)
        for row in rows:
            counts[(row["group_id"], Gender(row["gender"]), Cohort(row["cohort"]))] = row["n"]
        logger.log(TRACE, f"Group bed counts: {dict(counts)}")
        return counts

    def assigned_participant_ids(self) -> set[str]:
        with self.db.read() as conn:
            rows = conn.execute("SELECT participant_id FROM assignments WHERE participant_id IS NOT NULL").fetchall()
        return {row["participant_id"] for row in rows}
