"""
Inventory Store - buildings and rooms.

Room occupancy is never stored. Every room read counts the live assignment
rows referencing the room, so the figure cannot drift from the ledger.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from collections.abc import Iterable
from enum import Enum
from typing import Any

from ..errors import CapacityBelowOccupancy, DuplicateRoomNumber, InventoryError, NotFound
from ..models import (
    ROOM_TYPE_BEDS,
    Building,
    BuildingCreate,
    BuildingUpdate,
    BulkRoomCreate,
    DeletionSummary,
    InventoryImportResult,
    InventoryImportRow,
    Room,
    RoomCreate,
    RoomType,
    RoomUpdate,
    default_capacity,
)
from ..room_ordering import sort_rooms
from .database import Database

logger = logging.getLogger(__name__)

ROOM_SELECT = """
SELECT r.*,
       b.name AS building_name,
       b.gender AS building_gender,
       b.housing_type AS building_housing_type,
       b.display_order AS building_display_order,
       (SELECT COUNT(*) FROM assignments a WHERE a.room_id = r.id) AS current_occupancy
FROM rooms r
JOIN buildings b ON b.id = r.building_id
"""


def new_id() -> str:
    return uuid.uuid4().hex


def _db_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return int(value)
    return value


def row_to_room(row: sqlite3.Row) -> Room:
    return Room.model_validate(dict(row))


def fetch_room(conn: sqlite3.Connection, room_id: str) -> Room | None:
    """Read one room with its live occupancy on an existing connection."""
    row = conn.execute(f"{ROOM_SELECT} WHERE r.id = ?", (room_id,)).fetchone()
    return row_to_room(row) if row else None


def fetch_rooms(conn: sqlite3.Connection, building_ids: Iterable[str] | None = None) -> list[Room]:
    """Read rooms (optionally limited to some buildings) in canonical order."""
    if building_ids is None:
        rows = conn.execute(ROOM_SELECT).fetchall()
    else:
        ids = list(building_ids)
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        rows = conn.execute(f"{ROOM_SELECT} WHERE r.building_id IN ({placeholders})", ids).fetchall()
    return sort_rooms([row_to_room(row) for row in rows])


def _fetch_building(conn: sqlite3.Connection, building_id: str) -> Building | None:
    row = conn.execute("SELECT * FROM buildings WHERE id = ?", (building_id,)).fetchone()
    return Building.model_validate(dict(row)) if row else None


def _next_display_order(conn: sqlite3.Connection) -> int:
    row = conn.execute("SELECT MAX(display_order) AS max_order FROM buildings").fetchone()
    return (row["max_order"] or 0) + 1


def _existing_room_numbers(conn: sqlite3.Connection, building_id: str) -> set[str]:
    rows = conn.execute("SELECT room_number FROM rooms WHERE building_id = ?", (building_id,)).fetchall()
    return {row["room_number"] for row in rows}


def _delete_room_rows(conn: sqlite3.Connection, building_id: str) -> int:
    cursor = conn.execute("DELETE FROM rooms WHERE building_id = ?", (building_id,))
    return cursor.rowcount


def _compact_beds(conn: sqlite3.Connection, room_id: str, capacity: int) -> None:
    """Renumber beds above a lowered capacity into free slots within it."""
    rows = conn.execute(
        "SELECT id, bed_number FROM assignments WHERE room_id = ? ORDER BY bed_number", (room_id,)
    ).fetchall()
    taken = {row["bed_number"] for row in rows}
    free = iter([bed for bed in range(1, capacity + 1) if bed not in taken])
    for row in rows:
        if row["bed_number"] > capacity:
            conn.execute("UPDATE assignments SET bed_number = ? WHERE id = ?", (next(free), row["id"]))


def _insert_room(conn: sqlite3.Connection, building_id: str, fields: dict[str, Any]) -> str:
    room_id = new_id()
    columns = ["id", "building_id", *fields.keys()]
    values = [room_id, building_id, *(_db_value(v) for v in fields.values())]
    placeholders = ", ".join("?" for _ in columns)
    conn.execute(f"INSERT INTO rooms ({', '.join(columns)}) VALUES ({placeholders})", values)
    return room_id


def _insert_building(conn: sqlite3.Connection, fields: dict[str, Any]) -> str:
    building_id = new_id()
    columns = ["id", *fields.keys()]
    values = [building_id, *(_db_value(v) for v in fields.values())]
    placeholders = ", ".join("?" for _ in columns)
    conn.execute(f"INSERT INTO buildings ({', '.join(columns)}) VALUES ({placeholders})", values)
    return building_id


class InventoryStore:
    """CRUD over buildings and rooms with derived occupancy."""

    def __init__(self, db: Database):
        self.db = db

    # =========================================================================
    # Buildings
    # =========================================================================

    def create_building(self, data: BuildingCreate) -> Building:
        with self.db.transaction() as conn:
            fields = data.model_dump()
            if fields["display_order"] is None:
                fields["display_order"] = _next_display_order(conn)
            building_id = _insert_building(conn, fields)
            building = _fetch_building(conn, building_id)
        assert building is not None
        logger.info(f"Created building {building.name} ({building_id})")
        return building

    def update_building(self, building_id: str, data: BuildingUpdate) -> Building:
        changes = data.model_dump(exclude_unset=True)
        for required in ("name", "gender", "housing_type", "floor_count", "display_order"):
            if required in changes and changes[required] is None:
                raise InventoryError(f"Building {required} cannot be cleared")

        with self.db.transaction() as conn:
            if _fetch_building(conn, building_id) is None:
                raise NotFound("Building", building_id)
            if changes:
                assignments = ", ".join(f"{column} = ?" for column in changes)
                conn.execute(
                    f"UPDATE buildings SET {assignments} WHERE id = ?",
                    [*(_db_value(v) for v in changes.values()), building_id],
                )
            building = _fetch_building(conn, building_id)
        assert building is not None
        return building

    def delete_building(self, building_id: str) -> DeletionSummary:
        """Delete a building, its rooms and every assignment in them, atomically."""
        with self.db.transaction() as conn:
            if _fetch_building(conn, building_id) is None:
                raise NotFound("Building", building_id)
            assignments_removed = conn.execute(
                "DELETE FROM assignments WHERE room_id IN (SELECT id FROM rooms WHERE building_id = ?)",
                (building_id,),
            ).rowcount
            rooms_removed = _delete_room_rows(conn, building_id)
            conn.execute("DELETE FROM buildings WHERE id = ?", (building_id,))

        summary = DeletionSummary(
            buildings_removed=1,
            rooms_removed=rooms_removed,
            assignments_removed=assignments_removed,
        )
        logger.info(
            f"Deleted building {building_id}: {rooms_removed} rooms, {assignments_removed} assignments removed"
        )
        return summary

    def get_building(self, building_id: str) -> Building:
        with self.db.read() as conn:
            building = _fetch_building(conn, building_id)
        if building is None:
            raise NotFound("Building", building_id)
        return building

    def list_buildings(self) -> list[Building]:
        with self.db.read() as conn:
            rows = conn.execute("SELECT * FROM buildings ORDER BY display_order, name").fetchall()
        return [Building.model_validate(dict(row)) for row in rows]

    # =========================================================================
    # Rooms
    # =========================================================================

    def create_room(self, data: RoomCreate) -> Room:
        fields = data.model_dump(exclude={"building_id"})
        with self.db.transaction() as conn:
            if _fetch_building(conn, data.building_id) is None:
                raise NotFound("Building", data.building_id)
            if data.room_number in _existing_room_numbers(conn, data.building_id):
                raise DuplicateRoomNumber(data.building_id, [data.room_number])
            room_id = _insert_room(conn, data.building_id, fields)
            room = fetch_room(conn, room_id)
        assert room is not None
        logger.debug(f"Created room {room.label} ({room.capacity} beds)")
        return room

    def bulk_create_rooms(self, building_id: str, request: BulkRoomCreate) -> list[Room]:
        """Create a numbered run of rooms; any clash rejects the whole batch."""
        capacity = request.resolved_capacity
        numbers = request.room_numbers

        with self.db.transaction() as conn:
            if _fetch_building(conn, building_id) is None:
                raise NotFound("Building", building_id)

            existing = _existing_room_numbers(conn, building_id)
            clashes = [number for number in numbers if number in existing]
            if clashes:
                raise DuplicateRoomNumber(building_id, clashes)

            room_ids = [
                _insert_room(
                    conn,
                    building_id,
                    {
                        "room_number": number,
                        "floor": request.floor,
                        "capacity": capacity,
                        "room_type": request.room_type,
                        "purpose": request.purpose,
                    },
                )
                for number in numbers
            ]
            rooms = [fetch_room(conn, room_id) for room_id in room_ids]

        logger.info(f"Bulk created {len(room_ids)} rooms in building {building_id}")
        return [room for room in rooms if room is not None]

    def update_room(self, room_id: str, data: RoomUpdate) -> Room:
        changes = data.model_dump(exclude_unset=True)
        for required in ("room_number", "floor", "room_type", "capacity", "purpose", "is_available", "is_ada_accessible"):
            if required in changes and changes[required] is None:
                raise InventoryError(f"Room {required} cannot be cleared")

        # A typed room without an explicit capacity takes the type's bed count
        room_type = changes.get("room_type")
        if room_type is not None and "capacity" not in changes and room_type != RoomType.CUSTOM:
            changes["capacity"] = ROOM_TYPE_BEDS[room_type]

        with self.db.transaction() as conn:
            room = fetch_room(conn, room_id)
            if room is None:
                raise NotFound("Room", room_id)

            new_capacity = changes.get("capacity")
            if new_capacity is not None and new_capacity < room.current_occupancy:
                raise CapacityBelowOccupancy(
                    f"Room {room.label} has {room.current_occupancy} occupants; "
                    f"capacity cannot drop to {new_capacity}"
                )

            new_number = changes.get("room_number")
            if new_number is not None and new_number != room.room_number:
                if new_number in _existing_room_numbers(conn, room.building_id):
                    raise DuplicateRoomNumber(room.building_id, [new_number])

            if changes:
                assignments = ", ".join(f"{column} = ?" for column in changes)
                conn.execute(
                    f"UPDATE rooms SET {assignments} WHERE id = ?",
                    [*(_db_value(v) for v in changes.values()), room_id],
                )
            if new_capacity is not None and new_capacity < room.capacity:
                _compact_beds(conn, room_id, new_capacity)
            updated = fetch_room(conn, room_id)

        assert updated is not None
        return updated

    def delete_room(self, room_id: str) -> DeletionSummary:
        with self.db.transaction() as conn:
            if fetch_room(conn, room_id) is None:
                raise NotFound("Room", room_id)
            assignments_removed = conn.execute("DELETE FROM assignments WHERE room_id = ?", (room_id,)).rowcount
            conn.execute("DELETE FROM rooms WHERE id = ?", (room_id,))

        logger.info(f"Deleted room {room_id}: {assignments_removed} assignments removed")
        return DeletionSummary(rooms_removed=1, assignments_removed=assignments_removed)

    def get_room(self, room_id: str) -> Room:
        with self.db.read() as conn:
            room = fetch_room(conn, room_id)
        if room is None:
            raise NotFound("Room", room_id)
        return room

    def list_rooms(self, building_id: str | None = None) -> list[Room]:
        with self.db.read() as conn:
            return fetch_rooms(conn, None if building_id is None else [building_id])

    # =========================================================================
    # Import
    # =========================================================================

    def import_inventory(self, rows: list[InventoryImportRow]) -> InventoryImportResult:
        """Create buildings and rooms from already-parsed template rows.

        Rows sharing (building name, gender, housing type) become one new
        building, appended after the existing ones in display order. The
        import is all-or-nothing.
        """
        grouped: dict[tuple[str, str, str], list[InventoryImportRow]] = {}
        for row in rows:
            key = (row.building_name, row.gender.value, row.housing_type.value)
            grouped.setdefault(key, []).append(row)

        result = InventoryImportResult()
        with self.db.transaction() as conn:
            for building_rows in grouped.values():
                first = building_rows[0]
                building_id = _insert_building(
                    conn,
                    {
                        "name": first.building_name,
                        "gender": first.gender,
                        "housing_type": first.housing_type,
                        "floor_count": first.floor_count,
                        "display_order": _next_display_order(conn),
                    },
                )
                result.buildings_created += 1

                seen: set[str] = set()
                duplicates: list[str] = []
                for room_row in building_rows:
                    if room_row.room_number in seen:
                        duplicates.append(room_row.room_number)
                    seen.add(room_row.room_number)
                if duplicates:
                    raise DuplicateRoomNumber(first.building_name, duplicates)

                for room_row in building_rows:
                    try:
                        capacity = default_capacity(room_row.room_type, room_row.capacity)
                    except ValueError as e:
                        raise InventoryError(f"Room {room_row.room_number} of {first.building_name}: {e}") from e
                    _insert_room(
                        conn,
                        building_id,
                        {
                            "room_number": room_row.room_number,
                            "floor": room_row.floor,
                            "capacity": capacity,
                            "room_type": room_row.room_type,
                            "is_ada_accessible": room_row.is_ada_accessible,
                            "ada_features": room_row.ada_features,
                            "notes": room_row.notes,
                        },
                    )
                    result.rooms_created += 1

        logger.info(f"Imported {result.buildings_created} buildings and {result.rooms_created} rooms")
        return result
