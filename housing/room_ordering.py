"""Canonical room ordering.

Rooms sort by building display order, then floor, then room number in
natural order, so "2" < "10" < "10A" < "B1". Both list endpoints and the
planner walk rooms in this order.
"""

from __future__ import annotations

import re
from functools import lru_cache

from .models import Room

_CHUNK = re.compile(r"(\d+)")


@lru_cache(maxsize=1024)
def natural_key(room_number: str) -> tuple[tuple[int, int | str], ...]:
    """Sortable key for a room number.

    Digit runs compare numerically and come before text at the same position.

    Examples:
        natural_key("101")  -> ((0, 101),)
        natural_key("10A")  -> ((0, 10), (1, "a"))
        natural_key("B2")   -> ((1, "b"), (0, 2))
    """
    parts: list[tuple[int, int | str]] = []
    for chunk in _CHUNK.split(room_number.strip()):
        if not chunk:
            continue
        if chunk.isdigit():
            parts.append((0, int(chunk)))
        else:
            parts.append((1, chunk.lower()))
    return tuple(parts)


def room_sort_key(room: Room) -> tuple:
    return (
        room.building_display_order,
        room.building_name,
        room.floor,
        natural_key(room.room_number),
        room.id,
    )


def sort_rooms(rooms: list[Room]) -> list[Room]:
    return sorted(rooms, key=room_sort_key)
