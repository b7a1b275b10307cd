"""Tests for canonical room ordering."""

from __future__ import annotations

from housing.room_ordering import natural_key, sort_rooms
from tests.fixtures.factories import create_room_model


class TestNaturalKey:
    def test_numbers_compare_numerically(self) -> None:
        numbers = ["10", "2", "101", "9"]
        assert sorted(numbers, key=natural_key) == ["2", "9", "10", "101"]

    def test_suffixes_follow_their_number(self) -> None:
        numbers = ["10B", "10", "10A", "11"]
        assert sorted(numbers, key=natural_key) == ["10", "10A", "10B", "11"]

    def test_digits_before_text(self) -> None:
        numbers = ["B1", "10", "A2"]
        assert sorted(numbers, key=natural_key) == ["10", "A2", "B1"]

    def test_case_insensitive(self) -> None:
        assert natural_key("b2") == natural_key("B2")


class TestSortRooms:
    def test_building_order_then_floor_then_number(self) -> None:
        rooms = [
            create_room_model("r4", building_id="b2", building_name="South", room_number="1", display_order=2),
            create_room_model("r3", room_number="10", floor=2),
            create_room_model("r2", room_number="10", floor=1),
            create_room_model("r1", room_number="2", floor=1),
        ]
        assert [room.id for room in sort_rooms(rooms)] == ["r1", "r2", "r3", "r4"]
