"""
HTTP helpers for API tests.
"""

from __future__ import annotations

from typing import Any

from fastapi.testclient import TestClient


def create_building(client: TestClient, name: str = "North Hall", **overrides: Any) -> dict[str, Any]:
    payload = {"name": name, "gender": "male", "housing_type": "youth_under_18", **overrides}
    response = client.post("/api/buildings", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def create_room(client: TestClient, building_id: str, room_number: str, capacity: int = 2) -> dict[str, Any]:
    payload = {"building_id": building_id, "room_number": room_number, "room_type": "custom", "capacity": capacity}
    response = client.post("/api/rooms", json=payload)
    assert response.status_code == 201, response.text
    return response.json()
