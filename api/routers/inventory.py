"""
Inventory Router - buildings and rooms maintenance.

Endpoints are synchronous; FastAPI runs them in its threadpool, and every
call opens its own database connection.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status

from housing.models import (
    Building,
    BuildingCreate,
    BuildingUpdate,
    BulkRoomCreate,
    DeletionSummary,
    InventoryImportResult,
    Room,
    RoomCreate,
    RoomUpdate,
)

from ..dependencies import HousingServices, get_services
from ..schemas import InventoryImportRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["inventory"])


# ========================================
# Buildings
# ========================================


@router.get("/buildings")
def list_buildings(services: HousingServices = Depends(get_services)) -> list[Building]:
    return services.inventory.list_buildings()


@router.post("/buildings", status_code=status.HTTP_201_CREATED)
def create_building(data: BuildingCreate, services: HousingServices = Depends(get_services)) -> Building:
    return services.inventory.create_building(data)


@router.get("/buildings/{building_id}")
def get_building(building_id: str, services: HousingServices = Depends(get_services)) -> Building:
    return services.inventory.get_building(building_id)


@router.put("/buildings/{building_id}")
def update_building(
    building_id: str, data: BuildingUpdate, services: HousingServices = Depends(get_services)
) -> Building:
    return services.inventory.update_building(building_id, data)


@router.delete("/buildings/{building_id}")
def delete_building(building_id: str, services: HousingServices = Depends(get_services)) -> DeletionSummary:
    """Delete a building with all its rooms and the assignments in them."""
    return services.inventory.delete_building(building_id)


@router.post("/buildings/{building_id}/rooms/bulk", status_code=status.HTTP_201_CREATED)
def bulk_create_rooms(
    building_id: str, request: BulkRoomCreate, services: HousingServices = Depends(get_services)
) -> list[Room]:
    """Create rooms {prefix}{n}{suffix} for n in [start_number, end_number]; all or nothing."""
    return services.inventory.bulk_create_rooms(building_id, request)


# ========================================
# Rooms
# ========================================


@router.get("/rooms")
def list_rooms(building_id: str | None = None, services: HousingServices = Depends(get_services)) -> list[Room]:
    return services.inventory.list_rooms(building_id)


@router.post("/rooms", status_code=status.HTTP_201_CREATED)
def create_room(data: RoomCreate, services: HousingServices = Depends(get_services)) -> Room:
    return services.inventory.create_room(data)


@router.get("/rooms/{room_id}")
def get_room(room_id: str, services: HousingServices = Depends(get_services)) -> Room:
    return services.inventory.get_room(room_id)


@router.put("/rooms/{room_id}")
def update_room(room_id: str, data: RoomUpdate, services: HousingServices = Depends(get_services)) -> Room:
    return services.inventory.update_room(room_id, data)


@router.delete("/rooms/{room_id}")
def delete_room(room_id: str, services: HousingServices = Depends(get_services)) -> DeletionSummary:
    return services.inventory.delete_room(room_id)


# ========================================
# Import
# ========================================


@router.post("/inventory/import", status_code=status.HTTP_201_CREATED)
def import_inventory(
    request: InventoryImportRequest, services: HousingServices = Depends(get_services)
) -> InventoryImportResult:
    result = services.inventory.import_inventory(request.rows)
    logger.info(f"Inventory import: {result.buildings_created} buildings, {result.rooms_created} rooms")
    return result
