"""
Reports Router - occupancy statistics and integrity audit.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from housing.housing_validator import OccupancyStatistics, ValidationResult

from ..dependencies import HousingServices, get_services

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/occupancy")
def occupancy_report(services: HousingServices = Depends(get_services)) -> OccupancyStatistics:
    return services.validator.occupancy_statistics()


@router.get("/validation")
def validation_report(services: HousingServices = Depends(get_services)) -> ValidationResult:
    return services.validator.validate()
