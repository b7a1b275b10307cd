#!/usr/bin/env python3
"""
Housing API - HTTP API layer for the housing allocation engine.

This FastAPI application exposes:
- Inventory maintenance (buildings, rooms, bulk creation, import)
- Manual bed assignment
- Auto-assign planner runs
- Occupancy and integrity reports
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from housing.errors import (
    CapacityBelowOccupancy,
    Conflict,
    DuplicateRoomNumber,
    GenderMismatch,
    HousingError,
    HousingTypeMismatch,
    InventoryError,
    NotFound,
    RoomFull,
    RoomUnavailable,
)
from housing.logging_config import configure_logging, get_logger

from .dependencies import authenticate_pb, get_services
from .settings import get_settings

# Configure unified logging format
# Format: 2026-01-06T14:05:52Z [api] LEVEL message
configure_logging(source="api")
logger = get_logger(__name__)

# Most specific class first; the first match wins
ERROR_STATUS: list[tuple[type[HousingError], int]] = [
    (NotFound, 404),
    (RoomFull, 409),
    (Conflict, 409),
    (DuplicateRoomNumber, 409),
    (CapacityBelowOccupancy, 409),
    (RoomUnavailable, 422),
    (GenderMismatch, 422),
    (HousingTypeMismatch, 422),
    (InventoryError, 422),
]


def status_for(error: HousingError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(error, error_type):
            return status_code
    return 400


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle - startup and shutdown."""
    settings = get_settings()
    services = get_services()

    if services.pb_client is not None:
        if not settings.skip_pb_auth:
            await authenticate_pb(services.pb_client)
        else:
            logger.warning("Skipping PocketBase authentication (SKIP_PB_AUTH=true)")

    logger.info(f"Housing API ready (database: {settings.database_path}, roster: {settings.roster_source})")
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(title="Housing API", description="Housing allocation engine API", lifespan=lifespan)

    @app.exception_handler(HousingError)
    async def housing_error_handler(request: Request, exc: HousingError) -> JSONResponse:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.code}): {exc.message}")
        return JSONResponse(status_code=status_for(exc), content={"detail": exc.message, "code": exc.code})

    settings = get_settings()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    from .routers import assignments, auto_assign, inventory, reports

    app.include_router(inventory.router)
    app.include_router(assignments.router)
    app.include_router(auto_assign.router)
    app.include_router(reports.router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "service": "housing-api"}

    return app


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn

    from housing.uvicorn_logging import UVICORN_LOGGING_CONFIG

    uvicorn.run(app, host="0.0.0.0", port=8000, log_config=UVICORN_LOGGING_CONFIG)
