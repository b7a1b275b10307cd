"""
Shared dependencies for the Housing API.

This module provides:
- Construction of the housing engine from settings (database, stores, planner)
- PocketBase client management for the roster
- The FastAPI dependency handing the engine to routers
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from pocketbase import PocketBase

from housing.housing_validator import HousingValidator
from housing.manual import ManualAssignmentService
from housing.planner import AutoAssignPlanner, PlannerRunRegistry
from housing.roster import InMemoryRosterProvider, PocketBaseRosterProvider, RosterProvider
from housing.store import AssignmentLedger, Database, InventoryStore

from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class HousingServices:
    """Everything the routers need, wired once per process."""

    database: Database
    inventory: InventoryStore
    ledger: AssignmentLedger
    roster: RosterProvider
    manual: ManualAssignmentService
    planner: AutoAssignPlanner
    runs: PlannerRunRegistry
    validator: HousingValidator
    pb_client: PocketBase | None = None


def build_services(settings: Settings, roster: RosterProvider | None = None) -> HousingServices:
    """Wire the engine; `roster` overrides the configured roster source."""
    database = Database(settings.database_path, lock_timeout=settings.lock_timeout_seconds)
    database.initialize()

    pb_client = None
    if roster is None:
        if settings.roster_source == "pocketbase":
            pb_client = PocketBase(settings.pocketbase_url)
            roster = PocketBaseRosterProvider(
                pb_client,
                participants_collection=settings.participants_collection,
                buckets_collection=settings.group_buckets_collection,
            )
        else:
            roster = InMemoryRosterProvider()

    inventory = InventoryStore(database)
    ledger = AssignmentLedger(database)
    planner = AutoAssignPlanner(inventory, ledger, roster, max_workers=settings.planner_max_workers)

    return HousingServices(
        database=database,
        inventory=inventory,
        ledger=ledger,
        roster=roster,
        manual=ManualAssignmentService(ledger, roster),
        planner=planner,
        runs=PlannerRunRegistry(planner, debug_mode=settings.planner_debug, logs_dir=settings.planner_logs_dir),
        validator=HousingValidator(inventory, ledger, roster),
        pb_client=pb_client,
    )


async def authenticate_pb(pb_client: PocketBase) -> None:
    """Authenticate with PocketBase as admin."""
    settings = get_settings()
    try:
        await asyncio.to_thread(
            pb_client.collection("_superusers").auth_with_password,
            settings.pocketbase_admin_email,
            settings.pocketbase_admin_password,
        )
        logger.info("Successfully authenticated with PocketBase")
    except Exception as e:
        logger.error(f"Failed to authenticate with PocketBase: {e}")
        raise


_services: HousingServices | None = None


def init_services(services: HousingServices | None = None) -> HousingServices:
    """Install the process-wide engine (built from settings unless given)."""
    global _services
    _services = services or build_services(get_settings())
    return _services


def get_services() -> HousingServices:
    """FastAPI dependency returning the housing engine."""
    if _services is None:
        return init_services()
    return _services
