"""
Root test configuration and fixtures for the housing project.

This conftest.py provides common fixtures for all test categories:
- unit/housing/: engine tests against a throwaway SQLite file
- unit/api/: HTTP tests through FastAPI's TestClient

Note: sys.path manipulation is handled here to ensure imports work correctly.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

# Add project root to path to allow imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from housing.models import Building, HousingType, Room, RoomGender  # noqa: E402
from housing.roster import InMemoryRosterProvider  # noqa: E402
from housing.store import AssignmentLedger, Database, InventoryStore  # noqa: E402
from tests.fixtures.factories import add_building, add_room  # noqa: E402


def create_mock_pocketbase():
    """Create a mock PocketBase instance with chainable collections."""
    mock_pb = Mock()

    mock_collection = Mock()
    mock_collection.auth_with_password = Mock(return_value=True)

    mock_list_response = Mock()
    mock_list_response.items = []
    mock_list_response.total_items = 0
    mock_list_response.total_pages = 1
    mock_list_response.page = 1
    mock_list_response.per_page = 30

    mock_collection.get_full_list = Mock(return_value=[])
    mock_collection.get_list = Mock(return_value=mock_list_response)
    mock_collection.get_one = Mock()

    # Make collection callable to return itself for chaining
    mock_pb.collection = Mock(return_value=mock_collection)

    mock_pb.auth_store = Mock()
    mock_pb.auth_store.base_token = "mock-token"

    return mock_pb


@pytest.fixture
def mock_pocketbase():
    """Create a mock PocketBase instance for tests that need it."""
    return create_mock_pocketbase()


@pytest.fixture(autouse=True)
def mock_all_external_services():
    """Automatically mock PocketBase to prevent real connections.

    Set SKIP_MOCKING=true to talk to a real server.
    """
    if os.environ.get("SKIP_MOCKING") == "true":
        yield {}
        return

    mock_pb = create_mock_pocketbase()
    with patch("api.dependencies.PocketBase") as mock_pb_class:
        mock_pb_class.return_value = mock_pb
        yield {"pocketbase": mock_pb}


# =============================================================================
# Engine fixtures
# =============================================================================


@pytest.fixture
def db(tmp_path: Path) -> Database:
    """Fresh WAL-mode database file per test."""
    database = Database(tmp_path / "housing.db", lock_timeout=5.0)
    database.initialize()
    return database


@pytest.fixture
def inventory(db: Database) -> InventoryStore:
    return InventoryStore(db)


@pytest.fixture
def ledger(db: Database) -> AssignmentLedger:
    return AssignmentLedger(db)


@pytest.fixture
def roster() -> InMemoryRosterProvider:
    return InMemoryRosterProvider()


@pytest.fixture
def male_youth_building(inventory: InventoryStore) -> Building:
    return add_building(inventory, "North Hall", RoomGender.MALE, HousingType.YOUTH_UNDER_18)


@pytest.fixture
def double_room(inventory: InventoryStore, male_youth_building: Building) -> Room:
    """A 2-bed male youth room."""
    return add_room(inventory, male_youth_building, "101", capacity=2)
