"""
Fixtures for API tests: a real engine on a temporary database behind TestClient.
"""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from api.dependencies import HousingServices, build_services, init_services
from api.settings import Settings
from housing.roster import InMemoryRosterProvider


@pytest.fixture
def services(tmp_path: Path, roster: InMemoryRosterProvider) -> HousingServices:
    settings = Settings(
        _env_file=None,
        database_path=str(tmp_path / "housing.db"),
        roster_source="memory",
        planner_max_workers=2,
    )
    return build_services(settings, roster=roster)


@pytest.fixture
def client(services: HousingServices) -> Generator[TestClient, None, None]:
    init_services(services)
    from api.main import app

    with TestClient(app) as test_client:
        yield test_client
