"""Tests for api/settings module."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from api.settings import Settings


class TestSettingsDefaults:
    """Defaults suit local development without any environment."""

    def test_defaults(self):
        with patch.dict("os.environ", {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.database_path == "data/housing.db"
        assert settings.lock_timeout_seconds == 5.0
        assert settings.planner_max_workers == 4
        assert settings.roster_source == "pocketbase"
        assert settings.planner_logs_dir is None

    def test_allowed_origins_parsed(self):
        with patch.dict("os.environ", {"ALLOWED_ORIGINS": "http://a.test, http://b.test,"}, clear=True):
            settings = Settings(_env_file=None)
        assert settings.allowed_origins == ["http://a.test", "http://b.test"]


class TestSettingsFromEnvironment:
    def test_environment_overrides(self):
        env = {
            "DATABASE_PATH": "/var/lib/housing/housing.db",
            "LOCK_TIMEOUT_SECONDS": "2.5",
            "PLANNER_MAX_WORKERS": "8",
            "ROSTER_SOURCE": "Memory",
        }
        with patch.dict("os.environ", env, clear=True):
            settings = Settings(_env_file=None)

        assert settings.database_path == "/var/lib/housing/housing.db"
        assert settings.lock_timeout_seconds == 2.5
        assert settings.planner_max_workers == 8
        assert settings.roster_source == "memory"

    def test_invalid_roster_source(self):
        with patch.dict("os.environ", {"ROSTER_SOURCE": "csv"}, clear=True):
            with pytest.raises(ValidationError, match="ROSTER_SOURCE"):
                Settings(_env_file=None)

    def test_lock_timeout_must_be_positive(self):
        with patch.dict("os.environ", {"LOCK_TIMEOUT_SECONDS": "0"}, clear=True):
            with pytest.raises(ValidationError):
                Settings(_env_file=None)

    def test_insecure_password_warns(self, caplog):
        with patch.dict("os.environ", {"POCKETBASE_ADMIN_PASSWORD": "admin"}, clear=True):
            Settings(_env_file=None)
        assert "SECURITY WARNING" in caplog.text
