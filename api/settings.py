"""
Application settings using pydantic-settings for type-safe configuration.

All environment variables are centralized here with proper typing, validation,
and sensible defaults. Settings are loaded once at startup and cached.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for local development.
    Production values should be set via environment variables or .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # === Storage ===
    database_path: str = Field(
        default="data/housing.db",
        description="SQLite file holding inventory and assignments",
    )
    lock_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Longest a write waits for the database lock before failing with a conflict",
    )

    # === Planner ===
    planner_max_workers: int = Field(
        default=4,
        ge=1,
        le=32,
        description="Rooms committed in parallel during an auto-assign run",
    )
    planner_debug: bool = Field(
        default=False,
        description="Log every planner placement decision",
    )
    planner_logs_dir: str | None = Field(
        default=None,
        description="Directory for per-run JSON planner logs (disabled when unset)",
    )

    # === Roster ===
    roster_source: str = Field(
        default="pocketbase",
        description="Where participants come from: 'pocketbase' or 'memory'",
    )
    participants_collection: str = Field(default="housing_participants")
    group_buckets_collection: str = Field(default="housing_group_buckets")
    skip_pb_auth: bool = Field(
        default=False,
        description="Skip PocketBase authentication on startup (for testing)",
    )

    # === PocketBase Configuration ===
    pocketbase_url: str = Field(
        default="http://127.0.0.1:8090",
        description="PocketBase server URL",
    )
    pocketbase_admin_email: str = Field(
        default="admin@example.org",
        description="PocketBase admin email for API authentication",
    )
    pocketbase_admin_password: str = Field(
        default="",
        description="PocketBase admin password (required - no default for security)",
    )

    # === CORS Configuration ===
    allowed_origins_str: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        alias="ALLOWED_ORIGINS",
        description="Allowed CORS origins (comma-separated)",
    )

    @property
    def allowed_origins(self) -> list[str]:
        """Parse comma-separated origins string into list."""
        return [origin.strip() for origin in self.allowed_origins_str.split(",") if origin.strip()]

    @field_validator("roster_source", mode="after")
    @classmethod
    def validate_roster_source(cls, v: str) -> str:
        v = v.lower()
        if v not in ("pocketbase", "memory"):
            raise ValueError(f"Invalid ROSTER_SOURCE: {v}. Must be 'pocketbase' or 'memory'")
        return v

    @field_validator("pocketbase_admin_password", mode="after")
    @classmethod
    def validate_admin_password(cls, v: str) -> str:
        """Warn when the admin password is unset or an obvious default."""
        if v in {"password", "admin", "123456", ""}:
            logger.warning(
                "SECURITY WARNING: POCKETBASE_ADMIN_PASSWORD is not set or uses an insecure default. "
                "Set a strong password in your .env file for production use."
            )
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded once and cached for the lifetime of the application.
    """
    return Settings()
