"""
Uvicorn logging configuration for the Housing API.

Keeps access and server logs in the unified format
    2026-01-06T14:05:52Z [uvicorn] LEVEL message
and drops health check requests from the access log unless DEBUG is on.

Usage:
    uvicorn.run(app, log_config=UVICORN_LOGGING_CONFIG)
"""

from __future__ import annotations

import logging
from typing import Any

from .logging_config import HealthCheckFilter, ISO8601Formatter


class UvicornAccessFilter(HealthCheckFilter):
    """Drop health check access lines unless the root logger is at DEBUG."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        for path in self.HEALTH_PATHS:
            if f'"GET {path} ' in message or f'"{path}"' in message:
                return logging.getLogger().isEnabledFor(logging.DEBUG)
        return True


UVICORN_LOGGING_CONFIG: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "health_filter": {"()": UvicornAccessFilter},
    },
    "formatters": {
        "default": {"()": ISO8601Formatter, "source": "uvicorn"},
    },
    "handlers": {
        "default": {
            "formatter": "default",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
        },
        "access": {
            "formatter": "default",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "filters": ["health_filter"],
        },
    },
    "loggers": {
        "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "uvicorn.error": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "uvicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
    },
}
