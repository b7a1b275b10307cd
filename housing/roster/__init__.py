"""Participant roster providers."""

from .base import RosterProvider
from .memory import InMemoryRosterProvider
from .pocketbase_roster import PocketBaseRosterProvider

__all__ = [
    "InMemoryRosterProvider",
    "PocketBaseRosterProvider",
    "RosterProvider",
]
