"""SQLite-backed inventory and assignment ledger."""

from .database import Database
from .inventory import InventoryStore
from .ledger import AssignmentLedger

__all__ = [
    "AssignmentLedger",
    "Database",
    "InventoryStore",
]
