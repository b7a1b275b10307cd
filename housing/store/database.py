"""
SQLite connection and transaction management.

The database file runs in WAL mode so readers never block on the single
writer. Each operation opens its own connection; every write runs inside
BEGIN IMMEDIATE, so capacity checks and inserts see a consistent snapshot
and concurrent writers queue on the database lock. The connection timeout
bounds that wait; exceeding it surfaces as Conflict.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from ..errors import Conflict

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS buildings (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    gender TEXT NOT NULL,
    housing_type TEXT NOT NULL,
    floor_count INTEGER NOT NULL DEFAULT 1,
    display_order INTEGER NOT NULL DEFAULT 0,
    notes TEXT
);

CREATE TABLE IF NOT EXISTS rooms (
    id TEXT PRIMARY KEY,
    building_id TEXT NOT NULL REFERENCES buildings(id) ON DELETE CASCADE,
    room_number TEXT NOT NULL,
    floor INTEGER NOT NULL DEFAULT 1,
    capacity INTEGER NOT NULL CHECK (capacity >= 1),
    room_type TEXT NOT NULL DEFAULT 'double',
    purpose TEXT NOT NULL DEFAULT 'housing',
    gender TEXT,
    housing_type TEXT,
    is_available INTEGER NOT NULL DEFAULT 1,
    is_ada_accessible INTEGER NOT NULL DEFAULT 0,
    ada_features TEXT,
    notes TEXT,
    UNIQUE (building_id, room_number)
);

CREATE TABLE IF NOT EXISTS assignments (
    id TEXT PRIMARY KEY,
    room_id TEXT NOT NULL REFERENCES rooms(id) ON DELETE CASCADE,
    bed_number INTEGER NOT NULL CHECK (bed_number >= 1),
    kind TEXT NOT NULL,
    participant_id TEXT,
    group_id TEXT,
    gender TEXT NOT NULL,
    cohort TEXT NOT NULL,
    parish TEXT,
    assigned_by TEXT,
    created_at TEXT NOT NULL,
    UNIQUE (room_id, bed_number)
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_assignments_participant
    ON assignments(participant_id) WHERE participant_id IS NOT NULL;
CREATE INDEX IF NOT EXISTS idx_assignments_group
    ON assignments(group_id, gender, cohort);
CREATE INDEX IF NOT EXISTS idx_rooms_building ON rooms(building_id);
"""


def _is_lock_error(error: sqlite3.OperationalError) -> bool:
    message = str(error).lower()
    return "locked" in message or "busy" in message


def _rollback(conn: sqlite3.Connection) -> None:
    if conn.in_transaction:
        conn.execute("ROLLBACK")


class Database:
    """Handle on one SQLite database file."""

    def __init__(self, path: str | Path, lock_timeout: float = 5.0):
        self.path = Path(path)
        self.lock_timeout = lock_timeout

    def connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            str(self.path),
            timeout=self.lock_timeout,
            isolation_level=None,  # Transactions are managed explicitly
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def initialize(self) -> None:
        """Create the schema and switch the file to WAL mode."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = self.connect()
        try:
            conn.execute("PRAGMA journal_mode = WAL")
            conn.executescript(SCHEMA)
        finally:
            conn.close()
        logger.info(f"Housing database ready at {self.path}")

    @contextmanager
    def read(self) -> Iterator[sqlite3.Connection]:
        """Connection for read-only queries (autocommit, WAL snapshot per statement)."""
        conn = self.connect()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Write transaction holding the database write lock until commit.

        Any exception rolls back everything done inside the block. Lock
        timeouts and constraint violations are raised as Conflict.
        """
        conn = self.connect()
        try:
            try:
                conn.execute("BEGIN IMMEDIATE")
            except sqlite3.OperationalError as e:
                if _is_lock_error(e):
                    logger.warning(f"Write lock not acquired within {self.lock_timeout}s")
                    raise Conflict(f"Database is busy; lock not acquired within {self.lock_timeout}s") from e
                raise

            try:
                yield conn
                conn.execute("COMMIT")
            except sqlite3.IntegrityError as e:
                _rollback(conn)
                logger.debug(f"Constraint violation rolled back: {e}")
                raise Conflict(f"Concurrent change detected: {e}") from e
            except sqlite3.OperationalError as e:
                _rollback(conn)
                if _is_lock_error(e):
                    raise Conflict(f"Database is busy: {e}") from e
                raise
            except BaseException:
                _rollback(conn)
                raise
        finally:
            conn.close()
