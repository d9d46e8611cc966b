"""SQLite connection management for the local tracking store."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from biotrend.db.schema import TRACKING_TABLES, get_schema_sql

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """Opens short-lived sqlite3 connections to one database file.

    Every connection has foreign keys enforced and rows returned as
    ``sqlite3.Row`` so columns can be read by name.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Yield a connection that commits on success and rolls back on error.

        Example:
            with db.get_connection() as conn:
                readings = WeightQueries.get_readings(conn, user_id)
        """
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def initialize_schema(self) -> None:
        """Create profile, weight and plate-check tables if they don't exist."""
        with self.get_connection() as conn:
            conn.executescript(get_schema_sql())

    def missing_tables(self) -> list[str]:
        """Return the tracking tables not yet present in the database."""
        with self.get_connection() as conn:
            rows = conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table'"
            ).fetchall()
        present = {row["name"] for row in rows}
        return [name for name in TRACKING_TABLES if name not in present]

    def ensure_schema(self) -> None:
        """Create the schema only when a tracking table is missing."""
        missing = self.missing_tables()
        if missing:
            logger.info("Creating tracking tables in %s: %s", self.db_path, ", ".join(missing))
            self.initialize_schema()


# Global database instance (lazy loaded)
_db: Optional[DatabaseConnection] = None


def get_db() -> DatabaseConnection:
    """Return the process-wide database, opened at the configured path."""
    global _db
    if _db is None:
        from biotrend.config import get_settings

        _db = DatabaseConnection(get_settings().database.path)
        logger.debug("Using database %s", _db.db_path)
    return _db


def set_db(db: Optional[DatabaseConnection]) -> None:
    """Override the global database (tests); None restores the configured one."""
    global _db
    _db = db
