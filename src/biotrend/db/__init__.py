"""SQLite persistence for readings, plate checks and profiles."""

from biotrend.db.connection import DatabaseConnection, get_db, set_db

__all__ = ["DatabaseConnection", "get_db", "set_db"]
