"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from pennywise.database.sqlalchemy_db import SQLAlchemyDatabase


def default_database_path() -> str:
    """Return the SQLite path used when none is configured.

    Checks the PENNYWISE_DB_PATH environment variable, then falls back to
    ~/.pennywise/pennywise.db (creating the directory).
    """
    database_path = os.environ.get("PENNYWISE_DB_PATH")
    if database_path:
        return database_path

    db_dir = Path.home() / ".pennywise"
    db_dir.mkdir(exist_ok=True)
    return str(db_dir / "pennywise.db")


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, uses
            default_database_path()

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        database_path = default_database_path()
    return SQLAlchemyDatabase(f"sqlite:///{database_path}")


def create_database(database_url: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a database from a SQLAlchemy URL, defaulting to local SQLite."""
    if not database_url:
        return create_sqlite_database()
    return SQLAlchemyDatabase(database_url)
