"""Database layer for pennywise application."""

from pennywise.database.base import Database
from pennywise.database.factories import create_database, create_sqlite_database
from pennywise.database.sqlalchemy_db import SQLAlchemyDatabase

__all__ = ["Database", "SQLAlchemyDatabase", "create_database", "create_sqlite_database"]
