"""Database layer for forecastit application."""

from forecastit.database.base import Database
from forecastit.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
