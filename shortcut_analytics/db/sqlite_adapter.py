"""
SQLite Database Adapter

This module implements the DatabaseAdapter interface for SQLite.
All SQLite-specific configuration and behavior is encapsulated here.

Key characteristics:
- File-based (single .db file)
- Single writer at a time (file locking), writers wait up to the busy timeout
- Foreign keys are off by default and are switched on per connection
"""

from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from shortcut_analytics.core.setting import settings
from shortcut_analytics.db.interface import DatabaseAdapter


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter implementation.

    Visit ingestion is append-only, so the single-writer model of SQLite only
    costs latency under contention, never correctness.
    """

    def __init__(self, busy_timeout: float = 30.0):
        self.busy_timeout = busy_timeout

    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        """
        Create SQLite async engine with appropriate configuration.

        Args:
            database_url: SQLite connection string (sqlite+aiosqlite:///...)
            **kwargs: Additional engine options (merged with SQLite defaults)

        Returns:
            Configured AsyncEngine for SQLite
        """
        engine_kwargs = self.get_engine_kwargs()
        engine_kwargs.update(kwargs)

        engine = create_async_engine(
            database_url,
            poolclass=self.get_pool_class(),
            connect_args=self.get_connect_args(),
            **engine_kwargs
        )

        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    def get_pool_class(self) -> type[NullPool]:
        """NullPool: a fresh connection per session, nothing shared between event loops."""
        return NullPool

    def get_connect_args(self) -> dict[str, Any]:
        return {
            "check_same_thread": False,
            "timeout": self.busy_timeout,
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False  # Set to True only for SQL debugging in development
        }


def get_database_adapter() -> DatabaseAdapter:
    """
    Factory function to get the database adapter.

    Returns:
        DatabaseAdapter instance
    """
    return SQLiteAdapter(busy_timeout=settings.SQLITE_BUSY_TIMEOUT)
