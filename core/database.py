"""
SQLAlchemy async database client for the scheduling services.

Provides async connection management using SQLAlchemy Core with asyncpg.
"""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from .tables import metadata  # noqa: F401 - exported for Alembic

# Module-level engine (created on first use)
_engine: AsyncEngine | None = None

def _get_database_url() -> str:
    """
    Construct async database URL from environment variables.

    For asyncpg, postgresql:// URLs are rewritten to postgresql+asyncpg://.
    Other async URLs (e.g. sqlite+aiosqlite://) are used as given.
    """
    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        raise ValueError("DATABASE_URL environment variable must be set.")

    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    return database_url

def get_engine() -> AsyncEngine:
    """Get or create the async SQLAlchemy engine singleton."""
    global _engine
    if _engine is None:
        database_url = _get_database_url()
        options = {"echo": os.environ.get("SQL_ECHO", "").lower() == "true"}
        if database_url.startswith("postgresql"):
            # Connection pool settings
            options.update(
                pool_size=5,
                max_overflow=10,
                pool_timeout=30,
                pool_recycle=1800,  # Recycle connections every 30 minutes
            )
        _engine = create_async_engine(database_url, **options)
        if database_url.startswith("sqlite"):
            use_immediate_transactions(_engine)
    return _engine

def use_immediate_transactions(engine: AsyncEngine) -> None:
    """
    Make every SQLite transaction take the database write lock at BEGIN.

    SQLite ignores SELECT ... FOR UPDATE, so without this two writers can
    both read the same venue timetable before either inserts. BEGIN IMMEDIATE
    makes the second writer wait until the first commits.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        # Stop the driver from issuing its own BEGIN
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

def set_engine(engine: AsyncEngine | None) -> None:
    """Install an externally created engine (used by tests)."""
    global _engine
    _engine = engine

@asynccontextmanager
async def get_connection() -> AsyncGenerator[AsyncConnection, None]:
    """
    Get an async database connection from the pool.

    Usage:
        async with get_connection() as conn:
            result = await conn.execute(select(users))
            row = result.mappings().first()
    """
    engine = get_engine()
    async with engine.connect() as conn:
        yield conn

@asynccontextmanager
async def get_transaction() -> AsyncGenerator[AsyncConnection, None]:
    """
    Get an async database connection with automatic transaction management.
    Commits on success, rolls back on exception.

    Usage:
        async with get_transaction() as conn:
            await conn.execute(insert(schedules).values(...))
            # Auto-commits if no exception
    """
    engine = get_engine()
    async with engine.begin() as conn:
        yield conn

async def close_engine() -> None:
    """Close the engine and all connections. Call on shutdown."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None

def get_sync_database_url() -> str:
    """
    Get synchronous database URL for Alembic migrations.

    Alembic runs migrations synchronously, so we need a psycopg2 URL.
    """
    database_url = os.environ.get("DATABASE_URL", "")

    if "postgresql+asyncpg://" in database_url:
        return database_url.replace("postgresql+asyncpg://", "postgresql://")
    if database_url.startswith("postgresql://"):
        return database_url

    raise ValueError("DATABASE_URL must be a PostgreSQL URL for migrations")
