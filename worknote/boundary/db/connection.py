"""
Database connection management.

Provides async SQLAlchemy engine, session factory, and FastAPI dependency
for database session injection.

Dependencies: sqlalchemy, worknote.configs
System role: Database connection lifecycle management
"""

from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from worknote.boundary.db.base import Base
from worknote.boundary.db import models  # noqa: F401  registers tables on Base.metadata
from worknote.configs import get_settings


def enable_sqlite_savepoints(engine: AsyncEngine) -> AsyncEngine:
    """
    Let SQLAlchemy own BEGIN on SQLite so SAVEPOINTs nest correctly.

    The sqlite3 driver starts transactions lazily and on its own terms,
    which breaks begin_nested(). Driver-level transaction handling is
    switched off and BEGIN is emitted whenever SQLAlchemy begins.

    Args:
        engine: Async engine on the sqlite+aiosqlite dialect

    Returns:
        AsyncEngine: The same engine, for chaining
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


@lru_cache
def get_async_engine() -> AsyncEngine:
    """
    Create async SQLAlchemy engine with connection pooling.

    Pooling options apply to PostgreSQL only; SQLite (local development)
    uses SQLAlchemy's default pool. pool_pre_ping=True verifies connections
    before use to detect stale/broken connections early.

    Returns:
        AsyncEngine: Configured async SQLAlchemy engine, shared per process

    Usage:
        engine = get_async_engine()
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
    """
    db_config = get_settings().database

    if db_config.is_sqlite:
        return enable_sqlite_savepoints(
            create_async_engine(db_config.async_database_url, echo=db_config.echo_sql)
        )

    return create_async_engine(
        db_config.async_database_url,
        echo=db_config.echo_sql,
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_pre_ping=True,
    )


@lru_cache
def get_async_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Create async session factory for database operations.

    Returns async_sessionmaker bound to the engine with autoflush=False for
    explicit transaction control. The background sweeper opens one session
    per retry item from this factory.

    Returns:
        async_sessionmaker: Async session factory configured for manual transaction control

    Usage:
        SessionFactory = get_async_session_factory()
        async with SessionFactory() as session:
            session.add(obj)
            await session.commit()
    """
    return async_sessionmaker(
        bind=get_async_engine(),
        autoflush=False,
        expire_on_commit=False,
    )


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for async database session injection with automatic cleanup.

    Yields:
        AsyncSession: Async SQLAlchemy database session (scoped to request lifetime)

    Usage:
        from fastapi import Depends

        @router.get("/admin/embedding-failures")
        async def list_failures(db: AsyncSession = Depends(get_async_db)):
            ...
    """
    SessionFactory = get_async_session_factory()
    async with SessionFactory() as session:
        yield session


async def dispose_engine() -> None:
    """Close pooled connections on application shutdown."""
    if get_async_engine.cache_info().currsize:
        await get_async_engine().dispose()


async def create_tables() -> None:
    """
    Create all tables on the configured engine.

    Used for SQLite development databases; PostgreSQL schemas are managed
    by migrations.
    """
    async with get_async_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
