"""Database engine, session, and health checks.

Backends:
- PostgreSQL via asyncpg (production), pooled
- SQLite via aiosqlite (local development fallback and tests)
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncGenerator
from typing import Annotated, NamedTuple

from fastapi import Depends, Request
from sqlalchemy import event, func, select, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from core.config import get_settings
from core.logger import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    pass


class HealthCheckEntry(NamedTuple):
    """Outcome of a single named health check."""

    name: str
    healthy: bool
    description: str
    duration_ms: float


def _enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_engine() -> AsyncEngine:
    settings = get_settings()

    engine_kwargs: dict = {"echo": settings.db_echo}
    if not settings.is_sqlite:
        engine_kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_pool_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
            connect_args={
                "server_settings": {
                    "statement_timeout": str(settings.db_statement_timeout_ms)
                }
            },
        )

    engine = create_async_engine(settings.database_url, **engine_kwargs)

    if settings.is_sqlite:
        _enable_sqlite_foreign_keys(engine)
        logger.info("db.engine.created", backend="sqlite")
    else:
        logger.info("db.engine.created", backend="postgresql")

    return engine


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def get_db(request: Request) -> AsyncGenerator[AsyncSession]:
    """Auto-commits on success, rolls back on exception.

    Notes:
        - Use flush() if you need auto-generated IDs mid-request
        - Do NOT call commit() - this dependency handles it
    """
    session_maker: async_sessionmaker[AsyncSession] = request.app.state.session_maker
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            try:
                await session.rollback()
            except Exception as rollback_err:
                logger.warning("db.rollback.failed", error=str(rollback_err))
            raise


DbSession = Annotated[AsyncSession, Depends(get_db)]


async def init_db(engine: AsyncEngine) -> None:
    """Verify the database is reachable and create any missing tables.

    create_all() only adds missing tables; it never alters existing ones.
    """
    # Register models with Base.metadata
    import models  # noqa: F401

    logger.info("db.connectivity.verifying")
    async with asyncio.timeout(30):
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            await conn.run_sync(Base.metadata.create_all)
    logger.info("db.schema.ready")


async def dispose_engine(engine: AsyncEngine) -> None:
    await engine.dispose()
    logger.info("db.engine.disposed")


async def check_db_connection(engine: AsyncEngine) -> None:
    """Verify database is reachable and the users table is queryable (30s timeout)."""
    from models import User

    async with asyncio.timeout(30):
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
            await conn.execute(select(func.count()).select_from(User))
            await conn.rollback()


async def database_health_check(engine: AsyncEngine) -> HealthCheckEntry:
    """Named database check used by the liveness and readiness probes."""
    start_time = time.perf_counter()
    try:
        await check_db_connection(engine)
    except Exception as e:
        logger.warning("db.health_check.failed", error=str(e), exc_type=type(e).__name__)
        return HealthCheckEntry(
            name="database",
            healthy=False,
            description="Database health check failed",
            duration_ms=(time.perf_counter() - start_time) * 1000,
        )
    return HealthCheckEntry(
        name="database",
        healthy=True,
        description="Database is accessible",
        duration_ms=(time.perf_counter() - start_time) * 1000,
    )
