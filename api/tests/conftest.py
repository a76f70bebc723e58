"""Pytest configuration and shared fixtures.

This module provides:
- A throwaway SQLite database per test (aiosqlite, tables from the models)
- Async session fixtures for repository/service tests
- FastAPI test client for route tests
"""

# Set environment variables BEFORE any imports that trigger Settings validation
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RATELIMIT_STORAGE_URI", "memory://")

from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from core.config import clear_settings_cache
from core.database import create_engine, create_session_maker, init_db
from core.wide_event import init_wide_event


@pytest.fixture(autouse=True)
def setup_wide_event():
    """Initialize wide_event context for all tests.

    Services use set_wide_event_fields() which requires context initialization.
    In production this is done by middleware; in tests we do it here.
    """
    init_wide_event()
    yield


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None]:
    """Reset settings cache before each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'heartbeat-test.db'}"


@pytest_asyncio.fixture(scope="function")
async def test_engine(
    database_url: str, monkeypatch: pytest.MonkeyPatch
) -> AsyncGenerator[AsyncEngine]:
    """Engine built the same way the app builds it, on a fresh database file."""
    monkeypatch.setenv("DATABASE_URL", database_url)
    clear_settings_cache()

    engine = create_engine()
    await init_db(engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Session for repository/service tests.

    Nothing is committed unless a test commits; the database file is
    discarded with tmp_path either way.
    """
    session_maker = create_session_maker(test_engine)
    async with session_maker() as session:
        yield session
        await session.rollback()


# =============================================================================
# FastAPI Test Client Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def app(test_engine: AsyncEngine) -> AsyncGenerator[FastAPI]:
    """FastAPI app wired to the test database.

    ASGITransport does not run the lifespan, so app state is set here.
    """
    from main import app as fastapi_app

    fastapi_app.state.engine = test_engine
    fastapi_app.state.session_maker = create_session_maker(test_engine)
    fastapi_app.state.init_done = True
    fastapi_app.state.init_error = None

    yield fastapi_app


@pytest_asyncio.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for testing routes."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio backend for anyio (required by httpx)."""
    return "asyncio"
