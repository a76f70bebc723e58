"""Unit tests for core.config module.

Tests cover:
- Settings model_validator database URL checks
- is_sqlite / docs_enabled properties
- allowed_origins computed property with deduplication
- get_settings / clear_settings_cache lru_cache behavior
"""

import pytest
from pydantic import ValidationError

from core.config import Settings, clear_settings_cache, get_settings


@pytest.fixture(autouse=True)
def _clear_settings():
    """Clear lru_cache between tests."""
    clear_settings_cache()
    yield
    clear_settings_cache()


# ---------------------------------------------------------------------------
# Settings validation
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestSettingsValidation:
    def test_sqlite_url_accepted(self):
        settings = Settings(database_url="sqlite+aiosqlite:///./heartbeat.db")
        assert settings.is_sqlite is True

    def test_postgres_url_accepted(self):
        settings = Settings(database_url="postgresql+asyncpg://localhost/heartbeat")
        assert settings.is_sqlite is False

    def test_requires_database_url(self):
        with pytest.raises(ValidationError, match="DATABASE_URL must be set"):
            Settings(database_url="")

    def test_requires_async_driver(self):
        with pytest.raises(ValidationError, match="async driver"):
            Settings(database_url="postgresql://localhost/heartbeat")

    def test_settings_are_frozen(self):
        settings = Settings(database_url="sqlite+aiosqlite:///:memory:")
        with pytest.raises(ValidationError):
            settings.debug = True

    def test_production_defaults(self):
        settings = Settings(database_url="sqlite+aiosqlite:///:memory:")
        assert settings.debug is False
        assert settings.enable_docs is False
        assert settings.register_rate_limit == "30/minute"


# ---------------------------------------------------------------------------
# docs_enabled
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestDocsEnabled:
    @pytest.mark.parametrize(
        ("debug", "enable_docs", "expected"),
        [
            (False, False, False),
            (True, False, True),
            (False, True, True),
        ],
    )
    def test_docs_enabled(self, debug: bool, enable_docs: bool, expected: bool):
        s = Settings(
            database_url="sqlite+aiosqlite:///:memory:",
            debug=debug,
            enable_docs=enable_docs,
        )
        assert s.docs_enabled is expected


# ---------------------------------------------------------------------------
# allowed_origins
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestAllowedOrigins:
    def test_empty_by_default(self):
        s = Settings(database_url="sqlite+aiosqlite:///:memory:")
        assert s.allowed_origins == []

    def test_cors_allowed_origins_csv_parsed(self):
        s = Settings(
            database_url="sqlite+aiosqlite:///:memory:",
            cors_allowed_origins="https://a.com, https://b.com",
        )
        assert s.allowed_origins == ["https://a.com", "https://b.com"]

    def test_deduplication_and_blank_entries(self):
        s = Settings(
            database_url="sqlite+aiosqlite:///:memory:",
            cors_allowed_origins="https://a.com,,https://a.com , ",
        )
        assert s.allowed_origins == ["https://a.com"]


# ---------------------------------------------------------------------------
# get_settings / clear_settings_cache
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestGetSettings:
    def test_returns_same_instance(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
        s1 = get_settings()
        s2 = get_settings()
        assert s1 is s2

    def test_clear_cache_rereads_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
        monkeypatch.setenv("DEBUG", "false")
        s1 = get_settings()

        monkeypatch.setenv("DEBUG", "true")
        clear_settings_cache()
        s2 = get_settings()

        assert s1 is not s2
        assert s2.debug is True
