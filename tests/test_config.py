"""Tests for settings and rate limit resolution."""

import logging

import pytest
from pydantic import ValidationError

from taskboard import logging_setup
from taskboard.api import rate_limit
from taskboard.config import Settings
from taskboard.logging_setup import setup_logging


class TestSettings:
    def test_defaults(self):
        """Test default settings."""
        settings = Settings(_env_file=None, database_url="sqlite+aiosqlite:///:memory:")
        assert settings.default_page_size == 10
        assert settings.max_page_size == 100
        assert settings.allowed_roles == {"user", "admin"}

    def test_env_prefix(self, monkeypatch):
        """Test reading settings from TASKBOARD_ variables."""
        monkeypatch.setenv("TASKBOARD_MAX_PAGE_SIZE", "50")
        assert Settings(_env_file=None).max_page_size == 50

    def test_log_level_normalized(self):
        """Test log level normalization."""
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level(self):
        """Test an unknown log level."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="chatty")

    def test_default_page_size_within_max(self):
        """Test page size bounds."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, default_page_size=200, max_page_size=100)

    def test_memory_database_needs_no_directory(self, tmp_path):
        """Test that in-memory SQLite needs no data directory."""
        data_dir = tmp_path / "data"
        Settings(
            _env_file=None,
            data_dir=data_dir,
            database_url="sqlite+aiosqlite:///:memory:",
        ).setup_directories()
        assert not data_dir.exists()

    def test_file_database_creates_directory(self, tmp_path):
        """Test that file SQLite gets its data directory."""
        data_dir = tmp_path / "data"
        Settings(
            _env_file=None,
            data_dir=data_dir,
            database_url=f"sqlite+aiosqlite:///{data_dir / 'tb.db'}",
        ).setup_directories()
        assert data_dir.is_dir()


class TestRateLimits:
    def test_disabled_is_effectively_unlimited(self, monkeypatch):
        """Test limits when rate limiting is off."""
        settings = Settings(_env_file=None, rate_limit_enabled=False)
        monkeypatch.setattr(rate_limit, "get_settings", lambda: settings)

        assert rate_limit.default_rate_limit() == rate_limit.write_rate_limit() == "1000000/minute"

    def test_enabled_uses_configured_limits(self, monkeypatch):
        """Test limits when rate limiting is on."""
        settings = Settings(_env_file=None, rate_limit_enabled=True)
        monkeypatch.setattr(rate_limit, "get_settings", lambda: settings)

        assert rate_limit.default_rate_limit() == "100/minute"
        assert rate_limit.write_rate_limit() == "60/minute"


class TestLoggingSetup:
    def test_quiets_third_party_loggers(self):
        """Test that chatty client and driver loggers are raised to WARNING."""
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        try:
            setup_logging("INFO")
            for name in ("aiosqlite", "httpx", "httpcore"):
                assert logging.getLogger(name).level == logging.WARNING
            assert "multipart" not in logging_setup._QUIET_LOGGERS
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
