"""Tests for settings and logging configuration."""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from edutrack.config import Settings, get_settings
from edutrack.core.logging import configure_structlog, get_logger


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("LOCK_BACKEND", raising=False)
        monkeypatch.delenv("ENVIRONMENT", raising=False)

        settings = Settings(_env_file=None)

        assert settings.app_name == "edutrack"
        assert settings.progress_id_prefix == "lp_"
        assert settings.submission_id_prefix == "qs_"
        assert settings.lock_backend == "memory"
        assert settings.uses_redis_locks is False
        assert settings.is_development is True

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("LOCK_BACKEND", "redis")
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("LOCK_TIMEOUT_SECONDS", "2.5")

        settings = Settings(_env_file=None)

        assert settings.uses_redis_locks is True
        assert settings.is_production is True
        assert settings.lock_timeout_seconds == 2.5

    def test_rejects_unknown_backend(self, monkeypatch):
        monkeypatch.setenv("LOCK_BACKEND", "etcd")

        with pytest.raises(ValueError):
            Settings(_env_file=None)

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()

        assert get_settings() is get_settings()

        get_settings.cache_clear()


class TestConfigureStructlog:
    """Tests for configure_structlog."""

    def test_console_only_by_default(self):
        configure_structlog(Settings(_env_file=None, log_level="DEBUG"))

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert not any(isinstance(h, RotatingFileHandler) for h in root.handlers)

    def test_json_file_output(self, tmp_path):
        settings = Settings(
            _env_file=None, log_to_file=True, log_format="json", log_level="INFO"
        )

        configure_structlog(settings, log_dir=tmp_path)
        get_logger("test").info("file_logging_works", answer=42)
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = (tmp_path / "edutrack.log").read_text()
        assert "file_logging_works" in content
        assert '"answer": 42' in content

        for handler in logging.getLogger().handlers:
            if isinstance(handler, RotatingFileHandler):
                handler.close()
        logging.getLogger().handlers.clear()
