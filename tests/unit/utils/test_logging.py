"""Unit tests for log redaction."""

import logging
from logging.handlers import TimedRotatingFileHandler
from unittest.mock import patch

import pytest

from registry_hub.config.settings import Settings
from registry_hub.utils.logging import (
    REDACTED_VALUE,
    configure_logging,
    get_logger,
    sanitization_processor,
    sanitize_for_logging,
)


@pytest.mark.unit
class TestSanitizeForLogging:
    def test_sensitive_keys(self):
        result = sanitize_for_logging(
            {"password": "hunter2", "api_token": "abc", "database_uri": "x", "user": "admin"}
        )
        assert result == {
            "password": REDACTED_VALUE,
            "api_token": REDACTED_VALUE,
            "database_uri": REDACTED_VALUE,
            "user": "admin",
        }

    def test_credentials_in_uri_value(self):
        result = sanitize_for_logging(
            {"target": "postgresql://reg:pw@db.internal:5432/registry"}
        )
        assert result["target"] == f"postgresql://{REDACTED_VALUE}@db.internal:5432/registry"

    def test_nested_dict(self):
        result = sanitize_for_logging({"store": {"secret_key": "s", "schema": "public"}})
        assert result == {"store": {"secret_key": REDACTED_VALUE, "schema": "public"}}

    def test_processor_keeps_event(self):
        event = sanitization_processor(None, "info", {"event": "x", "password": "p"})
        assert event == {"event": "x", "password": REDACTED_VALUE}


def test_get_logger_returns_bound_logger():
    logger = get_logger("registry_hub.test")
    assert hasattr(logger, "info")


@pytest.mark.unit
class TestConfigureLogging:
    def test_file_handler_and_console_renderer(self, tmp_path):
        settings = Settings(
            _env_file=None,
            log_to_file=True,
            log_file_dir=str(tmp_path),
            log_format="console",
            log_level="debug",
        )
        try:
            with patch("registry_hub.utils.logging.get_settings", return_value=settings):
                configure_logging()
            root = logging.getLogger()
            assert root.level == logging.DEBUG
            assert any(isinstance(h, TimedRotatingFileHandler) for h in root.handlers)
            assert list(tmp_path.glob("registryhub-*.log"))
        finally:
            configure_logging()

    def test_unknown_level_falls_back_to_info(self):
        settings = Settings(_env_file=None, log_level="chatty")
        try:
            with patch("registry_hub.utils.logging.get_settings", return_value=settings):
                configure_logging()
            assert logging.getLogger().level == logging.INFO
        finally:
            configure_logging()
