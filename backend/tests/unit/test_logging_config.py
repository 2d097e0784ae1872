"""Tests for centralized logging configuration."""

import logging

import pytest
from pydantic import ValidationError

from config import Settings
from logging_config import QUIET_LOGGERS, setup_logging


@pytest.fixture
def info_settings(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    test_settings = Settings()
    monkeypatch.setattr("logging_config.settings", test_settings)
    return test_settings


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_root_level_from_settings(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setattr("logging_config.settings", Settings())

        setup_logging()

        assert logging.getLogger().level == logging.DEBUG

    def test_default_info(self, info_settings):
        setup_logging()

        assert logging.getLogger().level == logging.INFO

    def test_explicit_level_overrides_settings(self, info_settings):
        """The sync CLI's --verbose passes DEBUG regardless of LOG_LEVEL."""
        setup_logging("debug")

        assert logging.getLogger().level == logging.DEBUG

    def test_plaid_sdk_logger_suppressed(self, info_settings):
        logging.getLogger("plaid").setLevel(logging.DEBUG)

        setup_logging()

        assert logging.getLogger("plaid").level == logging.WARNING
        # Child loggers inherit the clamp
        assert logging.getLogger("plaid.api_client").getEffectiveLevel() == logging.WARNING

    def test_quiet_loggers_stay_at_warning_in_debug(self, info_settings):
        setup_logging("DEBUG")

        for name in QUIET_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING, (
                f"{name} logger not suppressed"
            )

    def test_invalid_log_level_rejected(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "VERBOS")
        with pytest.raises(ValidationError, match="LOG_LEVEL"):
            Settings()

    def test_log_level_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert Settings().LOG_LEVEL == "DEBUG"
