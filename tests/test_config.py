"""
Tests for settings and their environment loading.
"""

import pytest
from pydantic import ValidationError

from apicontract.app import get_settings
from apicontract.config import LoggingConfig, Settings


@pytest.fixture
def fresh_settings():
    get_settings.cache_clear()
    yield get_settings
    get_settings.cache_clear()


class TestSettings:
    """Tests for the Settings model."""

    def test_defaults(self):
        settings = Settings()
        assert settings.environment == "development"
        assert not settings.is_production
        assert settings.health_check.path == "/"
        assert settings.latency_tracker.header == "x-latency-ms"
        assert not settings.logging.report_error_detail

    def test_production(self):
        assert Settings(environment="prod").is_production

    def test_unknown_environment_rejected(self):
        with pytest.raises(ValidationError):
            Settings(environment="staging")

    def test_unknown_keys_rejected(self):
        with pytest.raises(ValidationError):
            Settings(sevice_name="typo")
        with pytest.raises(ValidationError):
            LoggingConfig(report_everything=True)


class TestGetSettings:
    """Tests for loading settings from the environment."""

    def test_defaults_without_environment(self, fresh_settings, monkeypatch):
        monkeypatch.delenv("APICONTRACT_ENVIRONMENT", raising=False)
        monkeypatch.delenv("APICONTRACT_SERVICE_NAME", raising=False)
        settings = fresh_settings()
        assert settings.service_name == "apicontract"
        assert settings.environment == "development"

    def test_reads_environment(self, fresh_settings, monkeypatch):
        monkeypatch.setenv("APICONTRACT_SERVICE_NAME", "todo")
        monkeypatch.setenv("APICONTRACT_ENVIRONMENT", "prod")
        monkeypatch.setenv("APICONTRACT_REPORT_ERROR_DETAIL", "TRUE")
        monkeypatch.setenv("APICONTRACT_LATENCY_HEADER", "x-took")

        settings = fresh_settings()
        assert settings.service_name == "todo"
        assert settings.is_production
        assert settings.logging.report_error_detail
        assert settings.latency_tracker.header == "x-took"

    def test_cached(self, fresh_settings):
        assert fresh_settings() is fresh_settings()
