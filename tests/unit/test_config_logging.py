from __future__ import annotations

import pytest
import structlog
from pydantic import ValidationError

from route_narrator.core.config import Settings, get_settings
from route_narrator.core.logging import configure_logging


def test_defaults_match_acquisition_policy(monkeypatch):
    for name in ("OSRM_BASE_URL", "ROUTING_PROVIDER", "DEFAULT_LOCALE"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings(_env_file=None)

    assert settings.position_high_accuracy_timeout_sec == 20
    assert settings.position_low_accuracy_timeout_sec == 15
    assert settings.position_watchdog_sec == 25
    assert settings.position_max_cache_age_sec == 0
    assert settings.low_accuracy_threshold_m == 100
    assert settings.route_request_timeout_sec == 30
    assert settings.default_locale == "pt-BR"
    assert set(Settings.model_fields) >= {"log_level", "routing_provider", "speech_rate"}
    assert "env" not in Settings.model_fields


def test_environment_overrides_are_normalized(monkeypatch):
    monkeypatch.setenv("DEFAULT_LOCALE", "en_US")
    monkeypatch.setenv("OSRM_BASE_URL", "http://localhost:5000/")
    monkeypatch.setenv("ROUTE_REQUEST_TIMEOUT_SEC", "12.5")

    settings = Settings(_env_file=None)

    assert settings.default_locale == "en-US"
    assert settings.osrm_base_url == "http://localhost:5000"
    assert settings.route_request_timeout_sec == 12.5


def test_osrm_provider_requires_base_url():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, routing_provider="osrm", osrm_base_url="  ")

    assert Settings(_env_file=None, routing_provider="mock", osrm_base_url="").osrm_base_url == ""


def test_non_positive_timeouts_are_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, position_watchdog_sec=0)


def test_get_settings_is_cached():
    assert get_settings() is get_settings()


def test_configure_logging_sets_up_structlog():
    try:
        configure_logging("debug")
        assert structlog.is_configured()
    finally:
        structlog.reset_defaults()
