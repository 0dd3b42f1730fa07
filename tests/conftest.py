from __future__ import annotations

import pytest

from route_narrator.core.config import Settings


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        default_locale="pt-BR",
        position_high_accuracy_timeout_sec=0.1,
        position_low_accuracy_timeout_sec=0.1,
        position_watchdog_sec=0.5,
        route_request_timeout_sec=0.3,
        routing_provider="mock",
    )
