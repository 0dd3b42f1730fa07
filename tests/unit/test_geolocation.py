from __future__ import annotations

import asyncio

import pytest

from fakes import HANG, ScriptedPositionProvider, denied, unavailable
from route_narrator.core.config import Settings
from route_narrator.core.enums import PositionErrorKind, PositionTier
from route_narrator.core.exceptions import PositionError, ProviderPositionError
from route_narrator.services.geolocation import FixedPositionProvider, PositionAdapter, RawPosition


def _reading(accuracy: float = 12.0) -> RawPosition:
    return RawPosition(latitude=-24.0167, longitude=-46.4667, accuracy=accuracy, timestamp_ms=1_700_000_000_000)


@pytest.mark.asyncio
async def test_first_tier_success_returns_high_accuracy_fix(settings):
    provider = ScriptedPositionProvider(_reading())
    fix = await PositionAdapter(provider, settings).acquire_position()

    assert fix.source_tier == PositionTier.HIGH_ACCURACY
    assert fix.coordinate.latitude == -24.0167
    assert fix.captured_at_epoch_ms == 1_700_000_000_000
    assert fix.is_low_accuracy is False
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_tier_options_follow_fallback_policy():
    provider = ScriptedPositionProvider(denied(), _reading())
    fix = await PositionAdapter(provider, Settings(routing_provider="mock")).acquire_position()

    assert fix.source_tier == PositionTier.LOW_ACCURACY
    assert provider.calls == [(True, 20000, 0), (False, 15000, 0)]


@pytest.mark.asyncio
async def test_both_tiers_failing_reports_second_error(settings):
    provider = ScriptedPositionProvider(denied(), unavailable())

    with pytest.raises(PositionError) as exc_info:
        await PositionAdapter(provider, settings).acquire_position()

    assert exc_info.value.kind == PositionErrorKind.UNAVAILABLE
    assert len(provider.calls) == 2


@pytest.mark.asyncio
async def test_hanging_first_tier_times_out_and_falls_back(settings):
    provider = ScriptedPositionProvider(HANG, _reading())
    fix = await PositionAdapter(provider, settings).acquire_position()

    assert fix.source_tier == PositionTier.LOW_ACCURACY


@pytest.mark.asyncio
async def test_watchdog_spans_both_tiers():
    settings = Settings(
        routing_provider="mock",
        position_high_accuracy_timeout_sec=5,
        position_low_accuracy_timeout_sec=5,
        position_watchdog_sec=0.05,
    )
    provider = ScriptedPositionProvider(HANG, HANG)

    with pytest.raises(PositionError) as exc_info:
        await PositionAdapter(provider, settings).acquire_position()

    assert exc_info.value.kind == PositionErrorKind.TIMED_OUT
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_resolved_acquisition_is_not_failed_by_watchdog(settings):
    adapter = PositionAdapter(ScriptedPositionProvider(_reading()), settings)
    fix = await adapter.acquire_position()
    await asyncio.sleep(settings.position_watchdog_sec + 0.05)

    assert fix.coordinate.longitude == -46.4667


@pytest.mark.asyncio
async def test_missing_capability_fails_without_attempts(settings):
    with pytest.raises(PositionError) as exc_info:
        await PositionAdapter(None, settings).acquire_position()
    assert exc_info.value.kind == PositionErrorKind.UNSUPPORTED

    provider = ScriptedPositionProvider(_reading(), supported=False)
    with pytest.raises(PositionError) as exc_info:
        await PositionAdapter(provider, settings).acquire_position()
    assert exc_info.value.kind == PositionErrorKind.UNSUPPORTED
    assert provider.calls == []


@pytest.mark.asyncio
async def test_low_accuracy_reading_still_succeeds(settings):
    fix = await PositionAdapter(ScriptedPositionProvider(_reading(accuracy=150)), settings).acquire_position()

    assert fix.accuracy_meters == 150
    assert fix.is_low_accuracy is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("code", "kind"),
    [
        (ProviderPositionError.PERMISSION_DENIED, PositionErrorKind.PERMISSION_DENIED),
        (ProviderPositionError.POSITION_UNAVAILABLE, PositionErrorKind.UNAVAILABLE),
        (ProviderPositionError.TIMEOUT, PositionErrorKind.TIMED_OUT),
        (99, PositionErrorKind.UNAVAILABLE),
    ],
)
async def test_provider_codes_are_classified(settings, code, kind):
    provider = ScriptedPositionProvider(denied(), ProviderPositionError(code))

    with pytest.raises(PositionError) as exc_info:
        await PositionAdapter(provider, settings).acquire_position()

    assert exc_info.value.kind == kind


@pytest.mark.asyncio
async def test_out_of_range_reading_is_unavailable(settings):
    bad = RawPosition(latitude=123.0, longitude=10.0, accuracy=5)
    provider = ScriptedPositionProvider(bad, RuntimeError("sensor crashed"))

    with pytest.raises(PositionError) as exc_info:
        await PositionAdapter(provider, settings).acquire_position()

    assert exc_info.value.kind == PositionErrorKind.UNAVAILABLE


@pytest.mark.asyncio
async def test_fixed_provider_reports_configured_point(settings):
    fix = await PositionAdapter(FixedPositionProvider(-23.55, -46.63, accuracy=250), settings).acquire_position()

    assert (fix.coordinate.latitude, fix.coordinate.longitude) == (-23.55, -46.63)
    assert fix.is_low_accuracy is True
    assert fix.captured_at_epoch_ms > 0
