from __future__ import annotations

import abc
import asyncio
import logging
import math
import time
from dataclasses import dataclass

from route_narrator.core.config import Settings, get_settings
from route_narrator.core.enums import PositionErrorKind, PositionTier
from route_narrator.core.exceptions import PositionError, ProviderPositionError
from route_narrator.services.models import Coordinate, PositionFix

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RawPosition:
    latitude: float
    longitude: float
    accuracy: float
    timestamp_ms: int | None = None


@dataclass(slots=True, frozen=True)
class AcquisitionTier:
    tier: PositionTier
    enable_high_accuracy: bool
    timeout_sec: float
    max_cache_age_sec: float

    @property
    def timeout_ms(self) -> int:
        return int(self.timeout_sec * 1000)

    @property
    def max_cache_age_ms(self) -> int:
        return int(self.max_cache_age_sec * 1000)


class PositionProvider(abc.ABC):
    def is_supported(self) -> bool:
        return True

    @abc.abstractmethod
    async def get_current_position(
        self,
        enable_high_accuracy: bool,
        timeout_ms: int,
        maximum_age_ms: int,
    ) -> RawPosition:
        raise NotImplementedError


class FixedPositionProvider(PositionProvider):
    """Reports a configured reading; stands in for a device sensor in development."""

    def __init__(self, latitude: float, longitude: float, accuracy: float = 10.0) -> None:
        self.latitude = latitude
        self.longitude = longitude
        self.accuracy = accuracy

    async def get_current_position(
        self,
        enable_high_accuracy: bool,
        timeout_ms: int,
        maximum_age_ms: int,
    ) -> RawPosition:
        return RawPosition(
            latitude=self.latitude,
            longitude=self.longitude,
            accuracy=self.accuracy,
            timestamp_ms=int(time.time() * 1000),
        )


_PROVIDER_CODES = {
    ProviderPositionError.PERMISSION_DENIED: PositionErrorKind.PERMISSION_DENIED,
    ProviderPositionError.POSITION_UNAVAILABLE: PositionErrorKind.UNAVAILABLE,
    ProviderPositionError.TIMEOUT: PositionErrorKind.TIMED_OUT,
}


def classify_provider_error(exc: ProviderPositionError) -> PositionErrorKind:
    return _PROVIDER_CODES.get(exc.code, PositionErrorKind.UNAVAILABLE)


class PositionAdapter:
    """Acquires a position fix with a high/low accuracy fallback under a watchdog.

    The first tier asks for a precise reading; any failure there triggers a
    single retry that accepts network-based positioning. The watchdog spans
    both tiers and reports ``TIMED_OUT`` when neither resolves in time. When
    both tiers fail, the second tier's error is the one surfaced.
    """

    def __init__(self, provider: PositionProvider | None, settings: Settings | None = None) -> None:
        self.provider = provider
        self.settings = settings or get_settings()
        self.tiers = (
            AcquisitionTier(
                tier=PositionTier.HIGH_ACCURACY,
                enable_high_accuracy=True,
                timeout_sec=self.settings.position_high_accuracy_timeout_sec,
                max_cache_age_sec=self.settings.position_max_cache_age_sec,
            ),
            AcquisitionTier(
                tier=PositionTier.LOW_ACCURACY,
                enable_high_accuracy=False,
                timeout_sec=self.settings.position_low_accuracy_timeout_sec,
                max_cache_age_sec=self.settings.position_max_cache_age_sec,
            ),
        )

    @property
    def is_supported(self) -> bool:
        return self.provider is not None and self.provider.is_supported()

    async def acquire_position(self) -> PositionFix:
        if not self.is_supported:
            logger.warning("Geolocation capability is not available")
            raise PositionError(PositionErrorKind.UNSUPPORTED, "Geolocation is not supported")

        try:
            return await asyncio.wait_for(self._acquire_tiered(), timeout=self.settings.position_watchdog_sec)
        except asyncio.TimeoutError as exc:
            logger.warning(
                "Position watchdog expired",
                extra={"watchdog_sec": self.settings.position_watchdog_sec},
            )
            raise PositionError(PositionErrorKind.TIMED_OUT, "Position acquisition watchdog expired") from exc

    async def _acquire_tiered(self) -> PositionFix:
        last_error: PositionError | None = None
        for index, tier in enumerate(self.tiers):
            try:
                return await self._attempt(tier)
            except PositionError as exc:
                last_error = exc
                if index + 1 < len(self.tiers):
                    logger.warning(
                        "Position tier failed, trying fallback",
                        extra={"tier": tier.tier.value, "kind": exc.kind.value},
                    )
                else:
                    logger.error(
                        "Position tier failed and no fallbacks remain",
                        extra={"tier": tier.tier.value, "kind": exc.kind.value},
                    )
        assert last_error is not None
        raise last_error

    async def _attempt(self, tier: AcquisitionTier) -> PositionFix:
        assert self.provider is not None
        try:
            raw = await asyncio.wait_for(
                self.provider.get_current_position(tier.enable_high_accuracy, tier.timeout_ms, tier.max_cache_age_ms),
                timeout=tier.timeout_sec,
            )
        except asyncio.TimeoutError as exc:
            raise PositionError(PositionErrorKind.TIMED_OUT, f"{tier.tier.value} tier timed out") from exc
        except ProviderPositionError as exc:
            raise PositionError(classify_provider_error(exc), str(exc), details={"provider_code": exc.code}) from exc
        except Exception as exc:
            raise PositionError(PositionErrorKind.UNAVAILABLE, f"Position provider failed: {exc}") from exc
        return self._to_fix(raw, tier)

    def _to_fix(self, raw: RawPosition, tier: AcquisitionTier) -> PositionFix:
        try:
            coordinate = Coordinate(latitude=float(raw.latitude), longitude=float(raw.longitude))
        except (TypeError, ValueError) as exc:
            raise PositionError(PositionErrorKind.UNAVAILABLE, f"Invalid reading: {exc}") from exc

        accuracy = float(raw.accuracy) if raw.accuracy is not None else math.inf
        if math.isnan(accuracy) or accuracy < 0:
            accuracy = math.inf
        captured_at = raw.timestamp_ms if raw.timestamp_ms is not None else int(time.time() * 1000)

        fix = PositionFix(
            coordinate=coordinate,
            accuracy_meters=accuracy,
            captured_at_epoch_ms=int(captured_at),
            source_tier=tier.tier,
            low_accuracy_threshold_m=self.settings.low_accuracy_threshold_m,
        )
        logger.info(
            "Position acquired",
            extra={"tier": tier.tier.value, "accuracy_m": round(accuracy, 1) if math.isfinite(accuracy) else None},
        )
        return fix
