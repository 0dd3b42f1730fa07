from __future__ import annotations

import abc
import asyncio
import logging
import math
from collections.abc import Mapping
from typing import Any

import httpx

from route_narrator.core.config import Settings, get_settings
from route_narrator.core.enums import RoutingErrorKind
from route_narrator.core.exceptions import RoutingError
from route_narrator.services.models import Coordinate, RouteRequest, RouteResult, RouteStep

logger = logging.getLogger(__name__)

_NO_ROUTE_CODES = {"NoRoute", "NoSegment"}


def _safe_float(value: Any) -> float | None:
    try:
        result = float(value)
    except Exception:
        return None
    if not math.isfinite(result):
        return None
    return result


def classify_status(status: int | None) -> RoutingErrorKind:
    if status is None or status <= 0:
        return RoutingErrorKind.NETWORK_UNREACHABLE
    if status == 404:
        return RoutingErrorKind.NO_ROUTE_FOUND
    if 500 <= status < 600:
        return RoutingErrorKind.SERVER_ERROR
    return RoutingErrorKind.UNKNOWN


def build_steps(raw_steps: Any) -> tuple[RouteStep, ...]:
    if not isinstance(raw_steps, list):
        return ()
    steps: list[RouteStep] = []
    for item in raw_steps:
        if not isinstance(item, Mapping):
            continue
        distance = _safe_float(item.get("distance")) or 0.0
        duration = _safe_float(item.get("duration")) or 0.0
        descriptor = {key: value for key, value in item.items() if key not in {"distance", "duration", "geometry"}}
        steps.append(
            RouteStep(
                instruction_key=descriptor,
                distance_meters=max(distance, 0.0),
                duration_seconds=max(duration, 0.0),
                sequence_index=len(steps),
            )
        )
    return tuple(steps)


class RouteProvider(abc.ABC):
    @abc.abstractmethod
    async def fetch_route(self, request: RouteRequest) -> RouteResult:
        raise NotImplementedError


class MockRouteProvider(RouteProvider):
    """Straight-line depart/arrive route for offline use."""

    def __init__(self, speed_m_s: float = 1.3) -> None:
        self.speed_m_s = speed_m_s

    @staticmethod
    def _haversine_distance(a: Coordinate, b: Coordinate) -> float:
        r = 6_371_000
        lat1 = math.radians(a.latitude)
        lat2 = math.radians(b.latitude)
        d_lat = lat2 - lat1
        d_lon = math.radians(b.longitude - a.longitude)

        x = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
        return 2 * r * math.asin(math.sqrt(x))

    async def fetch_route(self, request: RouteRequest) -> RouteResult:
        distance = self._haversine_distance(request.origin, request.destination)
        duration = distance / self.speed_m_s
        raw_steps = [
            {"distance": distance, "duration": duration, "name": "", "maneuver": {"type": "depart"}},
            {"distance": 0, "duration": 0, "name": request.destination_label, "maneuver": {"type": "arrive"}},
        ]
        return RouteResult(
            steps=build_steps(raw_steps),
            total_distance_meters=distance,
            total_duration_seconds=duration,
        )


class OSRMRouteProvider(RouteProvider):
    def __init__(
        self,
        base_url: str,
        *,
        profile: str = "driving",
        timeout_sec: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.profile = profile
        self.timeout_sec = timeout_sec
        self._transport = transport

    @staticmethod
    def format_coordinates(request: RouteRequest) -> str:
        points = (request.origin, request.destination)
        return ";".join(f"{point.longitude},{point.latitude}" for point in points)

    def _url(self, request: RouteRequest) -> str:
        return f"{self.base_url}/route/v1/{self.profile}/{self.format_coordinates(request)}"

    async def fetch_route(self, request: RouteRequest) -> RouteResult:
        params = {"overview": "false", "steps": "true", "alternatives": "false"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout_sec, transport=self._transport) as client:
                response = await client.get(self._url(request), params=params)
        except httpx.TimeoutException as exc:
            raise RoutingError(RoutingErrorKind.NETWORK_UNREACHABLE, f"OSRM timed out: {exc}", timed_out=True) from exc
        except (httpx.TransportError, OSError) as exc:
            raise RoutingError(RoutingErrorKind.NETWORK_UNREACHABLE, f"OSRM unreachable: {exc}") from exc

        payload: Any = None
        try:
            payload = response.json()
        except ValueError:
            payload = None
        body_code = payload.get("code") if isinstance(payload, dict) else None

        if body_code in _NO_ROUTE_CODES:
            raise RoutingError(
                RoutingErrorKind.NO_ROUTE_FOUND,
                f"OSRM found no route: {body_code}",
                provider_status=response.status_code,
            )
        if response.status_code >= 400:
            raise RoutingError(
                classify_status(response.status_code),
                f"OSRM http {response.status_code}",
                provider_status=response.status_code,
            )
        if not isinstance(payload, dict):
            raise RoutingError(RoutingErrorKind.UNKNOWN, "OSRM returned invalid JSON", provider_status=response.status_code)
        if body_code != "Ok":
            raise RoutingError(
                RoutingErrorKind.UNKNOWN,
                f"OSRM error: {payload.get('message', body_code or 'Unknown error')}",
                provider_status=response.status_code,
            )

        routes = payload.get("routes")
        if not isinstance(routes, list) or not routes or not isinstance(routes[0], dict):
            raise RoutingError(RoutingErrorKind.NO_ROUTE_FOUND, "OSRM returned no routes", provider_status=response.status_code)
        route = routes[0]
        legs = route.get("legs")
        first_leg = legs[0] if isinstance(legs, list) and legs and isinstance(legs[0], dict) else {}

        return RouteResult(
            steps=build_steps(first_leg.get("steps")),
            total_distance_meters=_safe_float(route.get("distance")) or 0.0,
            total_duration_seconds=_safe_float(route.get("duration")) or 0.0,
        )


def build_route_provider(settings: Settings | None = None) -> RouteProvider:
    settings = settings or get_settings()
    if settings.routing_provider == "mock":
        return MockRouteProvider(speed_m_s=settings.mock_walking_speed_m_s)
    return OSRMRouteProvider(
        settings.osrm_base_url,
        profile=settings.osrm_profile,
        timeout_sec=settings.route_request_timeout_sec,
    )


class RoutingClient:
    """Single round-trip route lookup with a caller-side timeout.

    Every failure leaves as a ``RoutingError``; provider exceptions of any
    other type are reported as ``UNKNOWN``.
    """

    def __init__(self, provider: RouteProvider | None = None, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.provider = provider or build_route_provider(self.settings)
        self.timeout_sec = self.settings.route_request_timeout_sec

    async def request_route(self, request: RouteRequest) -> RouteResult:
        logger.info(
            "Requesting route",
            extra={
                "provider": self.provider.__class__.__name__,
                "destination_label": request.destination_label,
            },
        )
        try:
            result = await asyncio.wait_for(self.provider.fetch_route(request), timeout=self.timeout_sec)
        except asyncio.TimeoutError as exc:
            logger.warning("Route request timed out", extra={"timeout_sec": self.timeout_sec})
            raise RoutingError(
                RoutingErrorKind.NETWORK_UNREACHABLE,
                f"Route request exceeded {self.timeout_sec}s",
                timed_out=True,
            ) from exc
        except RoutingError as exc:
            logger.warning(
                "Route provider failed",
                extra={"kind": exc.kind.value, "provider_status": exc.provider_status},
            )
            raise
        except Exception as exc:
            logger.error("Route provider raised unexpectedly", extra={"error": str(exc)})
            raise RoutingError(RoutingErrorKind.UNKNOWN, f"Route provider failed: {exc}") from exc

        logger.info(
            "Route received",
            extra={"steps": len(result.steps), "distance_m": round(result.total_distance_meters)},
        )
        return result
