from __future__ import annotations

from route_narrator.core.enums import PositionErrorKind, RoutingErrorKind


class NavigationError(Exception):
    def __init__(self, code: str, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}


class PositionError(NavigationError):
    def __init__(self, kind: PositionErrorKind, message: str | None = None, details: dict | None = None) -> None:
        super().__init__(code=kind.value, message=message or f"Position acquisition failed: {kind.value}", details=details)
        self.kind = kind


class RoutingError(NavigationError):
    def __init__(
        self,
        kind: RoutingErrorKind,
        message: str | None = None,
        *,
        provider_status: int | None = None,
        timed_out: bool = False,
        details: dict | None = None,
    ) -> None:
        super().__init__(code=kind.value, message=message or f"Route request failed: {kind.value}", details=details)
        self.kind = kind
        self.provider_status = provider_status
        self.timed_out = timed_out


class ProviderPositionError(Exception):
    """Raw failure reported by a position provider, carrying a W3C geolocation code."""

    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3

    def __init__(self, code: int, message: str = "") -> None:
        super().__init__(message or f"geolocation error code {code}")
        self.code = code
