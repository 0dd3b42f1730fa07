from enum import Enum


class SessionState(str, Enum):
    IDLE = "idle"
    ACQUIRING_POSITION = "acquiring_position"
    REQUESTING_ROUTE = "requesting_route"
    READY = "ready"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.READY, SessionState.FAILED)


class SnapshotOutcome(str, Enum):
    PENDING = "pending"
    ROUTE = "route"
    NO_INSTRUCTIONS = "no_instructions"
    DESTINATION_ONLY = "destination_only"
    ROUTE_FAILED = "route_failed"


class PositionTier(str, Enum):
    HIGH_ACCURACY = "high_accuracy"
    LOW_ACCURACY = "low_accuracy"


class PositionErrorKind(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    UNAVAILABLE = "unavailable"
    TIMED_OUT = "timed_out"
    UNSUPPORTED = "unsupported"


class RoutingErrorKind(str, Enum):
    NETWORK_UNREACHABLE = "network_unreachable"
    NO_ROUTE_FOUND = "no_route_found"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"
