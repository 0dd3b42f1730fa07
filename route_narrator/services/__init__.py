from route_narrator.services.geolocation import FixedPositionProvider, PositionAdapter, PositionProvider, RawPosition
from route_narrator.services.instructions import InstructionCompiler
from route_narrator.services.models import (
    Coordinate,
    NarratedInstruction,
    PositionFix,
    RouteRequest,
    RouteResult,
    RouteStep,
    RouteSummary,
)
from route_narrator.services.routing import MockRouteProvider, OSRMRouteProvider, RouteProvider, RoutingClient
from route_narrator.services.session import RouteSession, RouteSessionController
from route_narrator.services.speech import NullSpeechEngine, SpeechEngine, SpeechNarrator, Voice

__all__ = [
    "Coordinate",
    "FixedPositionProvider",
    "InstructionCompiler",
    "MockRouteProvider",
    "NarratedInstruction",
    "NullSpeechEngine",
    "OSRMRouteProvider",
    "PositionAdapter",
    "PositionFix",
    "PositionProvider",
    "RawPosition",
    "RouteProvider",
    "RouteRequest",
    "RouteResult",
    "RouteSession",
    "RouteSessionController",
    "RouteStep",
    "RouteSummary",
    "RoutingClient",
    "SpeechEngine",
    "SpeechNarrator",
    "Voice",
]
