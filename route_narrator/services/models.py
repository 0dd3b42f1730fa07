from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from route_narrator.core.enums import PositionTier


def _is_valid_lat_lon(lat: float, lon: float) -> bool:
    return -90 <= lat <= 90 and -180 <= lon <= 180


@dataclass(slots=True, frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.latitude) and math.isfinite(self.longitude)):
            raise ValueError("Coordinate values must be finite")
        if not _is_valid_lat_lon(self.latitude, self.longitude):
            raise ValueError(f"Coordinate out of range: ({self.latitude}, {self.longitude})")


@dataclass(slots=True, frozen=True)
class PositionFix:
    coordinate: Coordinate
    accuracy_meters: float
    captured_at_epoch_ms: int
    source_tier: PositionTier
    low_accuracy_threshold_m: float = 100.0

    @property
    def is_low_accuracy(self) -> bool:
        return self.accuracy_meters > self.low_accuracy_threshold_m


@dataclass(slots=True, frozen=True)
class RouteRequest:
    origin: Coordinate
    destination: Coordinate
    destination_label: str = "Destino"


@dataclass(slots=True, frozen=True)
class RouteStep:
    instruction_key: Mapping[str, Any]
    distance_meters: float
    duration_seconds: float
    sequence_index: int

    def __post_init__(self) -> None:
        if not (math.isfinite(self.distance_meters) and math.isfinite(self.duration_seconds)):
            raise ValueError("Route step distance and duration must be finite")
        if self.distance_meters < 0 or self.duration_seconds < 0:
            raise ValueError("Route step distance and duration must be non-negative")
        if self.sequence_index < 0:
            raise ValueError("Route step sequence_index must be non-negative")


@dataclass(slots=True, frozen=True)
class RouteResult:
    steps: tuple[RouteStep, ...] = field(default_factory=tuple)
    total_distance_meters: float = 0.0
    total_duration_seconds: float = 0.0

    def __post_init__(self) -> None:
        indexes = [step.sequence_index for step in self.steps]
        if any(later <= earlier for earlier, later in zip(indexes, indexes[1:])):
            raise ValueError("Route step sequence indexes must be strictly increasing")

    @property
    def has_steps(self) -> bool:
        return bool(self.steps)


@dataclass(slots=True, frozen=True)
class NarratedInstruction:
    sequence_index: int
    text: str
    distance_label: str
    duration_minutes: int

    @property
    def step_number(self) -> int:
        return self.sequence_index + 1


@dataclass(slots=True, frozen=True)
class RouteSummary:
    distance_label: str
    duration_minutes: int
