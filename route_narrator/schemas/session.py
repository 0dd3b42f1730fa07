from __future__ import annotations

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from route_narrator.core.enums import SessionState, SnapshotOutcome


class SnapshotModel(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)


class CoordinatePayload(SnapshotModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class InstructionPayload(SnapshotModel):
    step_number: int = Field(ge=1)
    sequence_index: int = Field(ge=0)
    text: str
    distance_label: str
    duration_minutes: int = Field(ge=0)


class RouteSummaryPayload(SnapshotModel):
    distance_label: str
    duration_minutes: int = Field(ge=0)


class SessionErrorPayload(SnapshotModel):
    category: Literal["position", "routing"]
    kind: str
    message: str
    provider_status: int | None = None


class SessionSnapshot(SnapshotModel):
    session_id: UUID
    state: SessionState
    outcome: SnapshotOutcome
    destination: CoordinatePayload
    destination_label: str
    center: CoordinatePayload
    origin: CoordinatePayload | None = None
    accuracy_meters: float | None = None
    instructions: tuple[InstructionPayload, ...] = ()
    summary: RouteSummaryPayload | None = None
    warning: str | None = None
    notice: str | None = None
    error: SessionErrorPayload | None = None
    superseded: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal
