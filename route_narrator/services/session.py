from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from uuid import UUID, uuid4

from route_narrator.core.config import Settings, get_settings
from route_narrator.core.enums import PositionErrorKind, RoutingErrorKind, SessionState, SnapshotOutcome
from route_narrator.core.exceptions import PositionError, RoutingError
from route_narrator.schemas.session import (
    CoordinatePayload,
    InstructionPayload,
    RouteSummaryPayload,
    SessionErrorPayload,
    SessionSnapshot,
)
from route_narrator.services import localization
from route_narrator.services.geolocation import PositionAdapter, PositionProvider
from route_narrator.services.instructions import InstructionCompiler, summarize
from route_narrator.services.models import (
    Coordinate,
    NarratedInstruction,
    PositionFix,
    RouteRequest,
    RouteResult,
    RouteSummary,
)
from route_narrator.services.routing import RouteProvider, RoutingClient
from route_narrator.services.speech import SpeechEngine, SpeechNarrator

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[SessionSnapshot], None]

DEFAULT_DESTINATION_LABEL = "Destino"


@dataclass(slots=True, frozen=True)
class RouteSession:
    destination: Coordinate
    destination_label: str
    locale: str
    id: UUID = field(default_factory=uuid4)
    state: SessionState = SessionState.IDLE
    fix: PositionFix | None = None
    request: RouteRequest | None = None
    result: RouteResult | None = None
    failure_reason: PositionErrorKind | RoutingErrorKind | None = None
    provider_status: int | None = None
    instructions: tuple[NarratedInstruction, ...] = ()
    summary: RouteSummary | None = None
    warning: str | None = None
    notice: str | None = None
    error_message: str | None = None
    superseded: bool = False

    @property
    def outcome(self) -> SnapshotOutcome:
        if self.state == SessionState.READY:
            return SnapshotOutcome.ROUTE if self.instructions else SnapshotOutcome.NO_INSTRUCTIONS
        if self.state == SessionState.FAILED:
            if isinstance(self.failure_reason, PositionErrorKind):
                return SnapshotOutcome.DESTINATION_ONLY
            return SnapshotOutcome.ROUTE_FAILED
        return SnapshotOutcome.PENDING

    def snapshot(self) -> SessionSnapshot:
        destination = CoordinatePayload(latitude=self.destination.latitude, longitude=self.destination.longitude)
        origin = None
        if self.fix is not None and self.outcome != SnapshotOutcome.DESTINATION_ONLY:
            origin = CoordinatePayload(
                latitude=self.fix.coordinate.latitude,
                longitude=self.fix.coordinate.longitude,
            )
        error = None
        if self.failure_reason is not None:
            error = SessionErrorPayload(
                category="position" if isinstance(self.failure_reason, PositionErrorKind) else "routing",
                kind=self.failure_reason.value,
                message=self.error_message or self.failure_reason.value,
                provider_status=self.provider_status,
            )
        return SessionSnapshot(
            session_id=self.id,
            state=self.state,
            outcome=self.outcome,
            destination=destination,
            destination_label=self.destination_label,
            center=origin or destination,
            origin=origin,
            accuracy_meters=self.fix.accuracy_meters if self.fix is not None else None,
            instructions=tuple(
                InstructionPayload(
                    step_number=item.step_number,
                    sequence_index=item.sequence_index,
                    text=item.text,
                    distance_label=item.distance_label,
                    duration_minutes=item.duration_minutes,
                )
                for item in self.instructions
            ),
            summary=(
                RouteSummaryPayload(
                    distance_label=self.summary.distance_label,
                    duration_minutes=self.summary.duration_minutes,
                )
                if self.summary is not None
                else None
            ),
            warning=self.warning,
            notice=self.notice,
            error=error,
            superseded=self.superseded,
        )


class RouteSessionController:
    """Owns the single live route session and drives it to a terminal state.

    Lifecycle:
        controller = RouteSessionController(position_adapter, routing_client)
        snapshot = await controller.open_route(Coordinate(-24.018, -46.468), "Restaurante")
        controller.narrate_step(1)

    Starting a new route replaces the live slot first and only then cancels
    the previous session's task. Every update is checked against the live
    session id, so a superseded session never reaches listeners again.
    """

    def __init__(
        self,
        position: PositionAdapter,
        routing: RoutingClient,
        *,
        compiler: InstructionCompiler | None = None,
        narrator: SpeechNarrator | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.position = position
        self.routing = routing
        self.compiler = compiler or InstructionCompiler()
        self.narrator = narrator or SpeechNarrator(settings=self.settings)
        self._live: RouteSession | None = None
        self._task: asyncio.Task[SessionSnapshot] | None = None
        self._listeners: list[SnapshotListener] = []

    @classmethod
    def from_providers(
        cls,
        position_provider: PositionProvider | None,
        route_provider: RouteProvider | None = None,
        speech_engine: SpeechEngine | None = None,
        settings: Settings | None = None,
    ) -> "RouteSessionController":
        settings = settings or get_settings()
        return cls(
            PositionAdapter(position_provider, settings),
            RoutingClient(route_provider, settings),
            narrator=SpeechNarrator(speech_engine, settings),
            settings=settings,
        )

    # ------------------------------------------------------------------
    # Presentation wiring
    # ------------------------------------------------------------------

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def live_session(self) -> RouteSession | None:
        return self._live

    @property
    def snapshot(self) -> SessionSnapshot | None:
        return self._live.snapshot() if self._live is not None else None

    # ------------------------------------------------------------------
    # Session control
    # ------------------------------------------------------------------

    def start_route(
        self,
        destination: Coordinate,
        destination_label: str = DEFAULT_DESTINATION_LABEL,
        locale: str | None = None,
    ) -> asyncio.Task[SessionSnapshot]:
        """Supersede the live session and schedule a new one; needs a running loop."""
        return self._start(destination, destination_label, locale)[1]

    def _start(
        self,
        destination: Coordinate,
        destination_label: str,
        locale: str | None,
    ) -> tuple[RouteSession, asyncio.Task[SessionSnapshot]]:
        session = RouteSession(
            destination=destination,
            destination_label=destination_label or DEFAULT_DESTINATION_LABEL,
            locale=locale or self.settings.default_locale,
        )
        previous_task = self._task
        previous = self._live
        self._live = session
        if previous is not None and not previous.state.is_terminal:
            logger.info("Superseding live route session", extra={"session_id": str(previous.id)})
        if previous_task is not None and not previous_task.done():
            previous_task.cancel()

        logger.info(
            "Route session opened",
            extra={"session_id": str(session.id), "destination_label": session.destination_label},
        )
        session = self._apply(session, state=SessionState.ACQUIRING_POSITION)
        task = asyncio.create_task(self._run(session))
        if self._is_live(session.id):
            self._task = task
        else:
            # a listener started another route while this one was being announced
            task.cancel()
        return session, task

    async def open_route(
        self,
        destination: Coordinate,
        destination_label: str = DEFAULT_DESTINATION_LABEL,
        locale: str | None = None,
    ) -> SessionSnapshot:
        session, task = self._start(destination, destination_label, locale)
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise
        if task.cancelled():
            # cancelled before its first step ran
            if self._is_live(session.id):
                self._discard(session.id)
                raise asyncio.CancelledError()
            return self._retire(session)
        return task.result()

    def close_route(self) -> None:
        """Drop the live session, cancel its pending work and stop narration."""
        task = self._task
        closed = self._live
        self._live = None
        self._task = None
        if task is not None and not task.done():
            task.cancel()
        self.narrator.cancel()
        if closed is not None:
            logger.info("Route session closed", extra={"session_id": str(closed.id)})

    def narrate_step(self, step_number: int) -> bool:
        session = self._live
        if session is None or session.state != SessionState.READY:
            return False
        for instruction in session.instructions:
            if instruction.step_number == step_number:
                self.narrator.narrate(instruction.text, session.locale)
                return True
        return False

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _run(self, session: RouteSession) -> SessionSnapshot:
        try:
            try:
                fix = await self.position.acquire_position()
            except PositionError as exc:
                return self._finish(session, self._position_failure(session, exc))

            request = RouteRequest(
                origin=fix.coordinate,
                destination=session.destination,
                destination_label=session.destination_label,
            )
            updated = self._apply(
                session,
                state=SessionState.REQUESTING_ROUTE,
                fix=fix,
                request=request,
                warning=self._accuracy_warning(session, fix),
            )
            if updated is None:
                return self._retire(session)
            session = updated

            try:
                result = await self.routing.request_route(request)
            except RoutingError as exc:
                return self._finish(session, self._routing_failure(session, exc))

            return self._finish(session, self._ready(session, result))
        except asyncio.CancelledError:
            if self._is_live(session.id):
                self._discard(session.id)
                raise
            return self._retire(session)
        except Exception as exc:
            logger.exception("Route session failed unexpectedly", extra={"session_id": str(session.id)})
            return self._finish(session, self._routing_failure(session, RoutingError(RoutingErrorKind.UNKNOWN, str(exc))))

    def _accuracy_warning(self, session: RouteSession, fix: PositionFix) -> str | None:
        if not fix.is_low_accuracy:
            return None
        accuracy = round(fix.accuracy_meters) if math.isfinite(fix.accuracy_meters) else "?"
        logger.warning(
            "Low accuracy position fix",
            extra={"session_id": str(session.id), "accuracy_m": accuracy},
        )
        return localization.message(session.locale, "warning.low_accuracy", accuracy=accuracy)

    def _position_failure(self, session: RouteSession, exc: PositionError) -> dict:
        logger.warning(
            "Position unavailable, centering on destination",
            extra={"session_id": str(session.id), "kind": exc.kind.value},
        )
        return {
            "state": SessionState.FAILED,
            "failure_reason": exc.kind,
            "error_message": localization.message(session.locale, f"position.{exc.kind.value}"),
        }

    def _routing_failure(self, session: RouteSession, exc: RoutingError) -> dict:
        key = "routing.timed_out" if exc.timed_out else f"routing.{exc.kind.value}"
        logger.warning(
            "Route request failed",
            extra={"session_id": str(session.id), "kind": exc.kind.value, "provider_status": exc.provider_status},
        )
        return {
            "state": SessionState.FAILED,
            "failure_reason": exc.kind,
            "provider_status": exc.provider_status,
            "error_message": localization.message(session.locale, key),
        }

    def _ready(self, session: RouteSession, result: RouteResult) -> dict:
        instructions = tuple(self.compiler.compile_all(result.steps, session.locale))
        notice = None
        if not instructions:
            notice = localization.message(session.locale, "route.no_instructions")
        return {
            "state": SessionState.READY,
            "result": result,
            "instructions": instructions,
            "summary": summarize(result.total_distance_meters, result.total_duration_seconds),
            "notice": notice,
        }

    def _finish(self, session: RouteSession, changes: dict) -> SessionSnapshot:
        updated = self._apply(session, **changes)
        if updated is None:
            return self._retire(session)
        logger.info(
            "Route session finished",
            extra={
                "session_id": str(updated.id),
                "state": updated.state.value,
                "outcome": updated.outcome.value,
                "instructions": len(updated.instructions),
            },
        )
        return updated.snapshot()

    # ------------------------------------------------------------------
    # Live slot
    # ------------------------------------------------------------------

    def _is_live(self, session_id: UUID) -> bool:
        return self._live is not None and self._live.id == session_id

    def _apply(self, session: RouteSession, **changes) -> RouteSession | None:
        if not self._is_live(session.id):
            logger.debug("Dropping update for superseded session", extra={"session_id": str(session.id)})
            return None
        updated = replace(session, **changes)
        self._live = updated
        self._emit(updated.snapshot())
        return updated

    def _retire(self, session: RouteSession) -> SessionSnapshot:
        logger.info("Route session superseded", extra={"session_id": str(session.id), "state": session.state.value})
        return replace(session, superseded=True).snapshot()

    def _discard(self, session_id: UUID) -> None:
        if self._is_live(session_id):
            self._live = None
            self._task = None

    def _emit(self, snapshot: SessionSnapshot) -> None:
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Snapshot listener failed", extra={"session_id": str(snapshot.session_id)})
