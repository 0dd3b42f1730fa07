from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from typing import Any

from route_narrator.services.localization import GENERIC_INSTRUCTION, fallback_table, locale_table
from route_narrator.services.models import NarratedInstruction, RouteStep, RouteSummary

logger = logging.getLogger(__name__)

_SPECIAL_MODIFIERS = {"uturn", "straight"}


def format_distance(meters: float) -> str:
    if not math.isfinite(meters) or meters < 0:
        meters = 0.0
    if meters < 1000:
        return f"{int(math.floor(meters + 0.5))} m"
    return f"{meters / 1000:.1f} km"


def ceil_minutes(seconds: float) -> int:
    if not math.isfinite(seconds) or seconds <= 0:
        return 0
    return int(math.ceil(seconds / 60))


def summarize(total_distance_meters: float, total_duration_seconds: float) -> RouteSummary:
    if not math.isfinite(total_distance_meters) or total_distance_meters < 0:
        total_distance_meters = 0.0
    return RouteSummary(
        distance_label=f"{total_distance_meters / 1000:.1f} km",
        duration_minutes=ceil_minutes(total_duration_seconds),
    )


def _maneuver_fields(descriptor: Any) -> tuple[str | None, str | None, int | None, str | None]:
    if not isinstance(descriptor, Mapping):
        return None, None, None, None
    maneuver = descriptor.get("maneuver")
    if not isinstance(maneuver, Mapping):
        maneuver = descriptor

    maneuver_type = maneuver.get("type")
    modifier = maneuver.get("modifier")
    exit_number = maneuver.get("exit")
    name = descriptor.get("name")

    if not isinstance(exit_number, int) or isinstance(exit_number, bool) or exit_number <= 0:
        exit_number = None
    return (
        str(maneuver_type) if maneuver_type else None,
        str(modifier) if modifier else None,
        exit_number,
        str(name).strip() if name and str(name).strip() else None,
    )


def _candidate_keys(modifier: str | None, exit_number: int | None, has_name: bool) -> list[str]:
    special = None
    if exit_number is not None:
        special = "exit"
    elif modifier in _SPECIAL_MODIFIERS:
        special = modifier

    keys: list[str] = []
    if special:
        if has_name:
            keys.append(f"{special}_name")
        keys.append(special)
    if has_name:
        keys.append("name")
    keys.append("default")
    return keys


def _render(table: Mapping[str, Any], descriptor: Any) -> str | None:
    maneuver_type, modifier, exit_number, name = _maneuver_fields(descriptor)
    if maneuver_type is None:
        return None
    templates = table.get("instructions", {}).get(maneuver_type)
    if not templates:
        return None

    modifier = modifier or "straight"
    modifier_text = table.get("modifiers", {}).get(modifier, "")
    for key in _candidate_keys(modifier, exit_number, name is not None):
        template = templates.get(key)
        if not template:
            continue
        try:
            text = template.format(modifier=modifier_text, way_name=name or "", exit=exit_number or "")
        except (KeyError, IndexError, ValueError):
            continue
        return " ".join(text.split())
    return None


class InstructionCompiler:
    """Turns raw provider steps into numbered, localized instructions.

    Compilation never raises: a locale without a matching template falls back
    to the English table, and an unrecognised descriptor yields a generic
    instruction.
    """

    def compile(self, step: RouteStep, locale: str | None) -> NarratedInstruction:
        text = _render(locale_table(locale), step.instruction_key)
        if text is None:
            text = _render(fallback_table(), step.instruction_key)
        if text is None:
            logger.debug(
                "No template for route step, using generic text",
                extra={"sequence_index": step.sequence_index, "locale": locale},
            )
            text = GENERIC_INSTRUCTION
        return NarratedInstruction(
            sequence_index=step.sequence_index,
            text=text,
            distance_label=format_distance(step.distance_meters),
            duration_minutes=ceil_minutes(step.duration_seconds),
        )

    def compile_all(self, steps: Iterable[RouteStep], locale: str | None) -> list[NarratedInstruction]:
        ordered = sorted(steps, key=lambda step: step.sequence_index)
        return [self.compile(step, locale) for step in ordered]
