from __future__ import annotations

import abc
import logging
from dataclasses import dataclass

from route_narrator.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Voice:
    name: str
    lang: str


class SpeechEngine(abc.ABC):
    def is_available(self) -> bool:
        return True

    def voices(self) -> list[Voice]:
        return []

    @abc.abstractmethod
    def speak(self, text: str, voice: Voice | None, lang: str, rate: float) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def cancel_all(self) -> None:
        raise NotImplementedError


class NullSpeechEngine(SpeechEngine):
    def is_available(self) -> bool:
        return False

    def speak(self, text: str, voice: Voice | None, lang: str, rate: float) -> None:
        return None

    def cancel_all(self) -> None:
        return None


def select_voice(voices: list[Voice], locale: str) -> Voice | None:
    tag = locale.replace("_", "-").lower()
    for voice in voices:
        if voice.lang.replace("_", "-").lower() == tag:
            return voice
    language = tag.split("-", 1)[0]
    for voice in voices:
        if voice.lang.replace("_", "-").lower().startswith(language):
            return voice
    return None


class SpeechNarrator:
    """Speaks one instruction at a time; every call is best-effort."""

    def __init__(self, engine: SpeechEngine | None = None, settings: Settings | None = None) -> None:
        self.engine = engine or NullSpeechEngine()
        self.settings = settings or get_settings()

    def narrate(self, text: str, locale: str) -> None:
        text = (text or "").strip()
        if not text or not self.engine.is_available():
            return
        try:
            self.engine.cancel_all()
            voice = select_voice(self.engine.voices(), locale)
            self.engine.speak(text, voice, locale, self.settings.speech_rate)
        except Exception as exc:
            logger.warning("Narration failed", extra={"locale": locale, "error": str(exc)})

    def cancel(self) -> None:
        if not self.engine.is_available():
            return
        try:
            self.engine.cancel_all()
        except Exception as exc:
            logger.warning("Cancelling narration failed", extra={"error": str(exc)})
