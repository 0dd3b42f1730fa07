from __future__ import annotations

from fakes import RecordingSpeechEngine
from route_narrator.services.speech import NullSpeechEngine, SpeechNarrator, Voice, select_voice

VOICES = [
    Voice(name="Daniel", lang="en-GB"),
    Voice(name="Joana", lang="pt-PT"),
    Voice(name="Luciana", lang="pt-BR"),
]


def test_voice_prefers_exact_locale_then_language():
    assert select_voice(VOICES, "pt-BR").name == "Luciana"
    assert select_voice(VOICES, "pt_br").name == "Luciana"
    assert select_voice(VOICES[:2], "pt-BR").name == "Joana"
    assert select_voice(VOICES, "es-ES") is None


def test_narration_cancels_current_utterance_first(settings):
    engine = RecordingSpeechEngine(voices=VOICES)
    narrator = SpeechNarrator(engine, settings)

    narrator.narrate("Vire à direita", "pt-BR")
    narrator.narrate("Siga em frente", "pt-BR")

    assert engine.events == [
        ("cancel",),
        ("speak", "Vire à direita", VOICES[2], "pt-BR", 1.0),
        ("cancel",),
        ("speak", "Siga em frente", VOICES[2], "pt-BR", 1.0),
    ]


def test_missing_voice_uses_engine_default(settings):
    engine = RecordingSpeechEngine(voices=VOICES[:1])
    SpeechNarrator(engine, settings).narrate("Turn left", "fr-FR")

    assert engine.events[-1] == ("speak", "Turn left", None, "fr-FR", 1.0)


def test_unavailable_engine_is_silent(settings):
    engine = RecordingSpeechEngine(available=False)
    narrator = SpeechNarrator(engine, settings)

    narrator.narrate("Vire à esquerda", "pt-BR")
    narrator.cancel()

    assert engine.events == []
    SpeechNarrator(None, settings).narrate("Vire à esquerda", "pt-BR")
    assert isinstance(SpeechNarrator(settings=settings).engine, NullSpeechEngine)


def test_engine_failure_does_not_propagate(settings):
    class BrokenEngine(RecordingSpeechEngine):
        def speak(self, text, voice, lang, rate):
            raise RuntimeError("audio device busy")

    engine = BrokenEngine()
    SpeechNarrator(engine, settings).narrate("Vire à esquerda", "pt-BR")

    assert engine.events == [("cancel",)]


def test_blank_text_is_ignored(settings):
    engine = RecordingSpeechEngine()
    SpeechNarrator(engine, settings).narrate("   ", "pt-BR")

    assert engine.events == []
