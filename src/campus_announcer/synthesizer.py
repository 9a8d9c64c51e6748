"""Host speech engine backed by pyttsx3 (offline system voices)."""

from __future__ import annotations

import itertools
import logging
from typing import Callable, Protocol

import pyttsx3

from campus_announcer.errors import SynthesisError
from campus_announcer.models import HostVoice, UtteranceEvent

logger = logging.getLogger(__name__)

UtteranceListener = Callable[[UtteranceEvent], None]

BASE_RATE_WPM = 175  # Words per minute at rate multiplier 1.0


class SpeechEngine(Protocol):
    """What the playback controller and voice catalog need from the host."""

    def enumerate_voices(self) -> list[HostVoice]: ...

    def speak(
        self,
        text: str,
        voice_handle: str,
        volume: float,
        rate: float,
        pitch: float,
        listener: UtteranceListener,
    ) -> None: ...

    def cancel_active(self) -> None: ...


def _language_tag(languages: object) -> str:
    """Normalise a pyttsx3 ``Voice.languages`` value to a tag like ``en-gb``.

    espeak reports bytes prefixed with a priority byte (``b"\\x05en-gb"``),
    NSSpeech reports ``en_US`` and SAPI5 often reports nothing.
    """
    if not languages:
        return ""
    first = languages[0] if isinstance(languages, (list, tuple)) else languages
    if isinstance(first, bytes):
        first = first.decode("latin-1")
    tag = "".join(ch for ch in str(first) if ch.isprintable()).strip()
    return tag.replace("_", "-")


class Synthesizer:
    """Wraps pyttsx3 and turns its callbacks into utterance events.

    ``speak`` only queues the utterance; ``run_until_idle`` pumps the
    engine, during which the listener receives STARTED and then ENDED or
    ERRORED.
    """

    def __init__(self, base_rate: int = BASE_RATE_WPM) -> None:
        self._base_rate = base_rate
        self._engine = pyttsx3.init()
        self._listeners: dict[str, UtteranceListener] = {}
        self._names = (f"utterance-{n}" for n in itertools.count(1))
        self._pending = False
        self._engine.connect("started-utterance", self._on_started)
        self._engine.connect("finished-utterance", self._on_finished)
        self._engine.connect("error", self._on_error)

    def enumerate_voices(self) -> list[HostVoice]:
        """Return the voices installed on this system, in host order."""
        return [
            HostVoice(name=v.name, language=_language_tag(v.languages), handle=v.id)
            for v in self._engine.getProperty("voices") or []
        ]

    def speak(
        self,
        text: str,
        voice_handle: str,
        volume: float,
        rate: float,
        pitch: float,
        listener: UtteranceListener,
    ) -> None:
        """Queue *text* with the given voice parameters."""
        name = next(self._names)
        try:
            self._engine.setProperty("voice", voice_handle)
            self._engine.setProperty("volume", volume)
            self._engine.setProperty("rate", int(self._base_rate * rate))
            # Only some drivers (espeak) honour pitch; others report an error
            # notification with no utterance name, which is logged and ignored.
            self._engine.setProperty("pitch", pitch)
            self._engine.say(text, name)
        except (RuntimeError, KeyError, ValueError) as exc:
            raise SynthesisError(f"Engine rejected utterance: {exc}") from exc
        self._listeners[name] = listener
        self._pending = True
        logger.debug("Queued %s with voice %s", name, voice_handle)

    def run_until_idle(self) -> None:
        """Pump the engine until every queued utterance has finished."""
        if not self._pending:
            return
        try:
            self._engine.runAndWait()
        except RuntimeError as exc:
            raise SynthesisError(f"Speech engine loop failed: {exc}") from exc
        finally:
            self._pending = False

    def cancel_active(self) -> None:
        """Stop any in-progress speech and drop every queued utterance."""
        self._engine.stop()
        # stop() empties the driver queue; unstarted utterances never report back
        self._listeners.clear()

    def _on_started(self, name: str) -> None:
        listener = self._listeners.get(name)
        if listener is not None:
            listener(UtteranceEvent.STARTED)

    def _on_finished(self, name: str, completed: bool) -> None:
        listener = self._listeners.pop(name, None)
        if listener is None:
            return
        if not completed:
            logger.debug("%s interrupted", name)
        listener(UtteranceEvent.ENDED)

    def _on_error(self, name: str | None, exception: Exception) -> None:
        listener = self._listeners.pop(name, None) if name else None
        if listener is None:
            logger.debug("Engine reported an error outside an utterance: %s", exception)
            return
        logger.warning("Speech engine error on %s: %s", name, exception)
        listener(UtteranceEvent.ERRORED)
