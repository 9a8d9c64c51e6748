"""Playback controller — owns the single utterance and its voice parameters."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass

from campus_announcer.errors import SynthesisError
from campus_announcer.models import UtteranceEvent, Voice
from campus_announcer.synthesizer import SpeechEngine

logger = logging.getLogger(__name__)

PREVIEW_TEXT = "Hello, this is a voice preview."

VOLUME_RANGE = (0.0, 1.0)
RATE_RANGE = (0.5, 2.0)
PITCH_RANGE = (0.0, 2.0)


def clamp(value: float, bounds: tuple[float, float]) -> float:
    low, high = bounds
    return min(high, max(low, float(value)))


@dataclass
class PlaybackParameters:
    """Voice parameters applied to the next utterance."""

    volume: float = 1.0      # 0.0 – 1.0
    rate: float = 1.0        # 0.5 – 2.0, multiplier of the engine's base rate
    pitch: float = 1.0       # 0.0 – 2.0
    voice: Voice | None = None

    def __post_init__(self) -> None:
        self.volume = clamp(self.volume, VOLUME_RANGE)
        self.rate = clamp(self.rate, RATE_RANGE)
        self.pitch = clamp(self.pitch, PITCH_RANGE)


class PlaybackController:
    """Speaks one utterance at a time through the host speech engine.

    Starting an utterance always cancels the one in flight first. The
    ``speaking`` flag follows the engine's notifications; notifications for
    any utterance other than the current one are ignored.
    """

    def __init__(
        self,
        engine: SpeechEngine,
        parameters: PlaybackParameters | None = None,
    ) -> None:
        self._engine = engine
        self._params = parameters or PlaybackParameters()
        self._speaking = False
        self._active: int | None = None
        self._ids = itertools.count(1)

    @property
    def parameters(self) -> PlaybackParameters:
        return self._params

    @property
    def speaking(self) -> bool:
        return self._speaking

    @property
    def is_idle(self) -> bool:
        return not self._speaking

    @property
    def volume(self) -> float:
        return self._params.volume

    @property
    def rate(self) -> float:
        return self._params.rate

    @property
    def pitch(self) -> float:
        return self._params.pitch

    @property
    def selected_voice(self) -> Voice | None:
        return self._params.voice

    def set_volume(self, value: float) -> None:
        self._params.volume = clamp(value, VOLUME_RANGE)

    def set_rate(self, value: float) -> None:
        self._params.rate = clamp(value, RATE_RANGE)

    def set_pitch(self, value: float) -> None:
        self._params.pitch = clamp(value, PITCH_RANGE)

    def set_selected_voice(self, voice: Voice | None) -> None:
        self._params.voice = voice

    def speak(self, text: str) -> None:
        """Speak *text* with the selected voice, replacing any current utterance."""
        if not text or not text.strip():
            logger.debug("Nothing to speak")
            return
        if self._params.voice is None:
            logger.warning("No voice available; cannot speak")
            return
        self.cancel()
        self._start(text, self._params.voice)

    def preview_voice(self, voice: Voice | None) -> None:
        """Speak a sample phrase with *voice* without selecting it."""
        if voice is None:
            return
        self.cancel()
        self._start(PREVIEW_TEXT, voice)

    def cancel(self) -> None:
        """Stop any utterance in flight. Safe to call when idle."""
        self._engine.cancel_active()
        self._active = None
        self._speaking = False

    def _start(self, text: str, voice: Voice) -> None:
        utterance_id = next(self._ids)
        self._active = utterance_id

        def listener(event: UtteranceEvent) -> None:
            self._on_event(utterance_id, event)

        try:
            self._engine.speak(
                text,
                voice.handle,
                self._params.volume,
                self._params.rate,
                self._params.pitch,
                listener,
            )
        except SynthesisError as exc:
            logger.warning("Could not speak with %s: %s", voice.name, exc)
            self._active = None
            self._speaking = False
            return
        logger.info("Speaking with %s: %s", voice.name, text[:80])

    def _on_event(self, utterance_id: int, event: UtteranceEvent) -> None:
        if utterance_id != self._active:
            logger.debug("Ignoring %s from stale utterance %d", event.value, utterance_id)
            return
        if event is UtteranceEvent.STARTED:
            self._speaking = True
            return
        self._active = None
        self._speaking = False
        if event is UtteranceEvent.ERRORED:
            logger.warning("Utterance %d failed; playback stopped", utterance_id)
