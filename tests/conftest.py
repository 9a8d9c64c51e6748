"""Shared fakes for the announcer tests."""

from __future__ import annotations

import pytest

from campus_announcer.models import HostVoice, UtteranceEvent


class FakeEngine:
    """In-memory speech engine that records calls and lets tests fire events."""

    def __init__(self, voices: list[HostVoice] | None = None) -> None:
        self.voices = list(voices or [])
        self.spoken: list[dict] = []
        self.cancel_count = 0
        self.listeners = []
        self.fail_next = False

    def enumerate_voices(self) -> list[HostVoice]:
        return list(self.voices)

    def speak(self, text, voice_handle, volume, rate, pitch, listener) -> None:
        if self.fail_next:
            from campus_announcer.errors import SynthesisError

            self.fail_next = False
            raise SynthesisError("unsupported voice")
        self.spoken.append(
            {
                "text": text,
                "voice_handle": voice_handle,
                "volume": volume,
                "rate": rate,
                "pitch": pitch,
            }
        )
        self.listeners.append(listener)

    def cancel_active(self) -> None:
        self.cancel_count += 1

    def fire(self, event: UtteranceEvent, index: int = -1) -> None:
        self.listeners[index](event)


ENGLISH_VOICES = [
    HostVoice("Microsoft David Desktop", "en-US", "david-id"),
    HostVoice("Microsoft Zira Desktop", "en-US", "zira-id"),
    HostVoice("Anna", "de-DE", "anna-id"),
    HostVoice("Samantha", "en_US", "samantha-id"),
]


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine(ENGLISH_VOICES)
