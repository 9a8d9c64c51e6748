"""Data types shared by the catalog, playback controller and settings store."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Any

FEMALE = "female"
MALE = "male"


class UtteranceEvent(enum.Enum):
    """Notification emitted by the speech engine for one utterance."""

    STARTED = "started"
    ENDED = "ended"
    ERRORED = "errored"


@dataclass(frozen=True)
class HostVoice:
    """A voice exactly as the host speech engine reports it."""

    name: str
    language: str
    handle: str


@dataclass(frozen=True)
class Voice:
    """A curated voice the user can select."""

    name: str
    language: str
    gender: str
    handle: str


def _number(payload: dict[str, Any], key: str, default: float | None = None) -> float:
    value = payload.get(key, default)
    if value is None:
        value = default
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Field {key!r} must be a number, got {value!r}")
    try:
        number = float(value)
    except OverflowError:
        raise ValueError(f"Field {key!r} is out of range") from None
    if not math.isfinite(number):
        raise ValueError(f"Field {key!r} must be finite, got {value!r}")
    return number


@dataclass(frozen=True)
class AnnouncementConfiguration:
    """The text and voice parameters of one announcement."""

    text: str
    voice_name: str | None = None
    volume: float = 1.0
    rate: float = 1.0
    pitch: float = 1.0

    def to_dict(self) -> dict[str, Any]:
        """Return the persisted JSON shape (field names are stable)."""
        return {
            "text": self.text,
            "voiceName": self.voice_name,
            "volume": self.volume,
            "rate": self.rate,
            "pitch": self.pitch,
        }

    @classmethod
    def from_dict(cls, payload: Any) -> AnnouncementConfiguration:
        """Build a configuration from its persisted shape.

        Missing ``rate`` and ``pitch`` default to 1.0 so records written
        before those controls existed still load.

        Raises:
            ValueError: If the payload is not a well-formed record.
        """
        if not isinstance(payload, dict):
            raise ValueError(f"Expected an object, got {type(payload).__name__}")
        text = payload.get("text")
        if not isinstance(text, str):
            raise ValueError("Field 'text' must be a string")
        voice_name = payload.get("voiceName")
        if voice_name is not None and not isinstance(voice_name, str):
            raise ValueError("Field 'voiceName' must be a string or null")
        return cls(
            text=text,
            voice_name=voice_name,
            volume=_number(payload, "volume"),
            rate=_number(payload, "rate", 1.0),
            pitch=_number(payload, "pitch", 1.0),
        )


@dataclass(frozen=True)
class HistoryEntry:
    """An announcement that was played, stamped with when it happened."""

    id: int
    timestamp: str
    configuration: AnnouncementConfiguration

    def to_dict(self) -> dict[str, Any]:
        payload = self.configuration.to_dict()
        payload["id"] = self.id
        payload["timestamp"] = self.timestamp
        return payload

    @classmethod
    def from_dict(cls, payload: Any) -> HistoryEntry:
        configuration = AnnouncementConfiguration.from_dict(payload)
        entry_id = payload.get("id")
        timestamp = payload.get("timestamp")
        if isinstance(entry_id, bool) or not isinstance(entry_id, int):
            raise ValueError("Field 'id' must be an integer")
        if not isinstance(timestamp, str):
            raise ValueError("Field 'timestamp' must be a string")
        return cls(id=entry_id, timestamp=timestamp, configuration=configuration)
