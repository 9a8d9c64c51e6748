"""Curate the host's voices into a short, presentable list."""

from __future__ import annotations

import logging

from campus_announcer.models import FEMALE, MALE, HostVoice, Voice
from campus_announcer.synthesizer import SpeechEngine

logger = logging.getLogger(__name__)

# High-quality voices commonly shipped by browsers and operating systems.
# Lowercase, matched as substrings of the lowercased voice name.
PREFERRED_FEMALE_VOICES = (
    "google uk english female",
    "google us english",
    "samantha",  # Apple
    "zira",  # Windows
    "tessa",
)

PREFERRED_MALE_VOICES = (
    "google uk english male",
    "daniel",  # Apple
    "david",  # Windows
    "alex",  # Apple
)


def _is_english(voice: HostVoice) -> bool:
    return voice.language.lower().startswith("en")


def _matches(name: str, preferred: tuple[str, ...]) -> bool:
    lowered = name.lower()
    return any(p in lowered for p in preferred)


def curate_voices(host_voices: list[HostVoice]) -> list[Voice]:
    """Filter, label and rank *host_voices*.

    Preferred female voices come first, then preferred male voices, each in
    host order. When nothing matches, the first English voice is returned on
    its own, labelled female whatever it actually sounds like.
    """
    female: list[Voice] = []
    male: list[Voice] = []
    added: set[str] = set()

    for hv in host_voices:
        if not _is_english(hv) or hv.name in added:
            continue
        if _matches(hv.name, PREFERRED_FEMALE_VOICES):
            female.append(Voice(hv.name, hv.language, FEMALE, hv.handle))
            added.add(hv.name)
        elif _matches(hv.name, PREFERRED_MALE_VOICES):
            male.append(Voice(hv.name, hv.language, MALE, hv.handle))
            added.add(hv.name)

    curated = female + male
    if curated:
        return curated

    fallback = next((hv for hv in host_voices if _is_english(hv)), None)
    if fallback is None:
        return []
    return [Voice(fallback.name, fallback.language, FEMALE, fallback.handle)]


class VoiceCatalog:
    """Holds the curated voice list, rebuilt wholesale on every refresh."""

    def __init__(self, engine: SpeechEngine) -> None:
        self._engine = engine
        self._voices: list[Voice] = []

    @property
    def voices(self) -> list[Voice]:
        return list(self._voices)

    @property
    def is_ready(self) -> bool:
        return bool(self._voices)

    @property
    def default_voice(self) -> Voice | None:
        return self._voices[0] if self._voices else None

    def refresh(self) -> list[Voice]:
        """Re-enumerate host voices and replace the curated list.

        Some engines report an empty list before their voices load; in that
        case the current list is left untouched.
        """
        host_voices = self._engine.enumerate_voices()
        if not host_voices:
            logger.debug("Host reported no voices yet; keeping %d", len(self._voices))
            return self.voices

        self._voices = curate_voices(host_voices)
        logger.info(
            "Voice catalog refreshed: %d of %d host voices selected",
            len(self._voices),
            len(host_voices),
        )
        return self.voices

    def find(self, name: str | None) -> Voice | None:
        """Return the curated voice called *name*, if any."""
        if not name:
            return None
        return next((v for v in self._voices if v.name == name), None)
