"""Announcement session: wires text, voices, playback and persistence together."""

from __future__ import annotations

import logging
from typing import Protocol

from campus_announcer.models import AnnouncementConfiguration, HistoryEntry, Voice
from campus_announcer.playback import PlaybackController
from campus_announcer.storage import SettingsStore
from campus_announcer.voices import VoiceCatalog

logger = logging.getLogger(__name__)

DEFAULT_TEXT = "Hello students and staff, this is a test announcement. Please disregard."


class Rewriter(Protocol):
    def rewrite(self, text: str) -> str: ...


class AnnouncementSession:
    """Composition root for one run of the announcer.

    Saved settings are restored automatically once, the first time the
    voice catalog becomes non-empty; later catalog refreshes never
    overwrite what the user has changed since.
    """

    def __init__(
        self,
        catalog: VoiceCatalog,
        controller: PlaybackController,
        store: SettingsStore,
        rewriter: Rewriter,
        text: str = DEFAULT_TEXT,
    ) -> None:
        self.catalog = catalog
        self.controller = controller
        self.store = store
        self.rewriter = rewriter
        self.text = text
        self.humanizing = False
        self.saved_settings_exist = False
        self.history: list[HistoryEntry] = []
        self._restore_attempted = False

    @property
    def speaking(self) -> bool:
        return self.controller.speaking

    @property
    def text_editable(self) -> bool:
        return not self.speaking

    def start(self) -> None:
        """Load persisted state and populate the voice catalog."""
        self.saved_settings_exist = self.store.has_saved()
        self.history = self.store.load_history()
        self.on_voices_changed()

    def on_voices_changed(self) -> None:
        """Handle a (possibly repeated) voice-list-changed notification."""
        voices = self.catalog.refresh()
        if not voices:
            return
        current = self.controller.selected_voice
        if current is None or self.catalog.find(current.name) is None:
            self.controller.set_selected_voice(self.catalog.default_voice)
        if not self._restore_attempted:
            self._restore_attempted = True
            settings = self.store.load()
            if settings is not None:
                self._apply(settings)
                logger.info("Restored saved settings")

    def set_text(self, text: str) -> bool:
        """Replace the announcement text unless playback is in progress."""
        if not self.text_editable:
            logger.debug("Text is read-only while speaking")
            return False
        self.text = text
        return True

    def current_configuration(self) -> AnnouncementConfiguration:
        voice = self.controller.selected_voice
        return AnnouncementConfiguration(
            text=self.text,
            voice_name=voice.name if voice else None,
            volume=self.controller.volume,
            rate=self.controller.rate,
            pitch=self.controller.pitch,
        )

    def handle_improve_text(self) -> str | None:
        """Replace the text with its AI rewrite (or the rewriter's error sentinel)."""
        if self.humanizing or self.speaking:
            logger.debug("Humanize ignored: another operation is in progress")
            return None
        self.humanizing = True
        try:
            self.text = self.rewriter.rewrite(self.text)
        finally:
            self.humanizing = False
        return self.text

    def handle_save(self) -> bool:
        saved = self.store.save(self.current_configuration())
        self.saved_settings_exist = self.store.has_saved()
        return saved

    def handle_load(self) -> AnnouncementConfiguration | None:
        """Apply the saved settings. Needs the voice catalog to be populated."""
        if not self.catalog.is_ready:
            logger.warning("Voices are not loaded yet; cannot apply saved settings")
            return None
        settings = self.store.load()
        if settings is not None:
            self._apply(settings)
        return settings

    def handle_announce(self) -> None:
        """Record the current announcement in history and speak it."""
        if not self.text.strip():
            return
        self.store.append_history(self.current_configuration())
        self.history = self.store.load_history()
        self.controller.speak(self.text)

    def handle_load_from_history(self, entry: HistoryEntry) -> None:
        self._apply(entry.configuration)

    def handle_preview(self, voice: Voice) -> None:
        self.controller.preview_voice(voice)

    def handle_select_voice(self, voice: Voice) -> None:
        self.controller.set_selected_voice(voice)

    def handle_cancel(self) -> None:
        self.controller.cancel()

    def _apply(self, config: AnnouncementConfiguration) -> None:
        self.text = config.text
        self.controller.set_volume(config.volume)
        self.controller.set_rate(config.rate)
        self.controller.set_pitch(config.pitch)
        voice = self.catalog.find(config.voice_name)
        if voice is not None:
            self.controller.set_selected_voice(voice)
        elif config.voice_name:
            logger.info("Saved voice %r is not available here", config.voice_name)
