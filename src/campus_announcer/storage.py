"""Persist the current announcement settings and a bounded history.

``SettingsStore`` never raises: a store that cannot be read or written
behaves like an empty one and the failure is only logged.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from campus_announcer.errors import PersistenceError
from campus_announcer.models import AnnouncementConfiguration, HistoryEntry

logger = logging.getLogger(__name__)

SETTINGS_KEY = "announcementBotSettings"
HISTORY_KEY = "announcementBotHistory"
MAX_HISTORY_ITEMS = 20


class KeyValueStore(Protocol):
    """A local string store, in the manner of browser local storage."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    """Dict-backed store for in-process use."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore:
    """Store every key in one JSON object file.

    Writes go to a temporary file in the same directory and are moved into
    place, so a reader sees either the old file or the new one.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError, RecursionError) as exc:
            raise PersistenceError(f"Cannot read {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise PersistenceError(f"{self._path} does not hold a JSON object")
        return data

    def get(self, key: str) -> str | None:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except PersistenceError:
            logger.warning("Replacing unreadable store at %s", self._path)
            data = {}
        data[key] = value
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(data, fh, ensure_ascii=False, indent=2, sort_keys=True)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise PersistenceError(f"Cannot write {self._path}: {exc}") from exc


class SettingsStore:
    """Current-settings slot and announcement history on top of a key-value store."""

    def __init__(self, backend: KeyValueStore, max_history: int = MAX_HISTORY_ITEMS) -> None:
        self._backend = backend
        self._max_history = max_history
        self._last_id = 0

    def save(self, config: AnnouncementConfiguration) -> bool:
        """Overwrite the saved settings. Returns False if nothing was written."""
        try:
            self._backend.set(SETTINGS_KEY, json.dumps(config.to_dict()))
        except (PersistenceError, TypeError, ValueError) as exc:
            logger.error("Failed to save settings: %s", exc)
            return False
        logger.info("Settings saved")
        return True

    def load(self) -> AnnouncementConfiguration | None:
        """Return the saved settings, or None if absent or unreadable."""
        try:
            raw = self._backend.get(SETTINGS_KEY)
            if raw is None:
                return None
            return AnnouncementConfiguration.from_dict(json.loads(raw))
        except (PersistenceError, ValueError, RecursionError) as exc:
            logger.error("Failed to load settings: %s", exc)
            return None

    def has_saved(self) -> bool:
        try:
            return self._backend.get(SETTINGS_KEY) is not None
        except PersistenceError as exc:
            logger.error("Failed to check for saved settings: %s", exc)
            return False

    def load_history(self) -> list[HistoryEntry]:
        """Return past announcements, most recent first."""
        try:
            raw = self._backend.get(HISTORY_KEY)
            if raw is None:
                return []
            payload = json.loads(raw)
            if not isinstance(payload, list):
                raise ValueError("history is not a list")
            return [HistoryEntry.from_dict(item) for item in payload]
        except (PersistenceError, ValueError, RecursionError) as exc:
            logger.error("Failed to load history: %s", exc)
            return []

    def append_history(self, config: AnnouncementConfiguration) -> HistoryEntry | None:
        """Record *config* as the newest history entry, evicting the oldest past the cap."""
        existing = self.load_history()
        if existing:
            self._last_id = max(self._last_id, existing[0].id)
        entry = HistoryEntry(
            id=self._next_id(),
            timestamp=datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            configuration=config,
        )
        history = [entry, *existing][: self._max_history]
        try:
            self._backend.set(HISTORY_KEY, json.dumps([e.to_dict() for e in history]))
        except (PersistenceError, TypeError, ValueError) as exc:
            logger.error("Failed to save to history: %s", exc)
            return None
        return entry

    def _next_id(self) -> int:
        # Millisecond timestamps, bumped so rapid appends still get distinct ids
        self._last_id = max(int(time.time() * 1000), self._last_id + 1)
        return self._last_id
