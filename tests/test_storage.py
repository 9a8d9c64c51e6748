"""Tests for the settings store and its key-value backends."""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from campus_announcer.errors import PersistenceError
from campus_announcer.models import AnnouncementConfiguration
from campus_announcer.storage import (
    HISTORY_KEY,
    SETTINGS_KEY,
    JsonFileStore,
    MemoryStore,
    SettingsStore,
)

CONFIG = AnnouncementConfiguration(
    text="Library closes at 9pm", voice_name="Samantha", volume=0.6, rate=1.4, pitch=0.9
)

HUGE_NUMBER = "1" + "0" * 400
DEEPLY_NESTED = "[" * 100000 + "]" * 100000


@pytest.fixture
def store() -> SettingsStore:
    return SettingsStore(MemoryStore())


class TestSettingsSlot:
    def test_round_trip(self, store: SettingsStore) -> None:
        assert store.save(CONFIG)
        assert store.load() == CONFIG

    def test_round_trip_null_voice(self, store: SettingsStore) -> None:
        config = AnnouncementConfiguration(text="Hi", voice_name=None)
        store.save(config)
        assert store.load() == config

    def test_save_overwrites(self, store: SettingsStore) -> None:
        store.save(CONFIG)
        other = AnnouncementConfiguration(text="Other")
        store.save(other)
        assert store.load() == other

    def test_absent(self, store: SettingsStore) -> None:
        assert store.load() is None
        assert not store.has_saved()

    def test_has_saved(self, store: SettingsStore) -> None:
        store.save(CONFIG)
        assert store.has_saved()

    def test_persisted_field_names(self) -> None:
        backend = MemoryStore()
        SettingsStore(backend).save(CONFIG)
        assert json.loads(backend.get(SETTINGS_KEY)) == {
            "text": "Library closes at 9pm",
            "voiceName": "Samantha",
            "volume": 0.6,
            "rate": 1.4,
            "pitch": 0.9,
        }

    @pytest.mark.parametrize(
        "raw",
        [
            "{not json",
            "[]",
            '{"volume": 1}',
            '{"text": "x", "volume": "loud"}',
            '{"text": "x", "volume": NaN}',
            '{"text": "x", "voiceName": null, "volume": ' + HUGE_NUMBER + "}",
            DEEPLY_NESTED,
        ],
    )
    def test_corrupt_is_absent(self, raw: str) -> None:
        store = SettingsStore(MemoryStore({SETTINGS_KEY: raw}))
        assert store.load() is None

    def test_missing_rate_and_pitch_default(self) -> None:
        raw = json.dumps({"text": "Old", "voiceName": None, "volume": 0.5})
        loaded = SettingsStore(MemoryStore({SETTINGS_KEY: raw})).load()
        assert loaded == AnnouncementConfiguration(text="Old", volume=0.5)

    def test_save_failure_is_swallowed(self) -> None:
        backend = MagicMock()
        backend.set.side_effect = PersistenceError("disk full")
        assert SettingsStore(backend).save(CONFIG) is False

    def test_read_failure_is_absent(self) -> None:
        backend = MagicMock()
        backend.get.side_effect = PersistenceError("unreadable")
        store = SettingsStore(backend)
        assert store.load() is None
        assert store.has_saved() is False
        assert store.load_history() == []


class TestHistory:
    def test_empty(self, store: SettingsStore) -> None:
        assert store.load_history() == []

    def test_append_most_recent_first(self, store: SettingsStore) -> None:
        store.append_history(AnnouncementConfiguration(text="first"))
        store.append_history(AnnouncementConfiguration(text="second"))
        texts = [e.configuration.text for e in store.load_history()]
        assert texts == ["second", "first"]

    def test_entry_fields(self, store: SettingsStore) -> None:
        entry = store.append_history(CONFIG)
        assert entry.configuration == CONFIG
        assert entry.id > 0
        assert "T" in entry.timestamp
        assert store.load_history() == [entry]

    def test_capped_at_twenty(self, store: SettingsStore) -> None:
        for n in range(25):
            store.append_history(AnnouncementConfiguration(text=f"msg {n}"))
        history = store.load_history()
        assert len(history) == 20
        assert [e.configuration.text for e in history] == [
            f"msg {n}" for n in range(24, 4, -1)
        ]

    def test_ids_strictly_increase(self, store: SettingsStore) -> None:
        for n in range(5):
            store.append_history(AnnouncementConfiguration(text=str(n)))
        ids = [e.id for e in store.load_history()]
        assert ids == sorted(ids, reverse=True)
        assert len(set(ids)) == 5

    def test_ids_continue_after_existing_history(self) -> None:
        backend = MemoryStore()
        SettingsStore(backend).append_history(CONFIG)
        first_id = SettingsStore(backend).load_history()[0].id
        second = SettingsStore(backend).append_history(CONFIG)
        assert second.id > first_id

    @pytest.mark.parametrize(
        "raw",
        [
            '{"oops": 1}',
            '[{"text": "x", "volume": ' + HUGE_NUMBER + ', "id": 1, "timestamp": "t"}]',
            DEEPLY_NESTED,
        ],
    )
    def test_corrupt_history_is_empty(self, raw: str) -> None:
        store = SettingsStore(MemoryStore({HISTORY_KEY: raw}))
        assert store.load_history() == []

    def test_append_replaces_corrupt_history(self) -> None:
        store = SettingsStore(MemoryStore({HISTORY_KEY: DEEPLY_NESTED}))
        entry = store.append_history(CONFIG)
        assert store.load_history() == [entry]

    def test_write_is_a_single_set(self) -> None:
        backend = MagicMock()
        backend.get.return_value = None
        SettingsStore(backend).append_history(CONFIG)
        backend.set.assert_called_once()
        key, value = backend.set.call_args.args
        assert key == HISTORY_KEY
        assert len(json.loads(value)) == 1

    def test_append_failure_is_swallowed(self) -> None:
        backend = MagicMock()
        backend.get.return_value = None
        backend.set.side_effect = PersistenceError("read-only")
        assert SettingsStore(backend).append_history(CONFIG) is None


class TestJsonFileStore:
    def test_missing_file_reads_as_empty(self, tmp_path: Path) -> None:
        assert JsonFileStore(tmp_path / "none.json").get("k") is None

    def test_set_then_get(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "store.json"
        fs = JsonFileStore(path)
        fs.set("a", "1")
        fs.set("b", "2")
        assert fs.get("a") == "1"
        assert JsonFileStore(path).get("b") == "2"

    def test_no_temp_files_left_behind(self, tmp_path: Path) -> None:
        fs = JsonFileStore(tmp_path / "store.json")
        fs.set("a", "1")
        assert [p.name for p in tmp_path.iterdir()] == ["store.json"]

    def test_corrupt_file_raises_persistence_error(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        path.write_text("{broken", encoding="utf-8")
        with pytest.raises(PersistenceError):
            JsonFileStore(path).get("a")

    def test_set_replaces_corrupt_file(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        path.write_text("[1, 2]", encoding="utf-8")
        fs = JsonFileStore(path)
        fs.set("a", "1")
        assert fs.get("a") == "1"

    def test_settings_round_trip_on_disk(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        SettingsStore(JsonFileStore(path)).save(CONFIG)
        assert SettingsStore(JsonFileStore(path)).load() == CONFIG

    def test_deeply_nested_file_degrades_to_absent(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        path.write_text(DEEPLY_NESTED, encoding="utf-8")
        store = SettingsStore(JsonFileStore(path))
        assert store.load() is None
        assert store.load_history() == []

    def test_corrupt_file_degrades_to_absent(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        path.write_text("not json", encoding="utf-8")
        store = SettingsStore(JsonFileStore(path))
        assert store.load() is None
        assert store.load_history() == []
