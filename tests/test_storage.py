"""Unit tests for local persistence (code_architect.storage).

Tests cover:
- JsonKeyValueStore (read/write/delete, missing and corrupt files)
- HistoryStore (ordering, ids, retention limit, get/delete/clear, bad entries)
- SettingsStore (defaults, update, reset, invalid and legacy data)
"""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from code_architect.config import AppSettings, ProviderName
from code_architect.models import Blueprint, FileRecord
from code_architect.storage import (
    HISTORY_KEY,
    SETTINGS_KEY,
    HistoryStore,
    JsonKeyValueStore,
    SettingsStore,
)


def _blueprint(name: str) -> Blueprint:
    return Blueprint(
        project_name=name,
        description=f"{name} description",
        structure=name,
        files=[FileRecord(path="README.md", content=f"# {name}", language="markdown")],
    )


class _FixedClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


# ---------------------------------------------------------------------------
# JsonKeyValueStore
# ---------------------------------------------------------------------------


class TestJsonKeyValueStore:
    @pytest.mark.unit
    def test_missing_key(self, kv_store):
        assert kv_store.read("nothing") is None

    @pytest.mark.unit
    def test_write_then_read(self, kv_store):
        kv_store.write("k", {"a": [1, 2]})
        assert kv_store.read("k") == {"a": [1, 2]}
        assert kv_store.path_for("k").name == "k.json"

    @pytest.mark.unit
    def test_corrupt_file_reads_as_missing(self, kv_store):
        kv_store.path_for("k").parent.mkdir(parents=True)
        kv_store.path_for("k").write_text("{oops", encoding="utf-8")
        assert kv_store.read("k") is None

    @pytest.mark.unit
    def test_delete(self, kv_store):
        kv_store.write("k", 1)
        kv_store.delete("k")
        kv_store.delete("k")
        assert kv_store.read("k") is None


# ---------------------------------------------------------------------------
# HistoryStore
# ---------------------------------------------------------------------------


class TestHistoryStore:
    @pytest.mark.unit
    def test_empty(self, kv_store):
        assert HistoryStore(kv_store).load() == []

    @pytest.mark.unit
    def test_invalid_limit(self, kv_store):
        with pytest.raises(ValueError):
            HistoryStore(kv_store, limit=0)

    @pytest.mark.unit
    def test_add_is_newest_first(self, kv_store):
        clock = _FixedClock()
        history = HistoryStore(kv_store, clock=clock)
        history.add(_blueprint("first"))
        clock.now += 5
        item = history.add(_blueprint("second"))

        assert item.id == "1700000005000"
        assert item.timestamp == 1_700_000_005_000
        assert [i.project_name for i in history.load()] == ["second", "first"]

    @pytest.mark.unit
    def test_ids_unique_within_same_millisecond(self, kv_store):
        history = HistoryStore(kv_store, clock=_FixedClock())
        ids = [history.add(_blueprint(str(n))).id for n in range(3)]
        assert ids == ["1700000000000", "1700000000001", "1700000000002"]

    @pytest.mark.unit
    def test_limit_evicts_oldest(self, kv_store):
        clock = _FixedClock()
        history = HistoryStore(kv_store, limit=2, clock=clock)
        for name in ("a", "b", "c"):
            history.add(_blueprint(name))
            clock.now += 1
        assert [i.project_name for i in history.load()] == ["c", "b"]

    @pytest.mark.unit
    def test_persists_camel_case(self, kv_store):
        HistoryStore(kv_store).add(_blueprint("demo"))
        raw = json.loads(kv_store.path_for(HISTORY_KEY).read_text(encoding="utf-8"))
        assert raw[0]["projectName"] == "demo"
        assert raw[0]["blueprint"]["files"][0]["path"] == "README.md"

    @pytest.mark.unit
    def test_get_and_delete(self, kv_store):
        history = HistoryStore(kv_store)
        item = history.add(_blueprint("demo"))

        assert history.get(item.id).blueprint.project_name == "demo"
        assert history.delete(item.id) is True
        assert history.delete(item.id) is False
        assert history.get(item.id) is None

    @pytest.mark.unit
    def test_clear(self, kv_store):
        history = HistoryStore(kv_store)
        history.add(_blueprint("demo"))
        history.clear()
        assert history.load() == []

    @pytest.mark.unit
    def test_malformed_entries_dropped(self, kv_store):
        good = HistoryStore(kv_store).add(_blueprint("ok"))
        raw = kv_store.read(HISTORY_KEY)
        kv_store.write(HISTORY_KEY, raw + [{"id": "broken"}, "junk"])
        assert [i.id for i in HistoryStore(kv_store).load()] == [good.id]

    @pytest.mark.unit
    def test_non_list_payload(self, kv_store):
        kv_store.write(HISTORY_KEY, {"not": "a list"})
        assert HistoryStore(kv_store).load() == []


# ---------------------------------------------------------------------------
# SettingsStore
# ---------------------------------------------------------------------------


class TestSettingsStore:
    @pytest.mark.unit
    def test_defaults_when_missing(self, kv_store):
        assert SettingsStore(kv_store).load() == AppSettings()

    @pytest.mark.unit
    def test_save_and_load(self, kv_store, google_settings):
        store = SettingsStore(kv_store)
        store.save(google_settings)
        assert store.load() == google_settings

    @pytest.mark.unit
    def test_partial_data_merged_with_defaults(self, kv_store):
        kv_store.write(SETTINGS_KEY, {"word_wrap": True})
        settings = SettingsStore(kv_store).load()
        assert settings.word_wrap is True
        assert settings.auto_save is True

    @pytest.mark.unit
    def test_invalid_data_yields_defaults(self, kv_store):
        kv_store.write(SETTINGS_KEY, {"timeout": 1})
        assert SettingsStore(kv_store).load() == AppSettings()

    @pytest.mark.unit
    def test_legacy_layout_migrated(self, kv_store):
        kv_store.write(SETTINGS_KEY, {"useCustomApi": True, "openRouterApiKey": "sk-or"})
        settings = SettingsStore(kv_store).load()
        assert settings.active_provider is ProviderName.OPENROUTER
        assert settings.openrouter.api_key == "sk-or"

    @pytest.mark.unit
    def test_update(self, kv_store):
        store = SettingsStore(kv_store)
        store.update("github.api_key", "ghp_saved")
        store.update("show_hidden", "true")
        settings = store.load()
        assert settings.github.api_key == "ghp_saved"
        assert settings.show_hidden is True

    @pytest.mark.unit
    def test_update_rejects_bad_input(self, kv_store):
        store = SettingsStore(kv_store)
        with pytest.raises(KeyError):
            store.update("colour", "blue")
        with pytest.raises(ValidationError):
            store.update("history_limit", "0")
        assert store.load() == AppSettings()

    @pytest.mark.unit
    def test_reset(self, kv_store):
        store = SettingsStore(kv_store)
        store.update("word_wrap", True)
        assert store.reset() == AppSettings()
        assert not kv_store.path_for(SETTINGS_KEY).exists()
