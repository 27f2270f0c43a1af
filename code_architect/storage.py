"""Local persistence for history and settings.

A tiny JSON key-value store backs two fixed keys: the history list and the
settings object.  Missing or corrupt data is treated as absent, so a damaged
file yields an empty history or default settings instead of an error.

History retention is bounded: :class:`HistoryStore` keeps at most ``limit``
items and drops the oldest ones when a new item is added.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from code_architect.config import AppSettings
from code_architect.models import Blueprint, HistoryItem
from code_architect.utils import console, load_json, save_json

HISTORY_KEY = "code_architect_history"
SETTINGS_KEY = "code_architect_settings"


class JsonKeyValueStore:
    """Stores each key as ``<directory>/<key>.json``."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read(self, key: str) -> Any | None:
        """Return the stored value, or ``None`` if it is missing or unreadable."""
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return load_json(path)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            console.print(f"[dim]Ignoring unreadable {path.name}: {exc.__class__.__name__}[/dim]")
            return None

    def write(self, key: str, value: Any) -> None:
        save_json(value, self.path_for(key))

    def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


class HistoryStore:
    """Newest-first list of saved blueprints.

    Args:
        store: Backing key-value store.
        limit: Maximum number of items kept.
        clock: Returns the current time in seconds; injectable for tests.
    """

    def __init__(
        self,
        store: JsonKeyValueStore,
        limit: int = 50,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if limit < 1:
            raise ValueError("history limit must be at least 1")
        self.store = store
        self.limit = limit
        self.clock = clock

    def load(self) -> list[HistoryItem]:
        """Return all saved items, newest first.  Malformed entries are dropped."""
        raw = self.store.read(HISTORY_KEY)
        if not isinstance(raw, list):
            return []
        items: list[HistoryItem] = []
        for entry in raw:
            try:
                items.append(HistoryItem.model_validate(entry))
            except ValidationError:
                continue
        return items

    def _save(self, items: list[HistoryItem]) -> None:
        self.store.write(
            HISTORY_KEY, [item.model_dump(mode="json", by_alias=True) for item in items]
        )

    def add(self, blueprint: Blueprint) -> HistoryItem:
        """Save *blueprint* as the newest item and evict beyond the limit."""
        items = self.load()
        now_ms = int(self.clock() * 1000)

        # Ids are derived from the creation time; bump on collision.
        taken = {item.id for item in items}
        stamp = now_ms
        while str(stamp) in taken:
            stamp += 1

        item = HistoryItem(
            id=str(stamp),
            timestamp=now_ms,
            project_name=blueprint.project_name,
            blueprint=blueprint,
        )
        items.insert(0, item)
        del items[self.limit:]
        self._save(items)
        return item

    def get(self, item_id: str) -> HistoryItem | None:
        for item in self.load():
            if item.id == item_id:
                return item
        return None

    def delete(self, item_id: str) -> bool:
        """Remove the item with *item_id*; return ``False`` if it did not exist."""
        items = self.load()
        remaining = [item for item in items if item.id != item_id]
        if len(remaining) == len(items):
            return False
        self._save(remaining)
        return True

    def clear(self) -> None:
        self._save([])


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class SettingsStore:
    """Persists :class:`AppSettings` under a fixed key."""

    def __init__(self, store: JsonKeyValueStore) -> None:
        self.store = store

    def load(self) -> AppSettings:
        """Return stored settings merged over defaults.

        Missing keys take their default value; unreadable or invalid data
        yields plain defaults.
        """
        raw = self.store.read(SETTINGS_KEY)
        if not isinstance(raw, dict):
            return AppSettings()
        try:
            return AppSettings.model_validate(raw)
        except ValidationError:
            console.print("[dim]Stored settings are invalid; using defaults.[/dim]")
            return AppSettings()

    def save(self, settings: AppSettings) -> None:
        self.store.write(SETTINGS_KEY, settings.model_dump(mode="json"))

    def update(self, key: str, value: Any) -> AppSettings:
        """Set one (possibly dotted) key, persist, and return the new settings."""
        settings = self.load().with_value(key, value)
        self.save(settings)
        return settings

    def reset(self) -> AppSettings:
        self.store.delete(SETTINGS_KEY)
        return AppSettings()
