from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Mapping, Optional, Protocol

LOGGER = logging.getLogger(__name__)

DEFAULT_STATE_FILENAME = "ledger_state.json"
LEDGER_FOLDER_NAME = "MissionLedger"
DATA_DIR_ENV = "MISSION_LEDGER_DATA_DIR"


class StorageBackend(Protocol):
    """Key-value storage of plain strings, mirroring browser local storage."""

    def get_item(self, key: str) -> Optional[str]:
        """Return the stored string for ``key`` or ``None``."""

    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""

    def remove_item(self, key: str) -> None:
        """Delete ``key`` if present."""


def resolve_state_file_path(path: str | Path | None = None, *, env: Mapping[str, str] | None = None) -> Path:
    """Resolve the state file, honouring an explicit path or ``MISSION_LEDGER_DATA_DIR``."""

    if path is not None:
        explicit_path = Path(path).expanduser()
        if explicit_path.is_dir():
            return explicit_path / DEFAULT_STATE_FILENAME
        return explicit_path

    env_map: Mapping[str, str] = env if env is not None else os.environ
    configured_dir = env_map.get(DATA_DIR_ENV)
    if configured_dir:
        return Path(configured_dir).expanduser() / DEFAULT_STATE_FILENAME

    return Path(".data") / LEDGER_FOLDER_NAME / DEFAULT_STATE_FILENAME


class MemoryStorageBackend:
    """Volatile storage used for tests and sessions without a writable disk."""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileStorageBackend:
    """Persist all keys as one JSON object on disk."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = resolve_state_file_path(path)
        self._items: dict[str, str] | None = None

    def _load(self) -> dict[str, str]:
        if self._items is not None:
            return self._items

        items: dict[str, str] = {}
        if self.path.exists():
            try:
                with self.path.open("r", encoding="utf-8") as file_handle:
                    raw = json.load(file_handle)
            except (OSError, json.JSONDecodeError) as exc:
                LOGGER.warning("Could not read state file %s: %s", self.path, exc)
                raw = {}
            if isinstance(raw, dict):
                items = {str(key): value for key, value in raw.items() if isinstance(value, str)}
            else:
                LOGGER.warning("Ignoring state file %s with unexpected layout.", self.path)

        self._items = items
        return items

    def _flush(self) -> None:
        serialized = json.dumps(self._load(), ensure_ascii=False, sort_keys=True)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as file_handle:
            file_handle.write(serialized)

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._load()
        if items.get(key) == value:
            return
        items[key] = value
        self._flush()

    def remove_item(self, key: str) -> None:
        items = self._load()
        if key not in items:
            return
        del items[key]
        self._flush()


__all__ = [
    "DATA_DIR_ENV",
    "DEFAULT_STATE_FILENAME",
    "FileStorageBackend",
    "LEDGER_FOLDER_NAME",
    "MemoryStorageBackend",
    "StorageBackend",
    "resolve_state_file_path",
]
