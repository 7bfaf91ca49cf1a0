from __future__ import annotations

import json
from pathlib import Path

from mission_ledger.storage import (
    DATA_DIR_ENV,
    DEFAULT_STATE_FILENAME,
    LEDGER_FOLDER_NAME,
    FileStorageBackend,
    MemoryStorageBackend,
    resolve_state_file_path,
)


def test_file_storage_roundtrip(tmp_path: Path) -> None:
    backend = FileStorageBackend(tmp_path / "nested" / "state.json")
    backend.set_item("tasks", "[]")
    backend.set_item("selected_language", "Hindi")

    reopened = FileStorageBackend(tmp_path / "nested" / "state.json")

    assert reopened.get_item("tasks") == "[]"
    assert reopened.get_item("selected_language") == "Hindi"
    assert reopened.get_item("missing") is None


def test_remove_item_persists(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    backend = FileStorageBackend(path)
    backend.set_item("day_plan", "[08:00] >> [Run] || [Start slow]")
    backend.remove_item("day_plan")

    assert json.loads(path.read_text(encoding="utf-8")) == {}
    assert FileStorageBackend(path).get_item("day_plan") is None


def test_corrupt_state_file_starts_empty(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")

    backend = FileStorageBackend(path)

    assert backend.get_item("tasks") is None
    backend.set_item("tasks", "[]")
    assert json.loads(path.read_text(encoding="utf-8")) == {"tasks": "[]"}


def test_non_string_values_are_ignored(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"tasks": [1, 2], "reports": "[]"}), encoding="utf-8")

    backend = FileStorageBackend(path)

    assert backend.get_item("tasks") is None
    assert backend.get_item("reports") == "[]"


def test_data_dir_env_hint(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv(DATA_DIR_ENV, str(tmp_path / "ledger"))

    backend = FileStorageBackend()

    assert backend.path == tmp_path / "ledger" / DEFAULT_STATE_FILENAME


def test_default_path_without_env(monkeypatch) -> None:
    monkeypatch.delenv(DATA_DIR_ENV, raising=False)

    assert resolve_state_file_path() == Path(".data") / LEDGER_FOLDER_NAME / DEFAULT_STATE_FILENAME


def test_explicit_directory_gets_default_filename(tmp_path: Path) -> None:
    assert resolve_state_file_path(tmp_path) == tmp_path / DEFAULT_STATE_FILENAME


def test_memory_backend() -> None:
    backend = MemoryStorageBackend({"tasks": "[]"})
    backend.set_item("memory_bank", "[]")
    backend.remove_item("tasks")
    backend.remove_item("never-set")

    assert backend.get_item("tasks") is None
    assert backend.get_item("memory_bank") == "[]"
