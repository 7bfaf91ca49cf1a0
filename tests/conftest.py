from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict

import pytest
import streamlit as st

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from mission_ledger.storage import MemoryStorageBackend  # noqa: E402
from mission_ledger.task_store import TaskStore  # noqa: E402

FIXED_NOW = datetime(2024, 5, 14, 8, 50, 0)


class MutableClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def session_state(monkeypatch: pytest.MonkeyPatch) -> Dict[str, object]:
    state: Dict[str, object] = {}
    monkeypatch.setattr(st, "session_state", state, raising=False)
    return state


@pytest.fixture()
def storage() -> MemoryStorageBackend:
    return MemoryStorageBackend()


@pytest.fixture()
def clock() -> MutableClock:
    return MutableClock(FIXED_NOW)


@pytest.fixture()
def store(storage: MemoryStorageBackend, clock: Callable[[], datetime]) -> TaskStore:
    return TaskStore(storage, clock=clock)
