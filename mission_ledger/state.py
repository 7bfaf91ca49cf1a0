from __future__ import annotations

import json
import logging
from datetime import date
from typing import Optional

import streamlit as st
from pydantic import TypeAdapter, ValidationError
from pydantic_core import to_jsonable_python

from mission_ledger.alarms import AlarmMonitor, AlarmMonitorConfig
from mission_ledger.constants import (
    KEY_AI_ADVICE,
    KEY_DAY_PLAN,
    KEY_LANGUAGE,
    KEY_MEMORY_BANK,
    KEY_REPORTS,
    MEMORY_BANK_LIMIT,
    REPORT_HISTORY_LIMIT,
    SS_ALARM_MONITOR,
    SS_STORAGE,
    SS_TASK_FORM,
    SS_TASK_STORE,
    SS_VOICE_SESSION,
    cap_list_tail,
)
from mission_ledger.form import TaskForm
from mission_ledger.i18n import LanguageCode, coerce_language, get_language, set_language
from mission_ledger.llm import Citation, LLMError, get_openai_client, get_realtime_model
from mission_ledger.models import DailyReport
from mission_ledger.scoring import build_daily_report
from mission_ledger.storage import FileStorageBackend, StorageBackend
from mission_ledger.task_store import TaskStore
from mission_ledger.voice.audio import SoundDeviceAudio
from mission_ledger.voice.realtime import OpenAIRealtimeLink
from mission_ledger.voice.session import VoiceSession, VoiceSessionConfig

LOGGER = logging.getLogger(__name__)

_REPORTS_ADAPTER: TypeAdapter[list[DailyReport]] = TypeAdapter(list[DailyReport])

__all__ = [
    "append_memory",
    "configure_storage",
    "get_alarm_monitor",
    "get_storage",
    "get_task_form",
    "get_task_store",
    "get_voice_session",
    "init_state",
    "load_ai_advice",
    "load_day_plan",
    "load_memory_bank",
    "load_reports",
    "persist_language",
    "record_daily_report",
    "reset_state",
    "save_ai_advice",
    "save_day_plan",
]


def configure_storage(backend: StorageBackend) -> None:
    """Bind a storage backend to the session and drop objects built on the old one."""

    reset_state()
    st.session_state[SS_STORAGE] = backend


def get_storage() -> StorageBackend:
    backend = st.session_state.get(SS_STORAGE)
    if backend is None:
        backend = FileStorageBackend()
        st.session_state[SS_STORAGE] = backend
    return backend


def reset_state() -> None:
    session = st.session_state.get(SS_VOICE_SESSION)
    if isinstance(session, VoiceSession):
        session.close()
    for key in (SS_TASK_STORE, SS_ALARM_MONITOR, SS_TASK_FORM, SS_VOICE_SESSION):
        if key in st.session_state:
            del st.session_state[key]


def get_task_store() -> TaskStore:
    store = st.session_state.get(SS_TASK_STORE)
    if not isinstance(store, TaskStore):
        store = TaskStore(get_storage())
        st.session_state[SS_TASK_STORE] = store
    return store


def get_alarm_monitor() -> AlarmMonitor:
    monitor = st.session_state.get(SS_ALARM_MONITOR)
    if not isinstance(monitor, AlarmMonitor):
        monitor = AlarmMonitor(get_task_store(), config=AlarmMonitorConfig.from_env())
        st.session_state[SS_ALARM_MONITOR] = monitor
    return monitor


def get_task_form() -> TaskForm:
    form = st.session_state.get(SS_TASK_FORM)
    if not isinstance(form, TaskForm):
        form = TaskForm()
        st.session_state[SS_TASK_FORM] = form
    return form


def _build_realtime_link(language: LanguageCode, assistant_name: str) -> OpenAIRealtimeLink:
    client = get_openai_client()
    if client is None:
        raise LLMError("OPENAI_API_KEY is not configured.")
    return OpenAIRealtimeLink(
        client,
        model=get_realtime_model(),
        language=language,
        assistant_name=assistant_name,
    )


def get_voice_session() -> VoiceSession:
    session = st.session_state.get(SS_VOICE_SESSION)
    if isinstance(session, VoiceSession):
        return session

    storage = get_storage()
    config = VoiceSessionConfig.from_env()
    session = VoiceSession(
        get_task_store(),
        get_task_form(),
        link_factory=lambda: _build_realtime_link(get_language(), config.assistant_name),
        audio_factory=lambda: SoundDeviceAudio(sample_rate=config.sample_rate),
        on_memory=lambda entries: append_memory(entries, storage=storage),
        config=config,
    )
    st.session_state[SS_VOICE_SESSION] = session
    return session


def _load_json(storage: StorageBackend, key: str) -> object:
    payload = storage.get_item(key)
    if not payload:
        return None
    try:
        return json.loads(payload)
    except json.JSONDecodeError as exc:
        LOGGER.warning("Ignoring unreadable '%s' entry: %s", key, exc)
        return None


def load_day_plan(storage: Optional[StorageBackend] = None) -> Optional[str]:
    return (storage or get_storage()).get_item(KEY_DAY_PLAN)


def save_day_plan(plan: Optional[str], storage: Optional[StorageBackend] = None) -> None:
    backend = storage or get_storage()
    if plan is None:
        backend.remove_item(KEY_DAY_PLAN)
    else:
        backend.set_item(KEY_DAY_PLAN, plan)


def load_ai_advice(storage: Optional[StorageBackend] = None) -> tuple[Optional[str], list[Citation]]:
    """Return the stored advice text and its sources."""

    raw = _load_json(storage or get_storage(), KEY_AI_ADVICE)
    if isinstance(raw, str):
        return raw, []
    if not isinstance(raw, dict):
        return None, []

    citations = [
        Citation(uri=str(item["uri"]), title=str(item.get("title") or item["uri"]))
        for item in raw.get("citations") or []
        if isinstance(item, dict) and item.get("uri")
    ]
    text = raw.get("text")
    return (str(text) if text is not None else None), citations


def save_ai_advice(
    text: Optional[str],
    citations: Optional[list[Citation]] = None,
    storage: Optional[StorageBackend] = None,
) -> None:
    backend = storage or get_storage()
    if text is None:
        backend.remove_item(KEY_AI_ADVICE)
        return
    payload = {"text": text, "citations": list(citations or [])}
    backend.set_item(KEY_AI_ADVICE, json.dumps(payload, default=to_jsonable_python, ensure_ascii=False))


def load_memory_bank(storage: Optional[StorageBackend] = None) -> list[str]:
    raw = _load_json(storage or get_storage(), KEY_MEMORY_BANK)
    if not isinstance(raw, list):
        return []
    return [str(entry) for entry in raw]


def append_memory(entries: list[str], storage: Optional[StorageBackend] = None) -> list[str]:
    """Append conversation lines, keeping only the newest ones."""

    backend = storage or get_storage()
    memory = cap_list_tail(load_memory_bank(backend) + list(entries), MEMORY_BANK_LIMIT)
    backend.set_item(KEY_MEMORY_BANK, json.dumps(memory, ensure_ascii=False))
    return memory


def load_reports(storage: Optional[StorageBackend] = None) -> list[DailyReport]:
    raw = _load_json(storage or get_storage(), KEY_REPORTS)
    if raw is None:
        return []
    try:
        return _REPORTS_ADAPTER.validate_python(raw)
    except ValidationError as exc:
        LOGGER.warning("Ignoring unreadable report history: %s", exc)
        return []


def record_daily_report(
    store: TaskStore,
    day: Optional[date] = None,
    storage: Optional[StorageBackend] = None,
) -> DailyReport:
    """Snapshot the efficiency of ``day`` and replace any earlier snapshot for it."""

    backend = storage or get_storage()
    report_day = day or store.clock().date()
    report = build_daily_report(store.tasks, report_day)
    history = [entry for entry in load_reports(backend) if entry.date != report_day]
    history.append(report)
    history.sort(key=lambda entry: entry.date)
    history = cap_list_tail(history, REPORT_HISTORY_LIMIT)
    backend.set_item(KEY_REPORTS, _REPORTS_ADAPTER.dump_json(history).decode("utf-8"))
    return report


def persist_language(language: LanguageCode, storage: Optional[StorageBackend] = None) -> None:
    set_language(language)
    (storage or get_storage()).set_item(KEY_LANGUAGE, coerce_language(language))


def init_state(storage: Optional[StorageBackend] = None) -> None:
    """Prepare session objects and restore the saved language on first run."""

    if storage is not None and st.session_state.get(SS_STORAGE) is not storage:
        configure_storage(storage)
    backend = get_storage()

    if KEY_LANGUAGE not in st.session_state:
        set_language(coerce_language(backend.get_item(KEY_LANGUAGE)))

    get_task_store()
    get_task_form()
    get_alarm_monitor()
