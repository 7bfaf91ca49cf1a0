"""Central constants for storage keys, Streamlit session state keys and defaults."""

from typing import TypeVar

ItemT = TypeVar("ItemT")

# Persisted keys, each stored independently.
KEY_TASKS: str = "tasks"
KEY_REPORTS: str = "reports"
KEY_MEMORY_BANK: str = "memory_bank"
KEY_DAY_PLAN: str = "day_plan"
KEY_AI_ADVICE: str = "ai_advice"
KEY_LANGUAGE: str = "selected_language"

# Session state keys.
SS_STORAGE: str = "_ledger_storage"
SS_TASK_STORE: str = "_ledger_task_store"
SS_ALARM_MONITOR: str = "_ledger_alarm_monitor"
SS_TASK_FORM: str = "_ledger_task_form"
SS_VOICE_SESSION: str = "_ledger_voice_session"
SS_POSTPONE_VIEW: str = "alarm_postpone_view"

MEMORY_BANK_LIMIT: int = 30
REPORT_HISTORY_LIMIT: int = 30
SNOOZE_OPTIONS_MINUTES: tuple[int, ...] = (5, 30)
ALARM_OFFSET_OPTIONS: tuple[int, ...] = (0, 10, 30)


def cap_list_tail(values: list[ItemT], limit: int) -> list[ItemT]:
    """Keep only the newest ``limit`` entries of a list."""

    if limit <= 0:
        return []
    return values[-limit:]
