from __future__ import annotations

import logging
import re
from datetime import date, datetime, timedelta
from enum import StrEnum
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field, ValidationError

from mission_ledger.models import (
    AlarmOffset,
    RepeatPattern,
    Task,
    TaskCategory,
    TaskUrgency,
    current_time_string,
    today_string,
)
from mission_ledger.task_store import TaskStore
from mission_ledger.voice.events import UpdateFieldEvent

LOGGER = logging.getLogger(__name__)

_AFFIRMATIVE = {"yes", "yeah", "yep", "sure", "on", "true", "activate", "enable", "enabled", "haan", "ha"}
_NEGATIVE = {"no", "nope", "off", "false", "disable", "disabled", "deactivate", "nahi", "na"}
_CLOCK_PATTERN = re.compile(r"(\d{1,2})(?::(\d{2}))?\s*(am|pm)?")
_COMPACT_CLOCK_PATTERN = re.compile(r"(\d{3,4})\s*(am|pm)?")


class FormMode(StrEnum):
    IDLE = "idle"
    MANUAL_EDITING = "manual_editing"
    VOICE_DRIVEN = "voice_driven"


class TaskDraft(BaseModel):
    """In-progress values of the task-entry form."""

    title: str = ""
    date: str = Field(default_factory=today_string)
    time: str = Field(default_factory=current_time_string)
    category: TaskCategory = TaskCategory.ROUTINE
    urgency: TaskUrgency = TaskUrgency.REGULAR
    is_alarmed: bool = False
    alarm_offset: AlarmOffset = AlarmOffset.ON_TIME
    repeat: RepeatPattern = RepeatPattern.ONCE
    notes: str = ""

    @classmethod
    def from_task(cls, task: Task) -> "TaskDraft":
        return cls(
            title=task.title,
            date=task.date,
            time=task.time,
            category=task.category,
            urgency=task.urgency,
            is_alarmed=task.is_alarmed,
            alarm_offset=task.alarm_offset,
            repeat=task.repeat,
            notes=task.notes,
        )

    def to_fields(self) -> dict[str, Any]:
        return self.model_dump()


def parse_voice_time(value: str) -> Optional[str]:
    """Read spoken clock times such as ``09:30``, ``9:30 pm``, ``0930`` or ``9 pm``."""

    text = value.strip().lower().replace(".", "").replace("hrs", "").replace("hours", "").strip()
    match = _CLOCK_PATTERN.fullmatch(text)
    if match:
        hour, minute, meridiem = int(match.group(1)), int(match.group(2) or 0), match.group(3)
    else:
        compact = _COMPACT_CLOCK_PATTERN.fullmatch(text)
        if not compact:
            return None
        digits, meridiem = compact.group(1), compact.group(2)
        hour, minute = int(digits[:-2]), int(digits[-2:])

    if meridiem == "pm" and hour < 12:
        hour += 12
    elif meridiem == "am" and hour == 12:
        hour = 0

    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    return f"{hour:02d}:{minute:02d}"


def parse_voice_date(value: str, *, today: date) -> Optional[str]:
    text = value.strip().lower()
    relative = {"today": 0, "tonight": 0, "tomorrow": 1, "day after tomorrow": 2}
    if text in relative:
        return (today + timedelta(days=relative[text])).isoformat()

    try:
        return date.fromisoformat(text).isoformat()
    except ValueError:
        pass

    for pattern in ("%d/%m/%Y", "%d-%m-%Y", "%d %B %Y", "%B %d %Y"):
        try:
            return datetime.strptime(text.replace(",", ""), pattern).date().isoformat()
        except ValueError:
            continue

    for pattern in ("%d %B", "%B %d"):
        try:
            parsed = datetime.strptime(text.replace(",", ""), pattern)
        except ValueError:
            continue
        return parsed.replace(year=today.year).date().isoformat()
    return None


def parse_voice_category(value: str) -> Optional[TaskCategory]:
    text = value.strip().lower()
    if "5x" in text or "speed" in text or "accelerat" in text or "fast" in text:
        return TaskCategory.ACCELERATED
    if "routine" in text:
        return TaskCategory.ROUTINE
    return None


def parse_voice_priority(value: str) -> Optional[TaskUrgency]:
    text = value.strip().lower()
    if "urgent" in text:
        return TaskUrgency.URGENT
    if "important" in text or "priority" in text or "high" in text:
        return TaskUrgency.IMPORTANT
    if "regular" in text or "normal" in text or "low" in text:
        return TaskUrgency.REGULAR
    return None


def parse_voice_alarm(value: str) -> Optional[tuple[bool, AlarmOffset]]:
    text = value.strip().lower()
    words = set(re.findall(r"[a-z]+", text))
    if "30" in text or "thirty" in words:
        offset = AlarmOffset.THIRTY_MINUTES
    elif "10" in text or "ten" in words:
        offset = AlarmOffset.TEN_MINUTES
    else:
        offset = AlarmOffset.ON_TIME

    if words & _NEGATIVE:
        return False, AlarmOffset.ON_TIME
    if words & _AFFIRMATIVE or offset is not AlarmOffset.ON_TIME:
        return True, offset
    return None


class TaskForm:
    """Task-entry form as an explicit state machine.

    Manual edits are only accepted in ``MANUAL_EDITING``; while the assistant
    is dictating (``VOICE_DRIVEN``) the form is read-only to the user and
    only voice field updates apply.
    """

    def __init__(self, *, clock: Callable[[], datetime] = datetime.now) -> None:
        self.clock = clock
        self.mode = FormMode.IDLE
        self.draft = self._fresh_draft()
        self.editing_task_id: Optional[str] = None

    def _fresh_draft(self) -> TaskDraft:
        now = self.clock()
        return TaskDraft(date=today_string(now), time=current_time_string(now))

    @property
    def is_read_only(self) -> bool:
        return self.mode is FormMode.VOICE_DRIVEN

    def begin_manual(self, task: Optional[Task] = None) -> bool:
        if self.mode is FormMode.VOICE_DRIVEN:
            return False
        self.mode = FormMode.MANUAL_EDITING
        self.editing_task_id = task.id if task is not None else None
        self.draft = TaskDraft.from_task(task) if task is not None else self._fresh_draft()
        return True

    def begin_voice(self) -> bool:
        if self.mode is not FormMode.IDLE:
            return False
        self.mode = FormMode.VOICE_DRIVEN
        self.editing_task_id = None
        self.draft = self._fresh_draft()
        return True

    def cancel(self) -> None:
        self.mode = FormMode.IDLE
        self.editing_task_id = None
        self.draft = self._fresh_draft()

    def set_field(self, name: str, value: Any) -> bool:
        if self.mode is not FormMode.MANUAL_EDITING:
            return False
        if name not in TaskDraft.model_fields:
            return False
        try:
            self.draft = TaskDraft.model_validate({**self.draft.model_dump(), name: value})
        except ValidationError as exc:
            LOGGER.info("Rejected form value for %s: %s", name, exc)
            return False
        return True

    def apply_voice_update(self, event: UpdateFieldEvent) -> bool:
        """Apply one assistant field update to the draft."""

        if self.mode is not FormMode.VOICE_DRIVEN:
            LOGGER.info("Ignoring voice update for '%s' outside voice mode.", event.field)
            return False

        updates: dict[str, Any] = {}
        if event.field == "objective":
            if event.value.strip():
                updates["title"] = event.value.strip()
        elif event.field == "category":
            category = parse_voice_category(event.value)
            if category is not None:
                updates["category"] = category
        elif event.field == "priority":
            urgency = parse_voice_priority(event.value)
            if urgency is not None:
                updates["urgency"] = urgency
        elif event.field == "time":
            parsed_time = parse_voice_time(event.value)
            if parsed_time is not None:
                updates["time"] = parsed_time
        elif event.field == "date":
            parsed_date = parse_voice_date(event.value, today=self.clock().date())
            if parsed_date is not None:
                updates["date"] = parsed_date
        elif event.field == "alarm":
            alarm = parse_voice_alarm(event.value)
            if alarm is not None:
                updates["is_alarmed"], updates["alarm_offset"] = alarm

        if not updates:
            LOGGER.info("Could not interpret %s value %r.", event.field, event.value)
            return False

        self.draft = self.draft.model_copy(update=updates)
        return True

    def submit(self, store: TaskStore) -> Optional[Task]:
        """Save a manual entry; an empty objective keeps the form open."""

        if self.mode is not FormMode.MANUAL_EDITING:
            return None

        fields = self.draft.to_fields()
        if self.editing_task_id is not None:
            if not self.draft.title.strip():
                return None
            saved = store.update(self.editing_task_id, **fields)
        else:
            saved = store.create(**fields)

        if saved is not None:
            self.cancel()
        return saved

    def commit(self, store: TaskStore) -> Optional[Task]:
        """Save the dictated mission and start a fresh draft for the next one."""

        if self.mode is not FormMode.VOICE_DRIVEN:
            return None

        saved = store.create(**self.draft.to_fields())
        if saved is not None:
            LOGGER.info("Voice mission '%s' saved for %s %s.", saved.title, saved.date, saved.time)
            self.draft = self._fresh_draft()
        return saved


__all__ = [
    "FormMode",
    "TaskDraft",
    "TaskForm",
    "parse_voice_alarm",
    "parse_voice_category",
    "parse_voice_date",
    "parse_voice_priority",
    "parse_voice_time",
]
