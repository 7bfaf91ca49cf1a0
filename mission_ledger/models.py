from __future__ import annotations

from datetime import date, datetime, time
from datetime import date as _date
from enum import IntEnum, StrEnum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

TIME_FORMAT = "%H:%M"


def _new_id() -> str:
    return uuid4().hex


def today_string(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).date().isoformat()


def current_time_string(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime(TIME_FORMAT)


class TaskUrgency(StrEnum):
    """Priority grade of a mission with its scoring multiplier."""

    REGULAR = "Regular"
    IMPORTANT = "Important"
    URGENT = "Urgent"

    @classmethod
    def _missing_(cls, value: object) -> Optional["TaskUrgency"]:
        if not isinstance(value, str):
            return None
        lowered = value.strip().lower()
        if lowered == "priority":
            return cls.IMPORTANT
        for member in cls:
            if member.value.lower() == lowered:
                return member
        return None

    @property
    def multiplier(self) -> int:
        if self is TaskUrgency.URGENT:
            return 3
        if self is TaskUrgency.IMPORTANT:
            return 2
        return 1

    @property
    def label(self) -> tuple[str, str]:
        if self is TaskUrgency.URGENT:
            return ("Urgent (3x)", "अत्यावश्यक (3x)")
        if self is TaskUrgency.IMPORTANT:
            return ("Important (2x)", "महत्वपूर्ण (2x)")
        return ("Regular", "सामान्य")


class TaskCategory(StrEnum):
    """Operating mode of a mission."""

    ROUTINE = "routine"
    ACCELERATED = "5x"

    @classmethod
    def _missing_(cls, value: object) -> Optional["TaskCategory"]:
        if not isinstance(value, str):
            return None
        lowered = value.strip().lower().replace("_", " ")
        if lowered in {"5x speed", "5x", "accelerated", "speed"}:
            return cls.ACCELERATED
        if lowered == "routine":
            return cls.ROUTINE
        return None

    @property
    def label(self) -> tuple[str, str]:
        if self is TaskCategory.ACCELERATED:
            return ("5x Speed", "5x गति")
        return ("Routine", "दिनचर्या")


class RepeatPattern(StrEnum):
    ONCE = "once"
    DAILY = "daily"

    @property
    def label(self) -> tuple[str, str]:
        if self is RepeatPattern.DAILY:
            return ("Daily", "प्रतिदिन")
        return ("Once", "एक बार")


class AlarmOffset(IntEnum):
    """Lead time in minutes before the scheduled time."""

    ON_TIME = 0
    TEN_MINUTES = 10
    THIRTY_MINUTES = 30

    @property
    def label(self) -> tuple[str, str]:
        if self is AlarmOffset.ON_TIME:
            return ("On time", "समय पर")
        return (f"{self.value} min before", f"{self.value} मिनट पहले")


class SubTask(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str
    is_completed: bool = False


class Task(BaseModel):
    """A mission as stored in the ledger."""

    id: str = Field(default_factory=_new_id)
    title: str
    description: str = ""
    date: str = Field(default_factory=today_string)
    time: str = Field(default_factory=current_time_string)
    category: TaskCategory = TaskCategory.ROUTINE
    urgency: TaskUrgency = TaskUrgency.REGULAR
    completion_percentage: int = Field(default=0, ge=0, le=100)
    notes: str = ""
    interim_notes: str = ""
    is_alarmed: bool = False
    alarm_offset: AlarmOffset = AlarmOffset.ON_TIME
    is_snoozed: bool = False
    snoozed_until: Optional[datetime] = None
    alarm_acknowledged_on: Optional[_date] = None
    is_completed: bool = False
    is_locked: bool = True
    subtasks: list[SubTask] = Field(default_factory=list)
    repeat: RepeatPattern = RepeatPattern.ONCE

    @field_validator("date", mode="before")
    @classmethod
    def _normalize_date(cls, value: object) -> object:
        if isinstance(value, datetime):
            return value.date().isoformat()
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, str):
            return date.fromisoformat(value.strip()).isoformat()
        return value

    @field_validator("time", mode="before")
    @classmethod
    def _normalize_time(cls, value: object) -> object:
        if isinstance(value, time):
            return value.strftime(TIME_FORMAT)
        if isinstance(value, str):
            return datetime.strptime(value.strip()[:5], TIME_FORMAT).strftime(TIME_FORMAT)
        return value

    @model_validator(mode="after")
    def _sync_completion(self) -> "Task":
        if self.is_completed:
            self.completion_percentage = 100
        elif self.completion_percentage == 100:
            self.is_completed = True
        return self

    @property
    def scheduled_date(self) -> date:
        return date.fromisoformat(self.date)

    @property
    def scheduled_time(self) -> time:
        return datetime.strptime(self.time, TIME_FORMAT).time()

    @property
    def scheduled_at(self) -> datetime:
        return datetime.combine(self.scheduled_date, self.scheduled_time)


class ScoreConfig(BaseModel):
    """Points per completion tier and urgency multipliers."""

    completion: dict[str, int] = Field(
        default_factory=lambda: {"100": 10, "75-99": 7, "50-74": 5, "25-49": 2, "0-24": 0}
    )
    multipliers: dict[TaskUrgency, int] = Field(
        default_factory=lambda: {urgency: urgency.multiplier for urgency in TaskUrgency}
    )


DEFAULT_SCORE_CONFIG = ScoreConfig()


class PerformanceStats(BaseModel):
    current: float = 0.0
    maximum: float = 0.0
    percentage: int = 0


class DailyReport(BaseModel):
    """Snapshot of the efficiency metric for one day."""

    date: _date
    score: float = 0.0
    max_score: float = 0.0
    percentage: int = 0
    completed: int = 0
    total: int = 0


__all__ = [
    "AlarmOffset",
    "DEFAULT_SCORE_CONFIG",
    "DailyReport",
    "PerformanceStats",
    "RepeatPattern",
    "ScoreConfig",
    "SubTask",
    "Task",
    "TaskCategory",
    "TaskUrgency",
    "current_time_string",
    "today_string",
]
