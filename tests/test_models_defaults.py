from __future__ import annotations

import pytest
from pydantic import ValidationError

from mission_ledger.models import (
    AlarmOffset,
    RepeatPattern,
    Task,
    TaskCategory,
    TaskUrgency,
)


def test_task_defaults() -> None:
    task = Task(title="Morning run", date="2024-05-14", time="06:30")

    assert task.category is TaskCategory.ROUTINE
    assert task.urgency is TaskUrgency.REGULAR
    assert task.completion_percentage == 0
    assert task.is_completed is False
    assert task.is_alarmed is False
    assert task.alarm_offset is AlarmOffset.ON_TIME
    assert task.is_snoozed is False
    assert task.snoozed_until is None
    assert task.is_locked is True
    assert task.repeat is RepeatPattern.ONCE
    assert task.subtasks == []
    assert len(task.id) == 32


def test_ids_are_unique() -> None:
    first = Task(title="A")
    second = Task(title="B")

    assert first.id != second.id


def test_legacy_enum_values_are_accepted() -> None:
    task = Task.model_validate({"title": "Legacy", "urgency": "Priority", "category": "5x_speed"})

    assert task.urgency is TaskUrgency.IMPORTANT
    assert task.category is TaskCategory.ACCELERATED


def test_urgency_multipliers() -> None:
    assert [urgency.multiplier for urgency in TaskUrgency] == [1, 2, 3]


def test_completed_task_is_forced_to_full_progress() -> None:
    task = Task(title="Done", completion_percentage=40, is_completed=True)

    assert task.completion_percentage == 100


def test_full_progress_marks_task_completed() -> None:
    task = Task(title="Done", completion_percentage=100)

    assert task.is_completed is True


def test_time_and_date_are_normalised() -> None:
    task = Task(title="Call", date=" 2024-05-14 ", time="9:05")

    assert task.date == "2024-05-14"
    assert task.time == "09:05"
    assert task.scheduled_at.hour == 9


@pytest.mark.parametrize("field,value", [("date", "14.05.2024"), ("time", "25:00"), ("completion_percentage", 120)])
def test_invalid_fields_are_rejected(field: str, value: object) -> None:
    with pytest.raises(ValidationError):
        Task.model_validate({"title": "Broken", field: value})
