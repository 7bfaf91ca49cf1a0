from __future__ import annotations

import json
import logging
from datetime import date, datetime
from typing import Any, Callable, Iterable, Optional

from pydantic import ValidationError
from pydantic_core import to_jsonable_python

from mission_ledger.constants import KEY_TASKS
from mission_ledger.models import Task, current_time_string, today_string
from mission_ledger.storage import StorageBackend

LOGGER = logging.getLogger(__name__)

_LEGACY_FIELD_NAMES: dict[str, str] = {
    "completionPercentage": "completion_percentage",
    "interimNotes": "interim_notes",
    "isAlarmed": "is_alarmed",
    "alarmOffset": "alarm_offset",
    "alarmLeadTime": "alarm_offset",
    "isSnoozed": "is_snoozed",
    "isCompleted": "is_completed",
    "isLocked": "is_locked",
}


def _coerce_task(raw: Any) -> Task:
    if isinstance(raw, Task):
        return raw

    if isinstance(raw, dict):
        migrated = dict(raw)
        for legacy_name, field_name in _LEGACY_FIELD_NAMES.items():
            if legacy_name in migrated:
                migrated.setdefault(field_name, migrated.pop(legacy_name))
        if migrated.get("alarm_offset") is None:
            migrated.pop("alarm_offset", None)
        return Task.model_validate(migrated)

    return Task.model_validate(raw)


def deserialize_tasks(payload: Optional[str]) -> list[Task]:
    """Parse a stored blob, failing closed to an empty collection."""

    if not payload:
        return []

    try:
        raw_tasks = json.loads(payload)
    except json.JSONDecodeError as exc:
        LOGGER.warning("Stored task payload is not valid JSON, starting empty: %s", exc)
        return []

    if not isinstance(raw_tasks, list):
        LOGGER.warning("Stored task payload is not a list, starting empty.")
        return []

    tasks: list[Task] = []
    seen_ids: set[str] = set()
    for raw in raw_tasks:
        try:
            task = _coerce_task(raw)
        except (ValidationError, ValueError, TypeError) as exc:
            LOGGER.warning("Skipping unreadable task record: %s", exc)
            continue
        if task.id in seen_ids:
            LOGGER.warning("Skipping duplicate task id %s", task.id)
            continue
        seen_ids.add(task.id)
        tasks.append(task)
    return tasks


def serialize_tasks(tasks: Iterable[Task]) -> str:
    return json.dumps([task.model_dump() for task in tasks], default=to_jsonable_python, ensure_ascii=False)


class TaskStore:
    """Authoritative ordered task collection mirrored to storage on every mutation."""

    def __init__(self, storage: StorageBackend, *, clock: Callable[[], datetime] = datetime.now) -> None:
        self.storage = storage
        self.clock = clock
        self._tasks: list[Task] = []
        self._last_deleted: Optional[tuple[int, Task]] = None
        self.reload()

    def reload(self) -> None:
        self._tasks = deserialize_tasks(self.storage.get_item(KEY_TASKS))

    def _persist(self) -> None:
        self.storage.set_item(KEY_TASKS, serialize_tasks(self._tasks))

    def _index_of(self, task_id: str) -> Optional[int]:
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                return index
        return None

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    @property
    def has_deleted(self) -> bool:
        return self._last_deleted is not None

    def get(self, task_id: str) -> Optional[Task]:
        index = self._index_of(task_id)
        return self._tasks[index] if index is not None else None

    def tasks_for_day(self, day: date) -> list[Task]:
        iso_day = day.isoformat()
        return [task for task in self._tasks if task.date == iso_day]

    def sorted_by_date(self) -> list[Task]:
        return sorted(self._tasks, key=lambda task: (task.date, task.time), reverse=True)

    def create(self, **fields: Any) -> Optional[Task]:
        """Append a new task; returns ``None`` when the title is empty or a field is invalid."""

        title = str(fields.get("title") or "").strip()
        if not title:
            LOGGER.info("Ignoring task without objective.")
            return None

        now = self.clock()
        values = {key: value for key, value in fields.items() if key != "id" and value is not None}
        values["title"] = title
        if not values.get("date"):
            values["date"] = today_string(now)
        if not values.get("time"):
            values["time"] = current_time_string(now)

        try:
            task = Task.model_validate(values)
        except ValidationError as exc:
            LOGGER.warning("Rejected task '%s': %s", title, exc)
            return None

        self._tasks.append(task)
        self._persist()
        return task

    def update(self, task_id: str, **changes: Any) -> Optional[Task]:
        index = self._index_of(task_id)
        if index is None:
            return None

        current = self._tasks[index]
        updates = {key: value for key, value in changes.items() if key != "id"}
        if "title" in updates:
            title = str(updates["title"] or "").strip()
            if not title:
                updates.pop("title")
            else:
                updates["title"] = title
        if "completion_percentage" in updates and "is_completed" not in updates:
            # Task._sync_completion re-derives the flag from the validated percentage.
            updates["is_completed"] = False

        try:
            updated = Task.model_validate({**current.model_dump(), **updates})
        except ValidationError as exc:
            LOGGER.warning("Rejected update for task %s: %s", task_id, exc)
            return None

        self._tasks[index] = updated
        self._persist()
        return updated

    def delete(self, task_id: str) -> bool:
        index = self._index_of(task_id)
        if index is None:
            return False

        removed = self._tasks.pop(index)
        self._last_deleted = (index, removed)
        self._persist()
        return True

    def restore(self) -> Optional[Task]:
        """Re-insert the most recently deleted task and clear the undo slot."""

        if self._last_deleted is None:
            return None

        index, task = self._last_deleted
        self._last_deleted = None
        if self._index_of(task.id) is not None:
            return None

        self._tasks.insert(min(index, len(self._tasks)), task)
        self._persist()
        return task


__all__ = ["TaskStore", "deserialize_tasks", "serialize_tasks"]
