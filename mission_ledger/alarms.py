from __future__ import annotations

import io
import logging
import math
import os
import threading
import time
import wave
from array import array
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Mapping, Optional

from mission_ledger.models import RepeatPattern, Task
from mission_ledger.task_store import TaskStore

LOGGER = logging.getLogger(__name__)

SAMPLE_RATE = 22050
BEEP_FREQUENCIES: tuple[tuple[float, float], ...] = ((880.0, 0.0), (1320.0, 0.15), (1760.0, 0.3))
BEEP_DURATION_SECONDS = 0.7
BEEP_PEAK_GAIN = 0.2


@dataclass
class AlarmMonitorConfig:
    poll_interval_seconds: float = 3.0
    trigger_window_seconds: int = 60
    ring_interval_seconds: float = 1.2

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> AlarmMonitorConfig:
        env_map = env if env is not None else os.environ
        return cls(
            poll_interval_seconds=float(env_map.get("ALARM_POLL_INTERVAL_SECONDS", "3")),
            trigger_window_seconds=int(env_map.get("ALARM_TRIGGER_WINDOW_SECONDS", "60")),
            ring_interval_seconds=float(env_map.get("ALARM_RING_INTERVAL_SECONDS", "1.2")),
        )


def _occurrence_dates(task: Task, now: datetime) -> tuple[date, ...]:
    if task.repeat is RepeatPattern.DAILY:
        # A lead time can pull tomorrow's occurrence into today.
        return (now.date(), now.date() + timedelta(days=1))
    return (task.scheduled_date,)


def due_occurrence(task: Task, now: datetime, *, window_seconds: int = 60) -> Optional[date]:
    """Return the scheduled day whose trigger instant falls into ``[trigger, trigger + window)``."""

    lead_time = timedelta(minutes=int(task.alarm_offset))
    window = timedelta(seconds=window_seconds)
    for occurrence in _occurrence_dates(task, now):
        trigger_at = datetime.combine(occurrence, task.scheduled_time) - lead_time
        if trigger_at <= now < trigger_at + window:
            return occurrence
    return None


def is_alarm_eligible(task: Task) -> bool:
    return task.is_alarmed and not task.is_completed and not task.is_snoozed


class AlarmMonitor:
    """Poll the task store and hold at most one ringing task."""

    def __init__(
        self,
        store: TaskStore,
        *,
        config: Optional[AlarmMonitorConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
        on_trigger: Optional[Callable[[Task], None]] = None,
    ) -> None:
        self.store = store
        self.config = config or AlarmMonitorConfig()
        self.clock = clock
        self.on_trigger = on_trigger
        self.active_alarm_id: Optional[str] = None
        self._rearmed: set[str] = set()
        self._occurrences: dict[str, date] = {}

    @property
    def active_alarm(self) -> Optional[Task]:
        if self.active_alarm_id is None:
            return None
        return self.store.get(self.active_alarm_id)

    def _release_snoozes(self, now: datetime) -> None:
        for task in self.store.tasks:
            if not task.is_snoozed:
                continue
            if task.snoozed_until is not None and task.snoozed_until > now:
                continue
            self.store.update(task.id, is_snoozed=False, snoozed_until=None)
            if task.snoozed_until is not None:
                self._rearmed.add(task.id)
            LOGGER.info("Snooze elapsed for '%s'.", task.title)

    def _is_due(self, task: Task, now: datetime) -> bool:
        if task.id in self._rearmed:
            return True
        occurrence = due_occurrence(task, now, window_seconds=self.config.trigger_window_seconds)
        if occurrence is None:
            return False
        if task.repeat is RepeatPattern.DAILY and task.alarm_acknowledged_on == occurrence:
            return False
        return True

    def poll_once(self, *, now: Optional[datetime] = None) -> Optional[Task]:
        """Run one check and return the ringing task, if any."""

        now_ts = now or self.clock()
        self._release_snoozes(now_ts)

        if self.active_alarm_id is not None:
            active = self.active_alarm
            if active is not None and is_alarm_eligible(active):
                return active
            self._clear_slot(self.active_alarm_id)

        eligible = [task for task in self.store.tasks if is_alarm_eligible(task)]
        self._rearmed &= {task.id for task in eligible}

        for task in eligible:
            if not self._is_due(task, now_ts):
                continue
            rearmed = task.id in self._rearmed
            self.active_alarm_id = task.id
            self._rearmed.discard(task.id)
            # A snoozed ring keeps the day it first fired for.
            if not rearmed or task.id not in self._occurrences:
                occurrence = due_occurrence(task, now_ts, window_seconds=self.config.trigger_window_seconds)
                self._occurrences[task.id] = occurrence or now_ts.date()
            LOGGER.info("Alarm triggered for '%s' (%s %s).", task.title, task.date, task.time)
            if self.on_trigger is not None:
                self.on_trigger(task)
            return task

        return None

    def _clear_slot(self, task_id: str, *, keep_occurrence: bool = False) -> None:
        if self.active_alarm_id == task_id:
            self.active_alarm_id = None
        self._rearmed.discard(task_id)
        if not keep_occurrence:
            self._occurrences.pop(task_id, None)

    def stop(self, task_id: str, *, now: Optional[datetime] = None) -> Optional[Task]:
        """Silence the alarm for this occurrence."""

        task = self.store.get(task_id)
        if task is None:
            self._clear_slot(task_id)
            return None

        if task.repeat is RepeatPattern.DAILY:
            now_ts = now or self.clock()
            occurrence = (
                self._occurrences.get(task_id)
                or due_occurrence(task, now_ts, window_seconds=self.config.trigger_window_seconds)
                or now_ts.date()
            )
            updated = self.store.update(task_id, alarm_acknowledged_on=occurrence)
        else:
            updated = self.store.update(task_id, is_alarmed=False)
        self._clear_slot(task_id)
        return updated

    def snooze(self, task_id: str, minutes: int, *, now: Optional[datetime] = None) -> Optional[Task]:
        release_at = (now or self.clock()) + timedelta(minutes=minutes)
        updated = self.store.update(task_id, is_snoozed=True, snoozed_until=release_at)
        self._clear_slot(task_id, keep_occurrence=True)
        LOGGER.info("Alarm snoozed for %s minutes.", minutes)
        return updated

    def postpone(self, task_id: str, new_date: date | str, new_time: str) -> Optional[Task]:
        updated = self.store.update(
            task_id,
            date=new_date,
            time=new_time,
            is_snoozed=False,
            snoozed_until=None,
            is_alarmed=True,
            alarm_acknowledged_on=None,
        )
        self._clear_slot(task_id)
        return updated

    def run(self, stop_event: threading.Event, *, sleep: Callable[[float], None] = time.sleep) -> None:
        """Poll until ``stop_event`` is set."""

        while not stop_event.is_set():
            self.poll_once()
            sleep(self.config.poll_interval_seconds)


def _triangle(phase: float) -> float:
    fraction = phase - math.floor(phase)
    return 4.0 * abs(fraction - 0.5) - 1.0


def build_alarm_wav(duration_seconds: float = 1.2, sample_rate: int = SAMPLE_RATE) -> bytes:
    """Render three rising triangle beeps with an exponential fade as 16-bit mono WAV."""

    total_samples = int(duration_seconds * sample_rate)
    mix = [0.0] * total_samples
    decay = math.log(0.001 / BEEP_PEAK_GAIN) / 0.6

    for frequency, start in BEEP_FREQUENCIES:
        first = int(start * sample_rate)
        last = min(total_samples, first + int(BEEP_DURATION_SECONDS * sample_rate))
        for index in range(first, last):
            elapsed = (index - first) / sample_rate
            gain = BEEP_PEAK_GAIN * math.exp(decay * elapsed)
            mix[index] += gain * _triangle(frequency * elapsed)

    samples = array("h", (int(max(-1.0, min(1.0, value)) * 32767) for value in mix))
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav_file:
        wav_file.setnchannels(1)
        wav_file.setsampwidth(2)
        wav_file.setframerate(sample_rate)
        wav_file.writeframes(samples.tobytes())
    return buffer.getvalue()


class AlarmSignal:
    """Best-effort audible alarm; the visual alarm stays the reliable channel."""

    def __init__(self, player: Optional[Callable[[bytes], None]] = None, *, duration_seconds: float = 1.2) -> None:
        self.player = player
        self.duration_seconds = duration_seconds
        self._wav: Optional[bytes] = None

    @property
    def wav(self) -> bytes:
        if self._wav is None:
            self._wav = build_alarm_wav(self.duration_seconds)
        return self._wav

    def emit(self) -> bool:
        if self.player is None:
            return False
        try:
            self.player(self.wav)
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("Alarm sound failure: %s", exc)
            return False
        return True


__all__ = [
    "AlarmMonitor",
    "AlarmMonitorConfig",
    "AlarmSignal",
    "build_alarm_wav",
    "due_occurrence",
    "is_alarm_eligible",
]
