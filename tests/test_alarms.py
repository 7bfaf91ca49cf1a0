from __future__ import annotations

import threading
from datetime import date, datetime, timedelta

import pytest

from mission_ledger.alarms import (
    AlarmMonitor,
    AlarmMonitorConfig,
    AlarmSignal,
    build_alarm_wav,
    due_occurrence,
)
from mission_ledger.models import Task
from mission_ledger.task_store import TaskStore

DAY = date(2024, 5, 14)


def _at(hour: int, minute: int, second: int = 0, *, day: date = DAY) -> datetime:
    return datetime.combine(day, datetime.min.time()).replace(hour=hour, minute=minute, second=second)


def _alarmed(store: TaskStore, title: str = "Stand-up", **fields: object) -> Task:
    values: dict[str, object] = {"date": DAY.isoformat(), "time": "09:00", "is_alarmed": True, "alarm_offset": 10}
    values.update(fields)
    task = store.create(title=title, **values)
    assert task is not None
    return task


@pytest.mark.parametrize(
    "now,fires",
    [
        (_at(8, 50), True),
        (_at(8, 50, 59), True),
        (_at(8, 49), False),
        (_at(8, 51), False),
    ],
)
def test_trigger_minute_respects_lead_time(store: TaskStore, now: datetime, fires: bool) -> None:
    task = _alarmed(store)
    monitor = AlarmMonitor(store)

    result = monitor.poll_once(now=now)

    assert (result is not None) is fires
    assert monitor.active_alarm_id == (task.id if fires else None)


def test_only_one_alarm_is_active(store: TaskStore) -> None:
    first = _alarmed(store, "first")
    second = _alarmed(store, "second")
    monitor = AlarmMonitor(store)

    assert monitor.poll_once(now=_at(8, 50)) == first
    assert monitor.poll_once(now=_at(8, 50, 10)) == first

    monitor.stop(first.id, now=_at(8, 50, 20))

    assert monitor.poll_once(now=_at(8, 50, 30)) == second


def test_completed_and_unalarmed_tasks_never_ring(store: TaskStore) -> None:
    _alarmed(store, "done", is_completed=True)
    _alarmed(store, "quiet", is_alarmed=False)
    monitor = AlarmMonitor(store)

    assert monitor.poll_once(now=_at(8, 50)) is None


def test_stop_disarms_one_time_alarm(store: TaskStore) -> None:
    task = _alarmed(store)
    monitor = AlarmMonitor(store)
    monitor.poll_once(now=_at(8, 50))

    stopped = monitor.stop(task.id, now=_at(8, 50, 5))

    assert stopped is not None and stopped.is_alarmed is False
    assert monitor.active_alarm is None
    assert monitor.poll_once(now=_at(8, 50, 30)) is None


def test_snooze_suppresses_then_rings_again(store: TaskStore) -> None:
    task = _alarmed(store)
    monitor = AlarmMonitor(store)
    monitor.poll_once(now=_at(8, 50))

    snoozed = monitor.snooze(task.id, 5, now=_at(8, 50, 10))

    assert snoozed is not None and snoozed.is_snoozed is True
    assert snoozed.snoozed_until == _at(8, 55, 10)
    assert monitor.active_alarm_id is None
    assert monitor.poll_once(now=_at(8, 52)) is None

    rung = monitor.poll_once(now=_at(8, 55, 10))

    assert rung is not None and rung.id == task.id
    assert store.get(task.id).is_snoozed is False  # type: ignore[union-attr]


def test_expired_snooze_on_completed_task_does_not_ring(store: TaskStore) -> None:
    task = _alarmed(store)
    monitor = AlarmMonitor(store)
    monitor.snooze(task.id, 5, now=_at(8, 50))
    store.update(task.id, completion_percentage=100)

    assert monitor.poll_once(now=_at(8, 56)) is None
    assert store.get(task.id).is_snoozed is False  # type: ignore[union-attr]


def test_postpone_reschedules_and_rearms(store: TaskStore) -> None:
    task = _alarmed(store, is_alarmed=True)
    monitor = AlarmMonitor(store)
    monitor.poll_once(now=_at(8, 50))
    monitor.snooze(task.id, 30, now=_at(8, 50))

    postponed = monitor.postpone(task.id, date(2024, 5, 15), "10:00")

    assert postponed is not None
    assert (postponed.date, postponed.time) == ("2024-05-15", "10:00")
    assert postponed.is_snoozed is False and postponed.snoozed_until is None
    assert postponed.is_alarmed is True
    assert monitor.active_alarm_id is None
    assert monitor.poll_once(now=_at(9, 50, day=date(2024, 5, 15))) == postponed


def test_daily_alarm_is_acknowledged_for_today_only(store: TaskStore) -> None:
    task = _alarmed(store, "Vitamins", repeat="daily", date="2024-05-01")
    monitor = AlarmMonitor(store)

    assert monitor.poll_once(now=_at(8, 50)) is not None
    stopped = monitor.stop(task.id, now=_at(8, 50, 5))

    assert stopped is not None and stopped.is_alarmed is True
    assert stopped.alarm_acknowledged_on == DAY
    assert monitor.poll_once(now=_at(8, 50, 30)) is None

    tomorrow = DAY + timedelta(days=1)
    assert monitor.poll_once(now=_at(8, 50, day=tomorrow)) is not None


def test_daily_snooze_across_midnight_acknowledges_fired_day(store: TaskStore) -> None:
    task = _alarmed(store, "Lights out", repeat="daily", date="2024-05-01", time="23:58", alarm_offset=0)
    monitor = AlarmMonitor(store)
    tomorrow = DAY + timedelta(days=1)

    assert monitor.poll_once(now=_at(23, 58)) is not None
    monitor.snooze(task.id, 5, now=_at(23, 58, 10))
    assert monitor.poll_once(now=_at(0, 3, 10, day=tomorrow)) is not None

    stopped = monitor.stop(task.id, now=_at(0, 3, 20, day=tomorrow))

    assert stopped is not None and stopped.alarm_acknowledged_on == DAY
    assert monitor.poll_once(now=_at(0, 3, 30, day=tomorrow)) is None
    assert monitor.poll_once(now=_at(23, 58, day=tomorrow)) is not None


def test_unstopped_daily_ring_does_not_leak_into_next_day(store: TaskStore) -> None:
    task = _alarmed(store, "Vitamins", repeat="daily", date="2024-05-01")
    monitor = AlarmMonitor(store)
    tomorrow = DAY + timedelta(days=1)

    assert monitor.poll_once(now=_at(8, 50)) is not None
    store.update(task.id, completion_percentage=100)
    assert monitor.poll_once(now=_at(8, 50, 20)) is None
    store.update(task.id, completion_percentage=0)

    assert monitor.poll_once(now=_at(8, 50, day=tomorrow)) is not None
    stopped = monitor.stop(task.id, now=_at(8, 50, 5, day=tomorrow))

    assert stopped is not None and stopped.alarm_acknowledged_on == tomorrow


def test_deleted_active_task_clears_slot(store: TaskStore) -> None:
    task = _alarmed(store)
    monitor = AlarmMonitor(store)
    monitor.poll_once(now=_at(8, 50))

    store.delete(task.id)

    assert monitor.poll_once(now=_at(8, 50, 5)) is None
    assert monitor.active_alarm_id is None


def test_trigger_callback_runs_once_per_ring(store: TaskStore) -> None:
    _alarmed(store)
    triggered: list[str] = []
    monitor = AlarmMonitor(store, on_trigger=lambda task: triggered.append(task.title))

    monitor.poll_once(now=_at(8, 50))
    monitor.poll_once(now=_at(8, 50, 3))

    assert triggered == ["Stand-up"]


def test_due_occurrence_for_lead_time_crossing_midnight() -> None:
    task = Task(title="Early flight", date="2024-05-15", time="00:10", is_alarmed=True, alarm_offset=30)

    assert due_occurrence(task, datetime(2024, 5, 14, 23, 40)) == date(2024, 5, 15)


def test_run_loop_polls_until_stopped(store: TaskStore) -> None:
    monitor = AlarmMonitor(store, config=AlarmMonitorConfig(poll_interval_seconds=0.5))
    stop_event = threading.Event()
    sleeps: list[float] = []

    def _sleep(seconds: float) -> None:
        sleeps.append(seconds)
        if len(sleeps) == 2:
            stop_event.set()

    monitor.run(stop_event, sleep=_sleep)

    assert sleeps == [0.5, 0.5]


def test_config_from_env() -> None:
    config = AlarmMonitorConfig.from_env({"ALARM_POLL_INTERVAL_SECONDS": "1.5", "ALARM_TRIGGER_WINDOW_SECONDS": "30"})

    assert config.poll_interval_seconds == 1.5
    assert config.trigger_window_seconds == 30
    assert config.ring_interval_seconds == 1.2


def test_alarm_wav_is_riff_audio() -> None:
    wav = build_alarm_wav(duration_seconds=0.5, sample_rate=8000)

    assert wav[:4] == b"RIFF"
    assert wav[8:12] == b"WAVE"
    assert len(wav) > 44 + 0.5 * 8000


def test_alarm_signal_swallows_player_failure() -> None:
    def _broken_player(_: bytes) -> None:
        raise RuntimeError("autoplay blocked")

    assert AlarmSignal(_broken_player, duration_seconds=0.2).emit() is False
    assert AlarmSignal(None).emit() is False


def test_alarm_signal_hands_wav_to_player() -> None:
    played: list[bytes] = []

    assert AlarmSignal(played.append, duration_seconds=0.2).emit() is True
    assert played and played[0][:4] == b"RIFF"
