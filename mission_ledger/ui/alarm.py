from __future__ import annotations

from datetime import date, timedelta

import streamlit as st

from mission_ledger.alarms import AlarmMonitor, AlarmSignal
from mission_ledger.constants import SNOOZE_OPTIONS_MINUTES, SS_POSTPONE_VIEW
from mission_ledger.i18n import translate_text
from mission_ledger.models import TIME_FORMAT, Task


def _play_in_browser(wav: bytes) -> None:
    st.audio(wav, format="audio/wav", autoplay=True, loop=True)


def _render_postpone_form(monitor: AlarmMonitor, task: Task) -> None:
    now = monitor.clock()
    default_at = now + timedelta(minutes=15)
    with st.form(f"postpone_form_{task.id}"):
        cols = st.columns(2)
        new_date = cols[0].date_input(("New date", "नई तारीख"), value=default_at.date(), format="YYYY-MM-DD")
        new_time = cols[1].time_input(("New time", "नया समय"), value=default_at.time().replace(second=0, microsecond=0))
        confirm_col, back_col = st.columns(2)
        confirmed = confirm_col.form_submit_button(("Reschedule", "पुनर्निर्धारित करें"))
        back = back_col.form_submit_button(("Back", "वापस"))

    if confirmed:
        monitor.postpone(task.id, new_date if isinstance(new_date, date) else now.date(), new_time.strftime(TIME_FORMAT))
        st.session_state.pop(SS_POSTPONE_VIEW, None)
        st.rerun()
    if back:
        st.session_state.pop(SS_POSTPONE_VIEW, None)
        st.rerun(scope="fragment")


def render_alarm_panel(monitor: AlarmMonitor, task: Task, signal: AlarmSignal) -> None:
    """Banner for the ringing mission with its resolution actions."""

    st.markdown(
        f"<div class='alarm-banner'>⏰ {task.title} · {task.time}</div>",
        unsafe_allow_html=True,
    )
    signal.emit()

    if st.session_state.get(SS_POSTPONE_VIEW) == task.id:
        _render_postpone_form(monitor, task)
        return

    action_cols = st.columns(len(SNOOZE_OPTIONS_MINUTES) + 2)
    if action_cols[0].button(("Stop", "बंद करें"), key=f"alarm_stop_{task.id}"):
        monitor.stop(task.id)
        st.rerun()
    for column, minutes in zip(action_cols[1:], SNOOZE_OPTIONS_MINUTES):
        if column.button(
            translate_text((f"Snooze {minutes} min", f"{minutes} मिनट बाद")),
            key=f"alarm_snooze_{minutes}_{task.id}",
        ):
            monitor.snooze(task.id, minutes)
            st.rerun()
    if action_cols[-1].button(("Postpone…", "स्थगित करें…"), key=f"alarm_postpone_{task.id}"):
        st.session_state[SS_POSTPONE_VIEW] = task.id
        st.rerun(scope="fragment")


def render_alarm_center(monitor: AlarmMonitor) -> None:
    """Poll the monitor on a timer and show the ringing mission, if any."""

    signal = AlarmSignal(player=_play_in_browser, duration_seconds=monitor.config.ring_interval_seconds)

    @st.fragment(run_every=timedelta(seconds=monitor.config.poll_interval_seconds))
    def _alarm_fragment() -> None:
        task = monitor.poll_once()
        if task is None:
            st.session_state.pop(SS_POSTPONE_VIEW, None)
            return
        render_alarm_panel(monitor, task, signal)

    _alarm_fragment()


__all__ = ["render_alarm_center", "render_alarm_panel"]
