from __future__ import annotations

from datetime import date, datetime
from itertools import groupby
from typing import Any

import streamlit as st

from mission_ledger.constants import ALARM_OFFSET_OPTIONS
from mission_ledger.form import FormMode, TaskForm
from mission_ledger.i18n import translate_text
from mission_ledger.models import (
    TIME_FORMAT,
    AlarmOffset,
    RepeatPattern,
    SubTask,
    Task,
    TaskCategory,
    TaskUrgency,
)
from mission_ledger.task_store import TaskStore
from mission_ledger.ui.common import category_badge, task_meta_line, urgency_badge


def _label(value: Any) -> str:
    return translate_text(value.label)


def _update_progress(store: TaskStore, task_id: str, key: str) -> None:
    store.update(task_id, completion_percentage=int(st.session_state[key]))


def _toggle_completed(store: TaskStore, task_id: str, key: str) -> None:
    done = bool(st.session_state[key])
    store.update(task_id, is_completed=done, completion_percentage=100 if done else 0)


def _toggle_lock(store: TaskStore, task_id: str, key: str) -> None:
    store.update(task_id, is_locked=bool(st.session_state[key]))


def _toggle_subtask(store: TaskStore, task_id: str, subtask_id: str, key: str) -> None:
    task = store.get(task_id)
    if task is None:
        return
    subtasks = [
        item.model_copy(update={"is_completed": bool(st.session_state[key])}) if item.id == subtask_id else item
        for item in task.subtasks
    ]
    store.update(task_id, subtasks=subtasks)


def render_undo_banner(store: TaskStore, *, key_prefix: str) -> None:
    if not store.has_deleted:
        return
    info_col, button_col = st.columns([0.75, 0.25])
    info_col.info(("Mission deleted.", "मिशन हटाया गया।"))
    if button_col.button(("Restore", "वापस लाएँ"), key=f"{key_prefix}_restore_deleted_task"):
        restored = store.restore()
        if restored is not None:
            st.success(translate_text((f"Restored '{restored.title}'.", f"'{restored.title}' वापस लाया गया।")))
        st.rerun()


def _render_subtasks(task: Task, store: TaskStore, *, key_prefix: str) -> None:
    for subtask in task.subtasks:
        key = f"{key_prefix}_subtask_{task.id}_{subtask.id}"
        st.checkbox(
            subtask.title,
            value=subtask.is_completed,
            key=key,
            on_change=_toggle_subtask,
            args=(store, task.id, subtask.id, key),
        )

    with st.form(f"{key_prefix}_subtask_form_{task.id}", clear_on_submit=True):
        title = st.text_input(("Sub-step", "उप-चरण"), key=f"{key_prefix}_subtask_title_{task.id}")
        if st.form_submit_button(("Add step", "चरण जोड़ें")) and title.strip():
            store.update(task.id, subtasks=[*task.subtasks, SubTask(title=title.strip())])
            st.rerun()


def render_task_card(task: Task, store: TaskStore, form: TaskForm, *, key_prefix: str) -> None:
    with st.container(border=True):
        title_col, action_col = st.columns([0.7, 0.3])
        with title_col:
            st.markdown(f"**{task.title}**")
            st.markdown(
                f"{category_badge(task.category)}{urgency_badge(task.urgency)}{task_meta_line(task)}",
                unsafe_allow_html=True,
            )
            if task.description:
                st.caption(task.description)

        with action_col:
            done_key = f"{key_prefix}_done_{task.id}"
            st.checkbox(
                ("Done", "पूर्ण"),
                value=task.is_completed,
                key=done_key,
                on_change=_toggle_completed,
                args=(store, task.id, done_key),
            )
            edit_col, delete_col = st.columns(2)
            if edit_col.button(
                ("Edit", "संपादित"),
                key=f"{key_prefix}_edit_{task.id}",
                disabled=form.mode is FormMode.VOICE_DRIVEN,
            ):
                form.cancel()
                form.begin_manual(task)
                st.rerun()
            if delete_col.button(("Delete", "हटाएँ"), key=f"{key_prefix}_delete_{task.id}"):
                store.delete(task.id)
                st.rerun()

        progress_key = f"{key_prefix}_progress_{task.id}"
        lock_key = f"{key_prefix}_lock_{task.id}"
        slider_col, lock_col = st.columns([0.8, 0.2])
        slider_col.slider(
            ("Progress", "प्रगति"),
            min_value=0,
            max_value=100,
            step=5,
            value=task.completion_percentage,
            key=progress_key,
            disabled=task.is_locked,
            on_change=_update_progress,
            args=(store, task.id, progress_key),
        )
        lock_col.toggle(
            ("Locked", "लॉक"),
            value=task.is_locked,
            key=lock_key,
            on_change=_toggle_lock,
            args=(store, task.id, lock_key),
        )

        with st.expander(("Notes & steps", "नोट्स और चरण")):
            with st.form(f"{key_prefix}_notes_form_{task.id}"):
                interim = st.text_area(
                    ("Interim notes", "अंतरिम नोट्स"),
                    value=task.interim_notes,
                    key=f"{key_prefix}_interim_{task.id}",
                )
                notes = st.text_area(("Notes", "नोट्स"), value=task.notes, key=f"{key_prefix}_notes_{task.id}")
                if st.form_submit_button(("Save notes", "नोट्स सहेजें")):
                    store.update(task.id, interim_notes=interim, notes=notes)
                    st.rerun()
            _render_subtasks(task, store, key_prefix=key_prefix)


def _render_draft_readonly(form: TaskForm) -> None:
    draft = form.draft
    st.info(("Ria is filling in this mission…", "रिया यह मिशन भर रही है…"))
    st.text_input(("Objective", "उद्देश्य"), value=draft.title, disabled=True)
    cols = st.columns(3)
    cols[0].text_input(("Mode", "मोड"), value=_label(draft.category), disabled=True)
    cols[1].text_input(("Priority", "प्राथमिकता"), value=_label(draft.urgency), disabled=True)
    cols[2].text_input(
        ("When", "कब"),
        value=f"{draft.date} {draft.time}",
        disabled=True,
    )
    alarm_text = _label(draft.alarm_offset) if draft.is_alarmed else translate_text(("Off", "बंद"))
    st.caption(translate_text((f"Alarm: {alarm_text}", f"अलार्म: {alarm_text}")))


def render_task_form(form: TaskForm, store: TaskStore) -> None:
    """Entry form for new missions and edits; read-only while Ria dictates."""

    if form.mode is FormMode.VOICE_DRIVEN:
        _render_draft_readonly(form)
        return

    if form.mode is FormMode.IDLE:
        if st.button(("+ New mission", "+ नया मिशन"), key="new_task_button"):
            form.begin_manual()
            st.rerun()
        return

    draft = form.draft
    editing = form.editing_task_id is not None
    with st.form("task_entry_form"):
        st.subheader(("Edit mission", "मिशन संपादित करें") if editing else ("New mission", "नया मिशन"))
        title = st.text_input(("Objective", "उद्देश्य"), value=draft.title)
        first_row = st.columns(2)
        scheduled_date = first_row[0].date_input(
            ("Date", "तारीख"),
            value=date.fromisoformat(draft.date),
            format="YYYY-MM-DD",
        )
        scheduled_time = first_row[1].time_input(
            ("Time", "समय"),
            value=datetime.strptime(draft.time, TIME_FORMAT).time(),
            step=300,
        )
        second_row = st.columns(3)
        category = second_row[0].selectbox(
            ("Mode", "मोड"),
            options=list(TaskCategory),
            index=list(TaskCategory).index(draft.category),
            format_func=_label,
        )
        urgency = second_row[1].selectbox(
            ("Priority", "प्राथमिकता"),
            options=list(TaskUrgency),
            index=list(TaskUrgency).index(draft.urgency),
            format_func=_label,
        )
        repeat = second_row[2].selectbox(
            ("Repeat", "दोहराएँ"),
            options=list(RepeatPattern),
            index=list(RepeatPattern).index(draft.repeat),
            format_func=_label,
        )
        alarm_row = st.columns(2)
        is_alarmed = alarm_row[0].toggle(("Alarm", "अलार्म"), value=draft.is_alarmed)
        offsets = [AlarmOffset(value) for value in ALARM_OFFSET_OPTIONS]
        alarm_offset = alarm_row[1].selectbox(
            ("Alert", "सूचना"),
            options=offsets,
            index=offsets.index(draft.alarm_offset),
            format_func=_label,
        )
        notes = st.text_area(("Notes", "नोट्स"), value=draft.notes)

        submit_col, cancel_col = st.columns(2)
        submitted = submit_col.form_submit_button(("Launch mission", "मिशन शुरू करें"))
        cancelled = cancel_col.form_submit_button(("Cancel", "रद्द करें"))

    if cancelled:
        form.cancel()
        st.rerun()

    if submitted:
        for name, value in (
            ("title", title),
            ("date", scheduled_date.isoformat()),
            ("time", scheduled_time.strftime(TIME_FORMAT)),
            ("category", category),
            ("urgency", urgency),
            ("repeat", repeat),
            ("is_alarmed", is_alarmed),
            ("alarm_offset", alarm_offset),
            ("notes", notes),
        ):
            form.set_field(name, value)
        saved = form.submit(store)
        if saved is None:
            st.warning(("Please enter an objective.", "कृपया उद्देश्य दर्ज करें।"))
        else:
            st.rerun()


def render_active_missions(store: TaskStore, form: TaskForm, *, today: date) -> None:
    render_task_form(form, store)
    render_undo_banner(store, key_prefix="today")

    todays_tasks = sorted(store.tasks_for_day(today), key=lambda task: (task.is_completed, task.time))
    if not todays_tasks:
        st.caption(("No missions scheduled for today.", "आज के लिए कोई मिशन नहीं।"))
        return
    for task in todays_tasks:
        render_task_card(task, store, form, key_prefix="today")


def render_task_registry(store: TaskStore, form: TaskForm) -> None:
    """All missions grouped by day, newest day first."""

    render_undo_banner(store, key_prefix="registry")
    tasks = store.sorted_by_date()
    if not tasks:
        st.caption(("The registry is empty.", "रजिस्टर खाली है।"))
        return
    for day, day_tasks in groupby(tasks, key=lambda task: task.date):
        st.markdown(f"#### {day}")
        for task in day_tasks:
            render_task_card(task, store, form, key_prefix="registry")


__all__ = ["render_active_missions", "render_task_card", "render_task_form", "render_task_registry"]
