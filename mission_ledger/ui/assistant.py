from __future__ import annotations

from datetime import datetime, timedelta

import streamlit as st

from mission_ledger.ai_features import generate_daily_roadmap, get_productivity_advice
from mission_ledger.i18n import AWAITING_ADVICE, LANGUAGE_OPTIONS, get_language, translate_text
from mission_ledger.models import current_time_string
from mission_ledger.state import (
    load_ai_advice,
    load_day_plan,
    load_memory_bank,
    load_reports,
    persist_language,
    save_ai_advice,
    save_day_plan,
)
from mission_ledger.task_store import TaskStore
from mission_ledger.voice.session import VoiceSession

LANGUAGE_WIDGET_KEY = "language_toggle"


def _on_language_change() -> None:
    persist_language(st.session_state[LANGUAGE_WIDGET_KEY])


def render_language_toggle() -> None:
    language = get_language()
    st.radio(
        ("Language", "भाषा"),
        options=list(LANGUAGE_OPTIONS),
        index=list(LANGUAGE_OPTIONS).index(language),
        key=LANGUAGE_WIDGET_KEY,
        horizontal=True,
        on_change=_on_language_change,
    )


def render_voice_panel(session: VoiceSession) -> None:
    """Start or stop hands-free entry and apply what Ria hears."""

    if session.is_active:
        if st.button(("Stop voice link", "वॉइस लिंक बंद करें"), key="voice_stop"):
            session.close()
            st.rerun()

        @st.fragment(run_every=timedelta(seconds=session.config.pump_interval_seconds))
        def _voice_fragment() -> None:
            draft_before = session.form.draft
            saved = session.pump()
            for task in saved:
                st.toast(translate_text((f"Mission '{task.title}' saved.", f"मिशन '{task.title}' सहेजा गया।")))
            # The read-only draft lives outside this fragment.
            if saved or session.form.draft != draft_before or not session.is_active:
                st.rerun()
            st.caption(("🎙️ Listening…", "🎙️ सुन रही हूँ…"))

        _voice_fragment()
        return

    if st.button(("Talk to Ria", "रिया से बात करें"), key="voice_start"):
        if session.open():
            st.rerun()
    if session.last_error == "form_busy":
        st.warning(("Finish or cancel the open form first.", "पहले खुला फ़ॉर्म पूरा या रद्द करें।"))
    elif session.last_error:
        st.error(translate_text((f"Voice link unavailable: {session.last_error}", f"वॉइस लिंक उपलब्ध नहीं: {session.last_error}")))


def render_memory_bank() -> None:
    memory = load_memory_bank()
    with st.expander(("Memory bank", "स्मृति बैंक")):
        if not memory:
            st.caption(("No conversations yet.", "अभी कोई बातचीत नहीं।"))
        for entry in reversed(memory):
            st.text(entry)


def render_coaching(store: TaskStore) -> None:
    language = get_language()
    st.subheader(("Strategy advice", "रणनीति सलाह"))
    if st.button(("Analyse missions", "मिशन विश्लेषण करें"), key="ai_advice_button"):
        with st.spinner(translate_text(("Consulting Ria…", "रिया से परामर्श…"))):
            suggestion = get_productivity_advice(store.tasks, load_reports(), load_memory_bank(), language)
        save_ai_advice(suggestion.payload, suggestion.citations)
        if not suggestion.from_ai:
            st.warning(("AI unavailable, showing fallback.", "एआई उपलब्ध नहीं, वैकल्पिक संदेश।"))

    advice, citations = load_ai_advice()
    st.markdown(advice or AWAITING_ADVICE[language])
    if citations:
        st.caption(("Sources", "स्रोत"))
        for citation in citations:
            st.markdown(f"- [{citation.title}]({citation.uri})")


def render_roadmap(store: TaskStore) -> None:
    language = get_language()
    st.subheader(("Day roadmap", "दिन की योजना"))
    generate_col, clear_col = st.columns(2)
    if generate_col.button(("Generate roadmap", "योजना बनाएँ"), key="ai_roadmap_button"):
        with st.spinner(translate_text(("Plotting the day…", "दिन की योजना बन रही है…"))):
            suggestion = generate_daily_roadmap(store.tasks, current_time_string(datetime.now()), language)
        save_day_plan(suggestion.payload)
    if clear_col.button(("Clear", "साफ़ करें"), key="ai_roadmap_clear"):
        save_day_plan(None)

    plan = load_day_plan()
    if plan:
        st.markdown(f"<div class='roadmap-block'>{plan}</div>", unsafe_allow_html=True)


def render_assistant_page(store: TaskStore, session: VoiceSession) -> None:
    render_voice_panel(session)
    render_memory_bank()
    st.divider()
    advice_col, roadmap_col = st.columns(2)
    with advice_col:
        render_coaching(store)
    with roadmap_col:
        render_roadmap(store)


__all__ = ["render_assistant_page", "render_language_toggle", "render_voice_panel"]
