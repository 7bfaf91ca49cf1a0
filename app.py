from __future__ import annotations

from datetime import datetime

import streamlit as st

from mission_ledger.i18n import localize_streamlit, translate_text
from mission_ledger.llm import get_openai_client
from mission_ledger.state import (
    get_alarm_monitor,
    get_task_form,
    get_task_store,
    get_voice_session,
    init_state,
)
from mission_ledger.ui.alarm import render_alarm_center
from mission_ledger.ui.assistant import render_assistant_page, render_language_toggle
from mission_ledger.ui.common import inject_ledger_styles
from mission_ledger.ui.performance import render_performance
from mission_ledger.ui.tasks import render_active_missions, render_task_registry

ACTIVE_TAB_LABEL = ("Active Missions", "सक्रिय मिशन")
REGISTRY_TAB_LABEL = ("Task Registry", "कार्य रजिस्टर")
PERFORMANCE_TAB_LABEL = ("Performance", "प्रदर्शन")
AI_TAB_LABEL = ("Ria AI", "रिया एआई")


localize_streamlit()


def main() -> None:
    st.set_page_config(
        page_title="Mission Ledger",
        page_icon="⏰",
        layout="wide",
    )
    inject_ledger_styles()
    init_state()

    store = get_task_store()
    form = get_task_form()
    monitor = get_alarm_monitor()
    session = get_voice_session()
    today = datetime.now().date()

    title_col, language_col = st.columns([0.7, 0.3])
    title_col.title(("TO DO LIST", "कार्य सूची"))
    with language_col:
        render_language_toggle()

    render_alarm_center(monitor)

    if get_openai_client() is None:
        st.info(
            (
                "No OPENAI_API_KEY found. Advice and roadmaps use fallback text until a key is set in "
                "st.secrets or the environment.",
                "कोई OPENAI_API_KEY नहीं मिला। कुंजी सेट होने तक सलाह और योजना वैकल्पिक पाठ दिखाएँगे।",
            )
        )

    active_tab, registry_tab, performance_tab, ai_tab = st.tabs(
        [
            translate_text(ACTIVE_TAB_LABEL),
            translate_text(REGISTRY_TAB_LABEL),
            translate_text(PERFORMANCE_TAB_LABEL),
            translate_text(AI_TAB_LABEL),
        ]
    )
    with active_tab:
        render_active_missions(store, form, today=today)
    with registry_tab:
        render_task_registry(store, form)
    with performance_tab:
        render_performance(store, today=today)
    with ai_tab:
        render_assistant_page(store, session)


if __name__ == "__main__":
    main()
