from __future__ import annotations

from datetime import date

import streamlit as st

from mission_ledger.charts import build_efficiency_gauge, build_report_history_figure
from mission_ledger.i18n import translate_text
from mission_ledger.scoring import calculate_performance, format_score
from mission_ledger.state import load_reports, record_daily_report
from mission_ledger.task_store import TaskStore


def render_performance(store: TaskStore, *, today: date) -> None:
    """Today's efficiency gauge next to the recorded report history."""

    stats = calculate_performance(store.tasks, today)
    day_tasks = store.tasks_for_day(today)
    completed = sum(1 for task in day_tasks if task.is_completed)

    metric_cols = st.columns(3)
    metric_cols[0].metric(("Efficiency", "दक्षता"), f"{stats.percentage}%")
    metric_cols[1].metric(("Score", "अंक"), f"{format_score(stats.current)} / {format_score(stats.maximum)}")
    metric_cols[2].metric(("Completed", "पूर्ण"), f"{completed}/{len(day_tasks)}")

    gauge_col, history_col = st.columns([0.4, 0.6])
    gauge_col.plotly_chart(
        build_efficiency_gauge(stats, title=translate_text(("Efficiency", "दक्षता"))),
        use_container_width=True,
    )

    with history_col:
        if st.button(("Save today's report", "आज की रिपोर्ट सहेजें"), key="record_daily_report"):
            report = record_daily_report(store, today)
            st.success(translate_text((f"Report saved: {report.percentage}%", f"रिपोर्ट सहेजी गई: {report.percentage}%")))
        reports = load_reports()
        if reports:
            st.plotly_chart(build_report_history_figure(reports), use_container_width=True)
        else:
            st.caption(("No reports yet.", "अभी कोई रिपोर्ट नहीं।"))


__all__ = ["render_performance"]
