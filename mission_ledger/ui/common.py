from __future__ import annotations

import streamlit as st

from mission_ledger.i18n import translate_text
from mission_ledger.models import Task, TaskCategory, TaskUrgency

URGENCY_COLORS: dict[TaskUrgency, str] = {
    TaskUrgency.REGULAR: "#8FB8AE",
    TaskUrgency.IMPORTANT: "#E0A458",
    TaskUrgency.URGENT: "#E3655B",
}
CATEGORY_COLORS: dict[TaskCategory, str] = {
    TaskCategory.ROUTINE: "#1C9C82",
    TaskCategory.ACCELERATED: "#7B6CF6",
}


def urgency_badge(urgency: TaskUrgency) -> str:
    label = translate_text(urgency.label)
    return f"<span class='ledger-badge' style='border-color:{URGENCY_COLORS[urgency]}'>{label}</span>"


def category_badge(category: TaskCategory) -> str:
    label = translate_text(category.label)
    return f"<span class='ledger-badge' style='border-color:{CATEGORY_COLORS[category]}'>{label}</span>"


def task_meta_line(task: Task) -> str:
    repeat = translate_text(task.repeat.label)
    alarm = f" · ⏰ {translate_text(task.alarm_offset.label)}" if task.is_alarmed else ""
    return f"<div class='task-meta'>{task.date} · {task.time} · {repeat}{alarm}</div>"


def inject_ledger_styles() -> None:
    st.markdown(
        """
        <style>
            :root {
                --ledger-primary: #1c9c82;
                --ledger-surface: #10211f;
                --ledger-surface-alt: #0e1917;
                --ledger-border: #1f4a42;
                --ledger-text: #f3f7f5;
                --ledger-muted: #c5d5d1;
                --ledger-alert: #e3655b;
            }

            .stApp {
                background: linear-gradient(160deg, #0f1b19 0%, #0c1412 60%, #0b1311 100%);
                color: var(--ledger-text);
            }

            .block-container {
                padding-top: 1.2rem;
                max-width: 1400px;
            }

            h1, h2, h3, h4, h5, h6, label, p {
                color: var(--ledger-text);
            }

            div[data-testid="stVerticalBlockBorderWrapper"] {
                border: 1px solid var(--ledger-border);
                background: linear-gradient(145deg, var(--ledger-surface), var(--ledger-surface-alt));
                border-radius: 14px;
                margin-bottom: 0.9rem;
            }

            .ledger-badge {
                display: inline-block;
                border: 1px solid;
                border-radius: 999px;
                padding: 0.05rem 0.6rem;
                margin-right: 0.35rem;
                font-size: 0.8rem;
                font-weight: 600;
            }

            .task-meta {
                color: var(--ledger-muted);
                font-size: 0.9rem;
            }

            .alarm-banner {
                border: 2px solid var(--ledger-alert);
                border-radius: 14px;
                padding: 0.8rem 1rem;
                background: rgba(227, 101, 91, 0.15);
                font-weight: 700;
                animation: ledger-pulse 1.2s infinite;
            }

            @keyframes ledger-pulse {
                0% { box-shadow: 0 0 0 0 rgba(227, 101, 91, 0.6); }
                100% { box-shadow: 0 0 0 14px rgba(227, 101, 91, 0); }
            }

            .roadmap-block {
                font-family: monospace;
                white-space: pre-wrap;
                color: var(--ledger-muted);
            }

            .stButton > button {
                background: var(--ledger-primary);
                color: #0b1311;
                border: 1px solid var(--ledger-border);
                font-weight: 600;
            }
        </style>
    """,
        unsafe_allow_html=True,
    )


__all__ = ["category_badge", "inject_ledger_styles", "task_meta_line", "urgency_badge"]
