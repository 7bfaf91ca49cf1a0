from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Generic, Optional, Sequence, TypeVar

from openai import OpenAI

from mission_ledger.i18n import FALLBACK_ADVICE, FALLBACK_ROADMAP, LanguageCode
from mission_ledger.llm import (
    Citation,
    LLMError,
    get_default_model,
    get_openai_client,
    request_grounded_response,
    request_structured_response,
)
from mission_ledger.llm_schemas import CoachingAdvice, DailyRoadmap
from mission_ledger.models import DailyReport, Task

LOGGER = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT")

WEB_SEARCH_TOOL: dict[str, object] = {"type": "web_search_preview"}


@dataclass
class AISuggestion(Generic[PayloadT]):
    payload: PayloadT
    from_ai: bool
    citations: list[Citation] = field(default_factory=list)


def _task_snapshot(tasks: Sequence[Task]) -> list[dict[str, object]]:
    return [
        {
            "title": task.title,
            "date": task.date,
            "time": task.time,
            "category": task.category.value,
            "urgency": task.urgency.value,
            "completion": task.completion_percentage,
            "alarm": task.is_alarmed,
            "repeat": task.repeat.value,
        }
        for task in tasks
    ]


def _report_snapshot(reports: Sequence[DailyReport]) -> list[dict[str, object]]:
    return [
        {"date": report.date.isoformat(), "efficiency": report.percentage, "done": report.completed, "total": report.total}
        for report in reports[-7:]
    ]


def format_roadmap(roadmap: DailyRoadmap) -> str:
    """Render the ledger schedule as ``[HH:MM] >> [MISSION] || [TACTIC]`` lines."""

    ordered = sorted(roadmap.entries, key=lambda entry: entry.time)
    return "\n".join(f"[{entry.time}] >> [{entry.mission}] || [{entry.tactic}]" for entry in ordered)


def format_advice(advice: CoachingAdvice) -> str:
    return "\n".join(f"{index}. {insight.strip()}" for index, insight in enumerate(advice.insights, start=1))


def get_productivity_advice(
    tasks: Sequence[Task],
    reports: Sequence[DailyReport],
    history: Sequence[str],
    language: LanguageCode,
    *,
    client: Optional[OpenAI] = None,
    use_web_search: bool = True,
) -> AISuggestion[str]:
    """Ask the coach for three strategic insights on the current missions."""

    client_to_use = client or get_openai_client()
    if client_to_use:
        try:
            result = request_grounded_response(
                client=client_to_use,
                model=get_default_model(reasoning=True),
                messages=[
                    {
                        "role": "system",
                        "content": (
                            "You are Ria, an elite productivity coach. Provide exactly 3 actionable strategic "
                            "insights. Be concise and encouraging. "
                            f"Respond in {language}."
                        ),
                    },
                    {
                        "role": "user",
                        "content": (
                            f"Missions: {json.dumps(_task_snapshot(tasks), ensure_ascii=False)}. "
                            f"Recent reports: {json.dumps(_report_snapshot(reports))}. "
                            f"Recent conversation: {json.dumps(list(history[-10:]), ensure_ascii=False)}."
                        ),
                    },
                ],
                response_model=CoachingAdvice,
                tools=[WEB_SEARCH_TOOL] if use_web_search else None,
            )
            return AISuggestion(format_advice(result.parsed), from_ai=True, citations=result.citations)
        except LLMError as exc:
            LOGGER.warning("Coaching advice unavailable: %s", exc)

    return AISuggestion(FALLBACK_ADVICE[language], from_ai=False)


def generate_daily_roadmap(
    tasks: Sequence[Task],
    current_time: str,
    language: LanguageCode,
    *,
    client: Optional[OpenAI] = None,
) -> AISuggestion[str]:
    """Build today's schedule from the open missions."""

    open_tasks = [task for task in tasks if not task.is_completed]
    client_to_use = client or get_openai_client()
    if client_to_use:
        try:
            roadmap = request_structured_response(
                client=client_to_use,
                model=get_default_model(reasoning=True),
                messages=[
                    {
                        "role": "system",
                        "content": (
                            "Generate a ledger schedule for the rest of the day. One entry per mission, "
                            "chronological, starting after the current time, each with one short tactic. "
                            f"Write missions and tactics in {language}."
                        ),
                    },
                    {
                        "role": "user",
                        "content": (
                            f"Current time: {current_time}. "
                            f"Missions: {json.dumps(_task_snapshot(open_tasks), ensure_ascii=False)}."
                        ),
                    },
                ],
                response_model=DailyRoadmap,
            )
            if roadmap.entries:
                return AISuggestion(format_roadmap(roadmap), from_ai=True)
            LOGGER.warning("Roadmap response contained no entries.")
        except LLMError as exc:
            LOGGER.warning("Daily roadmap unavailable: %s", exc)

    return AISuggestion(FALLBACK_ROADMAP[language], from_ai=False)


__all__ = [
    "AISuggestion",
    "format_advice",
    "format_roadmap",
    "generate_daily_roadmap",
    "get_productivity_advice",
]
