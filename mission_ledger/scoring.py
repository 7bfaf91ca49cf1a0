from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from mission_ledger.models import DEFAULT_SCORE_CONFIG, DailyReport, PerformanceStats, ScoreConfig, Task


def _tier_bounds(tier: str) -> tuple[int, int]:
    if "-" in tier:
        lower, upper = tier.split("-", 1)
        return int(lower), int(upper)
    value = int(tier)
    return value, value


def points_for_completion_tier(completion_percentage: float, config: ScoreConfig = DEFAULT_SCORE_CONFIG) -> int:
    """Return the points of the tier that contains ``completion_percentage``."""

    for tier, points in config.completion.items():
        lower, upper = _tier_bounds(tier)
        if lower <= completion_percentage <= upper:
            return points
    return 0


def _round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_performance(
    tasks: Iterable[Task],
    day: date,
    config: ScoreConfig = DEFAULT_SCORE_CONFIG,
) -> PerformanceStats:
    """Urgency-weighted completion score for the missions scheduled on ``day``.

    Every mission is worth the points of the 100% tier, scaled by its urgency
    multiplier; partial completion earns the same fraction of those points.
    """

    iso_day = day.isoformat()
    base_points = points_for_completion_tier(100, config)
    current_score = 0.0
    max_possible_score = 0.0

    for task in tasks:
        if task.date != iso_day:
            continue
        multiplier = config.multipliers.get(task.urgency, 1)
        current_score += (task.completion_percentage / 100) * base_points * multiplier
        max_possible_score += base_points * multiplier

    percentage = _round_half_up(current_score / max_possible_score * 100) if max_possible_score > 0 else 0
    return PerformanceStats(current=current_score, maximum=max_possible_score, percentage=percentage)


def format_score(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.1f}"


def build_daily_report(
    tasks: Iterable[Task],
    day: date,
    config: ScoreConfig = DEFAULT_SCORE_CONFIG,
) -> DailyReport:
    day_tasks = [task for task in tasks if task.date == day.isoformat()]
    stats = calculate_performance(day_tasks, day, config)
    return DailyReport(
        date=day,
        score=stats.current,
        max_score=stats.maximum,
        percentage=stats.percentage,
        completed=sum(1 for task in day_tasks if task.is_completed),
        total=len(day_tasks),
    )


__all__ = [
    "build_daily_report",
    "calculate_performance",
    "format_score",
    "points_for_completion_tier",
]
