from __future__ import annotations

from datetime import date

from mission_ledger.charts import build_efficiency_gauge, build_report_history_figure
from mission_ledger.models import DailyReport, PerformanceStats


def test_efficiency_gauge_shows_percentage() -> None:
    figure = build_efficiency_gauge(PerformanceStats(current=35, maximum=40, percentage=88))

    indicator = figure.data[0]
    assert indicator.value == 88
    assert tuple(indicator.gauge.axis.range) == (0, 100)


def test_report_history_is_chronological() -> None:
    reports = [
        DailyReport(date=date(2024, 5, 14), percentage=88, completed=1, total=2),
        DailyReport(date=date(2024, 5, 12), percentage=40, completed=2, total=5),
    ]

    figure = build_report_history_figure(reports)

    bar = figure.data[0]
    assert list(bar.x) == ["2024-05-12", "2024-05-14"]
    assert list(bar.y) == [40, 88]
