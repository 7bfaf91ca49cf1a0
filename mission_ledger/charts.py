from __future__ import annotations

from typing import Sequence

import plotly.graph_objects as go

from mission_ledger.models import DailyReport, PerformanceStats

PRIMARY_COLOR = "#1C9C82"
WARNING_COLOR = "#E0A458"
DANGER_COLOR = "#C8553D"
FONT_COLOR = "#E6F2EC"
GRID_COLOR = "#24544B"


def _apply_dark_theme(figure: go.Figure) -> go.Figure:
    figure.update_layout(
        template="plotly_dark",
        font=dict(color=FONT_COLOR),
        plot_bgcolor="rgba(0,0,0,0)",
        paper_bgcolor="rgba(0,0,0,0)",
        xaxis=dict(gridcolor=GRID_COLOR, zerolinecolor=GRID_COLOR),
        yaxis=dict(gridcolor=GRID_COLOR, zerolinecolor=GRID_COLOR),
    )
    return figure


def _efficiency_color(percentage: int) -> str:
    if percentage >= 75:
        return PRIMARY_COLOR
    if percentage >= 40:
        return WARNING_COLOR
    return DANGER_COLOR


def build_efficiency_gauge(stats: PerformanceStats, *, title: str = "Efficiency") -> go.Figure:
    """Gauge of today's weighted completion percentage."""

    figure = go.Figure(
        go.Indicator(
            mode="gauge+number",
            value=stats.percentage,
            number=dict(suffix="%", font=dict(color=FONT_COLOR)),
            title=dict(text=title, font=dict(color=FONT_COLOR)),
            gauge=dict(
                axis=dict(range=[0, 100], tickcolor=FONT_COLOR),
                bar=dict(color=_efficiency_color(stats.percentage)),
                bgcolor="rgba(0,0,0,0)",
                bordercolor=GRID_COLOR,
            ),
        )
    )
    figure.update_layout(height=260, margin=dict(t=40, r=20, b=10, l=20))
    return _apply_dark_theme(figure)


def build_report_history_figure(reports: Sequence[DailyReport]) -> go.Figure:
    ordered = sorted(reports, key=lambda report: report.date)
    dates = [report.date.isoformat() for report in ordered]
    percentages = [report.percentage for report in ordered]

    figure = go.Figure(
        go.Bar(
            x=dates,
            y=percentages,
            marker_color=[_efficiency_color(value) for value in percentages],
            customdata=[[report.completed, report.total] for report in ordered],
            hovertemplate="<b>%{x}</b><br>%{y}%<br>%{customdata[0]}/%{customdata[1]}<extra></extra>",
        )
    )
    figure.update_layout(
        height=280,
        margin=dict(t=20, r=10, b=40, l=40),
        yaxis=dict(range=[0, 100], ticksuffix="%"),
        showlegend=False,
    )
    return _apply_dark_theme(figure)


__all__ = ["build_efficiency_gauge", "build_report_history_figure"]
