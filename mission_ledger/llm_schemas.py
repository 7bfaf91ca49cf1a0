from __future__ import annotations

from pydantic import BaseModel, Field


class CoachingAdvice(BaseModel):
    insights: list[str] = Field(
        min_length=1,
        max_length=5,
        description="Actionable strategic insights, one sentence each",
    )


class RoadmapEntry(BaseModel):
    time: str = Field(pattern=r"^\d{2}:\d{2}$", description="Start time as HH:MM (24h)")
    mission: str = Field(description="Mission title taken from the task list")
    tactic: str = Field(description="One short tactic for executing the mission")


class DailyRoadmap(BaseModel):
    entries: list[RoadmapEntry] = Field(default_factory=list, description="Chronological schedule for today")


__all__ = ["CoachingAdvice", "DailyRoadmap", "RoadmapEntry"]
