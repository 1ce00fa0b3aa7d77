"""
Schedule models for availability and rearrangement outputs.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from mizan.models.enums import TimeOfDay
from mizan.models.time_window import DayBounds, FreeWindow, TimeInterval


class DayAvailability(BaseModel):
    """Free windows of one day and the blocked ranges between them."""

    bounds: DayBounds
    blocked_ranges: list[TimeInterval] = Field(default_factory=list)
    free_windows: list[FreeWindow] = Field(default_factory=list)

    @property
    def total_free_minutes(self) -> int:
        return sum(window.duration_minutes for window in self.free_windows)


class ScheduleChange(BaseModel):
    """Audit record of one commitment moved by a rearrangement."""

    commitment_id: UUID
    commitment_title: str
    old_start: Optional[datetime] = None
    new_start: datetime
    reason: str


class AnalyzedSlot(BaseModel):
    """A free window annotated for schedule analysis."""

    start: datetime
    end: datetime
    duration_minutes: int
    time_of_day: TimeOfDay
    after_anchor: Optional[str] = Field(None, description="Anchor this slot directly follows")


class HabitSuggestion(BaseModel):
    """A habit proposed for a free slot."""

    title: str
    title_english: str
    category: str
    duration_minutes: int
    slot_start: datetime
    reason: str
    is_recurring_recommended: bool


class ScheduleSummary(BaseModel):
    """Aggregate numbers for a day."""

    total_free_minutes: int
    total_scheduled_minutes: int
    anchor_count: int
    task_count: int
    busiest_period: Optional[TimeOfDay] = None
    freest_period: Optional[TimeOfDay] = None


class ScheduleAnalysis(BaseModel):
    """Analysis of one day's free time with optional habit suggestions."""

    day: date
    free_slots: list[AnalyzedSlot] = Field(default_factory=list)
    suggestions: list[HabitSuggestion] = Field(default_factory=list)
    summary: ScheduleSummary
