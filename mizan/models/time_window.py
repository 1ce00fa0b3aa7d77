"""
Time-window value types.

Intervals are half-open in spirit ([start, end)) and immutable once built.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

from pydantic import BaseModel, ConfigDict, Field, model_validator

from mizan.utils.datetime_utils import minutes_between


class TimeInterval(BaseModel):
    """A non-empty span of local time."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def validate_order(self):
        """Reject empty or inverted intervals."""
        if self.end <= self.start:
            raise ValueError("Interval end must be after its start")
        return self

    @classmethod
    def of_minutes(cls, start: datetime, minutes: int) -> "TimeInterval":
        return cls(start=start, end=start + timedelta(minutes=minutes))

    @property
    def duration_minutes(self) -> int:
        return minutes_between(self.start, self.end)

    def overlaps(self, other: "TimeInterval") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeInterval") -> bool:
        return self.start <= other.start and other.end <= self.end

    def contains_instant(self, moment: datetime) -> bool:
        return self.start <= moment < self.end


class DayBounds(BaseModel):
    """
    Schedulable span of one calendar day.

    Unlike TimeInterval this may be degenerate (start >= end), e.g. after
    clamping today's start past the end of the day.
    """

    model_config = ConfigDict(frozen=True)

    day: date
    start: datetime
    end: datetime

    @classmethod
    def for_day(cls, day: date, start: time, end: time) -> "DayBounds":
        return cls(
            day=day,
            start=datetime.combine(day, start),
            end=datetime.combine(day, end),
        )

    @property
    def is_empty(self) -> bool:
        return self.start >= self.end

    def with_start(self, start: datetime) -> "DayBounds":
        return DayBounds(day=self.day, start=start, end=self.end)

    def clamp(self, interval: TimeInterval) -> TimeInterval | None:
        """Clip an interval to the day; None if nothing of it lies inside."""
        if interval.end <= self.start or interval.start >= self.end:
            return None
        return TimeInterval(
            start=max(interval.start, self.start),
            end=min(interval.end, self.end),
        )


class FreeWindow(BaseModel):
    """A maximal open gap in a day's schedule."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    duration_minutes: int = Field(..., ge=0)

    @classmethod
    def between(cls, start: datetime, end: datetime) -> "FreeWindow":
        return cls(start=start, end=end, duration_minutes=minutes_between(start, end))

    def can_fit(self, minutes: int) -> bool:
        return self.duration_minutes >= minutes

    def as_interval(self) -> TimeInterval:
        return TimeInterval(start=self.start, end=self.end)
