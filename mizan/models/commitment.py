"""
Commitment model definitions.

Commitments are the user's tasks. The store owns their lifecycle; the engine
only reads and writes their fields.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator

from mizan.models.enums import TaskCategory
from mizan.models.time_window import TimeInterval


class Commitment(BaseModel):
    """A user task, optionally placed on the timeline."""

    model_config = {"validate_assignment": True}

    id: UUID = Field(default_factory=uuid4)
    title: str = Field(..., min_length=1, max_length=500)
    duration_minutes: int = Field(..., ge=1, le=24 * 60)
    category: TaskCategory = Field(TaskCategory.PERSONAL)
    scheduled_start: Optional[datetime] = Field(None, description="Start on the timeline (None = inbox)")
    due_date: Optional[datetime] = Field(None, description="Deadline")
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    is_recurring: bool = False
    notes: Optional[str] = Field(None, max_length=2000)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Title must not be blank")
        return stripped

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def is_scheduled(self) -> bool:
        return self.scheduled_start is not None

    @property
    def scheduled_day(self) -> Optional[date]:
        return self.scheduled_start.date() if self.scheduled_start else None

    @property
    def end_time(self) -> Optional[datetime]:
        if self.scheduled_start is None:
            return None
        return self.scheduled_start + timedelta(minutes=self.duration_minutes)

    def interval(self) -> Optional[TimeInterval]:
        """Occupied span on the timeline, if scheduled."""
        if self.scheduled_start is None:
            return None
        return TimeInterval.of_minutes(self.scheduled_start, self.duration_minutes)

    def is_overdue(self, now: datetime) -> bool:
        if self.due_date is None or self.is_completed:
            return False
        return now > self.due_date

    def is_due_soon(self, now: datetime, hours: int = 24) -> bool:
        if self.due_date is None or self.is_completed:
            return False
        return now < self.due_date <= now + timedelta(hours=hours)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _touch(self) -> None:
        self.updated_at = datetime.now()

    def schedule_at(self, start: datetime) -> None:
        self.scheduled_start = start
        self._touch()

    def move_to_unscheduled(self) -> None:
        self.scheduled_start = None
        self._touch()

    def mark_complete(self, at: Optional[datetime] = None) -> None:
        self.is_completed = True
        self.completed_at = at or datetime.now()
        self._touch()

    def unmark_complete(self) -> None:
        self.is_completed = False
        self.completed_at = None
        self._touch()

    def update_title(self, title: str) -> None:
        self.title = title
        self._touch()

    def update_duration(self, minutes: int) -> None:
        self.duration_minutes = minutes
        self._touch()

    def update_category(self, category: TaskCategory) -> None:
        self.category = category
        self._touch()

    def update_notes(self, notes: str) -> None:
        self.notes = notes
        self._touch()


class CommitmentSummary(BaseModel):
    """Snapshot of a commitment carried by outcomes."""

    id: UUID
    title: str
    duration_minutes: int
    category: TaskCategory
    scheduled_start: Optional[datetime] = None
    due_date: Optional[datetime] = None
    is_completed: bool
    is_recurring: bool
    notes: Optional[str] = None

    @classmethod
    def of(cls, commitment: Commitment) -> "CommitmentSummary":
        return cls(
            id=commitment.id,
            title=commitment.title,
            duration_minutes=commitment.duration_minutes,
            category=commitment.category,
            scheduled_start=commitment.scheduled_start,
            due_date=commitment.due_date,
            is_completed=commitment.is_completed,
            is_recurring=commitment.is_recurring,
            notes=commitment.notes,
        )
