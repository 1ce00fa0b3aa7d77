"""
Intent models.

An intent is one structured schedule operation produced upstream by the
language-understanding layer. The set is closed and discriminated by ``type``;
payloads are validated once here, at the trust boundary.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union
from uuid import UUID

from pydantic import AfterValidator, BaseModel, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from mizan.core.exceptions import IntentParseError
from mizan.models.enums import AnchorKind, RearrangeStrategy
from mizan.utils.datetime_utils import (
    TIME_OF_DAY_STARTS,
    is_date_reference,
    parse_clock,
    weekday_index,
)

# One year ahead
MAX_RELATIVE_MINUTES = 366 * 24 * 60


def _check_date_reference(value: str) -> str:
    if not is_date_reference(value):
        raise ValueError(f"Unknown date '{value}', expected today/tomorrow/YYYY-MM-DD")
    return value.strip()


def _check_anchor_name(value: str) -> str:
    if AnchorKind.from_label(value) is None:
        raise ValueError(f"Unknown anchor '{value}'")
    return value.strip()


DateRef = Annotated[str, AfterValidator(_check_date_reference)]
AnchorRef = Annotated[str, AfterValidator(_check_anchor_name)]


# ===========================================
# Shared payload parts
# ===========================================


class TaskQuery(BaseModel):
    """Conjunctive filter used to find commitments."""

    title_contains: Optional[str] = Field(None, min_length=1, description="Free-text title reference")
    date: Optional[DateRef] = Field(None, description="today / tomorrow / YYYY-MM-DD")
    category: Optional[str] = None
    is_completed: Optional[bool] = None
    task_id: Optional[UUID] = None

    @property
    def is_empty(self) -> bool:
        """True when no field narrows the search."""
        return not (
            self.title_contains or self.date or self.category
            or self.is_completed is not None or self.task_id is not None
        )

    def describe(self) -> str:
        """Human-readable query text, echoed back when nothing matches."""
        parts: list[str] = []
        if self.title_contains:
            parts.append(f"title contains '{self.title_contains}'")
        if self.date:
            parts.append(f"date: {self.date}")
        if self.category:
            parts.append(f"category: {self.category}")
        if self.is_completed is not None:
            parts.append(f"completed: {str(self.is_completed).lower()}")
        if self.task_id:
            parts.append(f"id: {self.task_id}")
        return ", ".join(parts) if parts else "any task"


class TimeSpec(BaseModel):
    """
    Flexible time reference.

    Resolved to a concrete start by the dispatcher, in priority order:
    after_anchor, relative_minutes, time (with date or weekday), time_of_day.
    """

    date: Optional[DateRef] = Field(None, description="today / tomorrow / YYYY-MM-DD")
    time: Optional[str] = Field(None, description="HH:MM")
    weekday: Optional[str] = Field(None, description="Weekday name (English or Arabic)")
    time_of_day: Optional[str] = Field(None, description="morning / afternoon / evening / night")
    after_anchor: Optional[AnchorRef] = Field(None, description="Anchor name, e.g. dhuhr")
    relative_minutes: Optional[int] = Field(
        None, ge=0, le=MAX_RELATIVE_MINUTES, description="Minutes from now"
    )

    @field_validator("time")
    @classmethod
    def validate_time(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        parse_clock(value)
        return value.strip()

    @field_validator("weekday")
    @classmethod
    def validate_weekday(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        if weekday_index(value) is None:
            raise ValueError(f"Unknown weekday '{value}'")
        return value.strip()

    @field_validator("time_of_day")
    @classmethod
    def validate_time_of_day(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        normalized = value.strip().lower()
        if normalized not in TIME_OF_DAY_STARTS:
            raise ValueError(f"Unknown time of day '{value}'")
        return normalized

    @property
    def names_clock_time(self) -> bool:
        """True when the spec pins a moment rather than only a day."""
        return bool(
            self.time or self.time_of_day or self.after_anchor or self.relative_minutes is not None
        )

    @property
    def is_empty(self) -> bool:
        return not self.names_clock_time and not self.date and not self.weekday


class TaskDraft(BaseModel):
    """Payload for creating a commitment."""

    title: str = Field(..., min_length=1, max_length=500)
    duration_minutes: int = Field(30, ge=1, le=24 * 60)
    category: Optional[str] = Field(None, description="work/personal/study/health/social/worship")
    notes: Optional[str] = Field(None, max_length=2000)
    due_date: Optional[datetime] = None
    is_recurring: bool = False
    when: Optional[TimeSpec] = None


class TaskChanges(BaseModel):
    """Changes to apply when editing a commitment."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    duration_minutes: Optional[int] = Field(None, ge=1, le=24 * 60)
    notes: Optional[str] = Field(None, max_length=2000)
    category: Optional[str] = None
    scheduled_date: Optional[DateRef] = None
    scheduled_time: Optional[str] = None

    @field_validator("scheduled_time")
    @classmethod
    def validate_time(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        parse_clock(value)
        return value.strip()

    @property
    def has_changes(self) -> bool:
        return any(
            value is not None
            for value in (
                self.title,
                self.duration_minutes,
                self.notes,
                self.category,
                self.scheduled_date,
                self.scheduled_time,
            )
        )


class TaskFilter(BaseModel):
    """Filter for read-only task queries."""

    date: Optional[DateRef] = None
    category: Optional[str] = None
    is_completed: Optional[bool] = None
    in_inbox: Optional[bool] = None
    is_overdue: Optional[bool] = None
    limit: Optional[int] = Field(None, ge=1, le=500)


class ClarificationOption(BaseModel):
    """Quick-select answer to a clarification question."""

    label: str
    value: str
    subtitle: Optional[str] = None


class ClarificationRequest(BaseModel):
    """Question sent back to the user when input is incomplete or ambiguous."""

    question: str
    options: list[ClarificationOption] = Field(default_factory=list)
    free_text_allowed: bool = True
    partial_task: Optional[TaskDraft] = None


# ===========================================
# Intent variants
# ===========================================


class CreateTaskIntent(BaseModel):
    type: Literal["create_task"] = "create_task"
    task: TaskDraft


class EditTaskIntent(BaseModel):
    type: Literal["edit_task"] = "edit_task"
    query: TaskQuery
    changes: TaskChanges


class DeleteTaskIntent(BaseModel):
    """Delete is two-phase: unconfirmed requests only preview the deletion."""

    type: Literal["delete_task"] = "delete_task"
    query: TaskQuery
    delete_all_recurring: bool = False
    confirmed: bool = False


class CompleteTaskIntent(BaseModel):
    type: Literal["complete_task"] = "complete_task"
    query: TaskQuery


class UncompleteTaskIntent(BaseModel):
    type: Literal["uncomplete_task"] = "uncomplete_task"
    query: TaskQuery


class RescheduleTaskIntent(BaseModel):
    type: Literal["reschedule_task"] = "reschedule_task"
    query: TaskQuery
    new_time: TimeSpec


class MoveToUnscheduledIntent(BaseModel):
    type: Literal["move_to_unscheduled"] = "move_to_unscheduled"
    query: TaskQuery


class RearrangeDayIntent(BaseModel):
    type: Literal["rearrange_day"] = "rearrange_day"
    date: DateRef = "today"
    strategy: RearrangeStrategy


class QueryTasksIntent(BaseModel):
    type: Literal["query_tasks"] = "query_tasks"
    filter: TaskFilter = Field(default_factory=TaskFilter)


class QueryAnchorsIntent(BaseModel):
    type: Literal["query_anchors"] = "query_anchors"
    date: Optional[DateRef] = None


class QueryScheduleIntent(BaseModel):
    type: Literal["query_schedule"] = "query_schedule"
    date: Optional[DateRef] = None


class QueryAvailableTimeIntent(BaseModel):
    type: Literal["query_available_time"] = "query_available_time"
    date: Optional[DateRef] = None
    future_only: bool = False


class FindAvailableSlotIntent(BaseModel):
    type: Literal["find_available_slot"] = "find_available_slot"
    duration_minutes: int = Field(..., ge=1, le=24 * 60)
    date: Optional[DateRef] = None
    after_anchor: Optional[AnchorRef] = None
    future_only: bool = True


class AnalyzeScheduleIntent(BaseModel):
    type: Literal["analyze_schedule"] = "analyze_schedule"
    date: Optional[DateRef] = None
    focus_area: Optional[str] = Field(None, description="all / morning / afternoon / evening / night / after_anchors")
    suggest_habits: bool = False
    habit_categories: Optional[list[str]] = None


class RequestClarificationIntent(BaseModel):
    type: Literal["request_clarification"] = "request_clarification"
    request: ClarificationRequest


class ReportInfeasibleIntent(BaseModel):
    type: Literal["report_infeasible"] = "report_infeasible"
    reason: str = Field(..., min_length=1)
    alternative: Optional[str] = None


Intent = Annotated[
    Union[
        CreateTaskIntent,
        EditTaskIntent,
        DeleteTaskIntent,
        CompleteTaskIntent,
        UncompleteTaskIntent,
        RescheduleTaskIntent,
        MoveToUnscheduledIntent,
        RearrangeDayIntent,
        QueryTasksIntent,
        QueryAnchorsIntent,
        QueryScheduleIntent,
        QueryAvailableTimeIntent,
        FindAvailableSlotIntent,
        AnalyzeScheduleIntent,
        RequestClarificationIntent,
        ReportInfeasibleIntent,
    ],
    Field(discriminator="type"),
]

_intent_adapter: TypeAdapter[Intent] = TypeAdapter(Intent)


def parse_intent(payload: dict[str, Any]) -> Intent:
    """
    Build a typed intent from an upstream payload.

    Args:
        payload: Flat structured record with a ``type`` discriminator

    Returns:
        The matching intent variant

    Raises:
        IntentParseError: If the variant is unknown or fields are invalid
    """
    try:
        return _intent_adapter.validate_python(payload)
    except PydanticValidationError as exc:
        errors = exc.errors(include_url=False, include_context=False)
        raise IntentParseError(
            f"Invalid intent payload: {exc.error_count()} error(s)", errors=errors
        ) from exc
