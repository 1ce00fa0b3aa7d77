"""
Outcome models returned by the intent dispatcher.

Every dispatch yields exactly one variant, discriminated by ``kind``.
Recoverable situations (not found, ambiguous, conflict, infeasible) are
outcomes too, never exceptions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from mizan.models.anchor import AnchorSummary
from mizan.models.commitment import CommitmentSummary
from mizan.models.intent import ClarificationRequest, TaskDraft
from mizan.models.schedule import ScheduleAnalysis, ScheduleChange
from mizan.models.time_window import FreeWindow


# ===========================================
# Mutations
# ===========================================


class CreatedOutcome(BaseModel):
    kind: Literal["created"] = "created"
    task: CommitmentSummary
    show_in_timeline: bool


class EditedOutcome(BaseModel):
    kind: Literal["edited"] = "edited"
    task: CommitmentSummary
    changes: list[str] = Field(default_factory=list, description="Names of the fields that changed")


class DeletionPendingOutcome(BaseModel):
    """Deletion preview; the caller re-submits with ``confirmed=true``."""

    kind: Literal["deletion_pending"] = "deletion_pending"
    task: CommitmentSummary
    description: str
    delete_all_recurring: bool = False


class DeletedOutcome(BaseModel):
    kind: Literal["deleted"] = "deleted"
    task_title: str
    was_recurring: bool


class CompletedOutcome(BaseModel):
    kind: Literal["completed"] = "completed"
    task: CommitmentSummary


class AlreadyCompletedOutcome(BaseModel):
    kind: Literal["already_completed"] = "already_completed"
    task_title: str


class UncompletedOutcome(BaseModel):
    kind: Literal["uncompleted"] = "uncompleted"
    task: CommitmentSummary


class RescheduledOutcome(BaseModel):
    kind: Literal["rescheduled"] = "rescheduled"
    task: CommitmentSummary
    old_start: Optional[datetime] = None
    new_start: datetime


class MovedToUnscheduledOutcome(BaseModel):
    kind: Literal["moved_to_unscheduled"] = "moved_to_unscheduled"
    task: CommitmentSummary


class RearrangedOutcome(BaseModel):
    kind: Literal["rearranged"] = "rearranged"
    strategy: str
    tasks_affected: int
    changes: list[ScheduleChange] = Field(default_factory=list)


# ===========================================
# Queries
# ===========================================


class TaskListOutcome(BaseModel):
    kind: Literal["task_list"] = "task_list"
    tasks: list[CommitmentSummary] = Field(default_factory=list)


class AnchorListOutcome(BaseModel):
    kind: Literal["anchor_list"] = "anchor_list"
    anchors: list[AnchorSummary] = Field(default_factory=list)


class DayScheduleOutcome(BaseModel):
    kind: Literal["day_schedule"] = "day_schedule"
    tasks: list[CommitmentSummary] = Field(default_factory=list)
    anchors: list[AnchorSummary] = Field(default_factory=list)


class FreeWindowsOutcome(BaseModel):
    kind: Literal["free_windows"] = "free_windows"
    windows: list[FreeWindow] = Field(default_factory=list)
    total_free_minutes: int = 0


class SlotFoundOutcome(BaseModel):
    kind: Literal["slot_found"] = "slot_found"
    slot: FreeWindow


class ScheduleAnalysisOutcome(BaseModel):
    kind: Literal["schedule_analysis"] = "schedule_analysis"
    analysis: ScheduleAnalysis


# ===========================================
# Recoverable and terminal situations
# ===========================================


class PrayerConflictOutcome(BaseModel):
    """Requested time collides with an anchor; caller may resubmit."""

    kind: Literal["prayer_conflict"] = "prayer_conflict"
    anchor_name: str
    anchor_name_arabic: str
    suggested_time: datetime
    pending_task: Optional[TaskDraft] = None


class NeedsClarificationOutcome(BaseModel):
    kind: Literal["needs_clarification"] = "needs_clarification"
    request: ClarificationRequest
    candidates: list[CommitmentSummary] = Field(default_factory=list)


class NotFoundOutcome(BaseModel):
    kind: Literal["not_found"] = "not_found"
    query: str


class InfeasibleOutcome(BaseModel):
    kind: Literal["infeasible"] = "infeasible"
    reason: str
    alternative: Optional[str] = None


class StoreFailureOutcome(BaseModel):
    """Persistence flush failed; nothing from the intent counts as committed."""

    kind: Literal["store_failure"] = "store_failure"
    message: str


Outcome = Annotated[
    Union[
        CreatedOutcome,
        EditedOutcome,
        DeletionPendingOutcome,
        DeletedOutcome,
        CompletedOutcome,
        AlreadyCompletedOutcome,
        UncompletedOutcome,
        RescheduledOutcome,
        MovedToUnscheduledOutcome,
        RearrangedOutcome,
        TaskListOutcome,
        AnchorListOutcome,
        DayScheduleOutcome,
        FreeWindowsOutcome,
        SlotFoundOutcome,
        ScheduleAnalysisOutcome,
        PrayerConflictOutcome,
        NeedsClarificationOutcome,
        NotFoundOutcome,
        InfeasibleOutcome,
        StoreFailureOutcome,
    ],
    Field(discriminator="kind"),
]
