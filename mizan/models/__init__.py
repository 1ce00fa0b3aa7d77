"""Pydantic models (schemas) for the schedule engine."""

from mizan.models.anchor import AnchorEvent, AnchorSummary
from mizan.models.commitment import Commitment, CommitmentSummary
from mizan.models.enums import (
    AnchorKind,
    RearrangeStrategy,
    ResolutionStatus,
    TaskCategory,
    TimeOfDay,
)
from mizan.models.intent import Intent, TaskQuery, TimeSpec, parse_intent
from mizan.models.outcome import Outcome
from mizan.models.schedule import DayAvailability, ScheduleChange
from mizan.models.time_window import DayBounds, FreeWindow, TimeInterval

__all__ = [
    # Enums
    "AnchorKind",
    "RearrangeStrategy",
    "ResolutionStatus",
    "TaskCategory",
    "TimeOfDay",
    # Time windows
    "DayBounds",
    "FreeWindow",
    "TimeInterval",
    "DayAvailability",
    # Entities
    "AnchorEvent",
    "AnchorSummary",
    "Commitment",
    "CommitmentSummary",
    "ScheduleChange",
    # Intents / outcomes
    "Intent",
    "Outcome",
    "TaskQuery",
    "TimeSpec",
    "parse_intent",
]
