"""
Enum definitions for the schedule engine.

These enums are used across models and provide type-safe kind/category values.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class AnchorKind(str, Enum):
    """Fixed daily anchor event (the five daily prayers)."""

    FAJR = "fajr"
    DHUHR = "dhuhr"
    ASR = "asr"
    MAGHRIB = "maghrib"
    ISHA = "isha"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def arabic_name(self) -> str:
        return _ANCHOR_ARABIC_NAMES[self]

    @property
    def default_duration(self) -> int:
        """Default length of the anchor itself in minutes."""
        return _ANCHOR_DEFAULT_DURATIONS[self]

    @classmethod
    def from_label(cls, label: str) -> Optional["AnchorKind"]:
        """Look up a kind by English value or Arabic name."""
        normalized = label.strip().lower()
        for kind in cls:
            if normalized in (kind.value, kind.arabic_name):
                return kind
        return None


_ANCHOR_ARABIC_NAMES = {
    AnchorKind.FAJR: "الفجر",
    AnchorKind.DHUHR: "الظهر",
    AnchorKind.ASR: "العصر",
    AnchorKind.MAGHRIB: "المغرب",
    AnchorKind.ISHA: "العشاء",
}

_ANCHOR_DEFAULT_DURATIONS = {
    AnchorKind.FAJR: 15,
    AnchorKind.DHUHR: 20,
    AnchorKind.ASR: 20,
    AnchorKind.MAGHRIB: 15,
    AnchorKind.ISHA: 20,
}


class TaskCategory(str, Enum):
    """Commitment category."""

    WORK = "work"
    PERSONAL = "personal"
    STUDY = "study"
    HEALTH = "health"
    SOCIAL = "social"
    WORSHIP = "worship"

    @classmethod
    def from_label(cls, label: Optional[str]) -> Optional["TaskCategory"]:
        """Case-insensitive lookup; None for unknown labels."""
        if not label:
            return None
        try:
            return cls(label.strip().lower())
        except ValueError:
            return None


class RearrangeStrategy(str, Enum):
    """Strategies for rearranging a day's commitments."""

    AFTER_ANCHOR = "after_anchor"
    OPTIMIZE_GAPS = "optimize_gaps"
    PRIORITIZE_URGENT = "prioritize_urgent"
    SPREAD_EVENLY = "spread_evenly"


class ResolutionStatus(str, Enum):
    """Result of resolving a reference to a single commitment."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"


class TimeOfDay(str, Enum):
    """Named part of the day."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"
