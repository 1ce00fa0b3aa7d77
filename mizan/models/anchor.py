"""
Anchor event model.

Anchors are fixed daily events (prayers) padded with asymmetric buffers
during which nothing else may be scheduled.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field

from mizan.models.enums import AnchorKind
from mizan.models.time_window import TimeInterval


class AnchorEvent(BaseModel):
    """One anchor occurrence on a specific day."""

    model_config = ConfigDict(frozen=True)

    kind: AnchorKind
    anchor_time: datetime = Field(..., description="Start of the anchor (e.g. adhan time)")
    duration_minutes: int = Field(..., ge=1)
    buffer_before_minutes: int = Field(5, ge=0)
    buffer_after_minutes: int = Field(5, ge=0)

    @property
    def name(self) -> str:
        return self.kind.display_name

    @property
    def end_time(self) -> datetime:
        """End of the anchor itself, without the trailing buffer."""
        return self.anchor_time + timedelta(minutes=self.duration_minutes)

    def blocked_interval(self, max_buffer_minutes: int) -> TimeInterval:
        """
        Buffered span blocked by this anchor.

        Args:
            max_buffer_minutes: Upper bound applied to each buffer before use

        Returns:
            [anchor_time - before, anchor_time + duration + after]
        """
        before = min(self.buffer_before_minutes, max_buffer_minutes)
        after = min(self.buffer_after_minutes, max_buffer_minutes)
        return TimeInterval(
            start=self.anchor_time - timedelta(minutes=before),
            end=self.end_time + timedelta(minutes=after),
        )


class AnchorSummary(BaseModel):
    """Anchor as reported back to the caller."""

    kind: AnchorKind
    name: str
    name_arabic: str
    anchor_time: datetime
    duration_minutes: int
    blocked_start: datetime
    blocked_end: datetime
    is_passed: bool

    @classmethod
    def from_anchor(
        cls, anchor: AnchorEvent, max_buffer_minutes: int, now: datetime
    ) -> "AnchorSummary":
        blocked = anchor.blocked_interval(max_buffer_minutes)
        return cls(
            kind=anchor.kind,
            name=anchor.name,
            name_arabic=anchor.kind.arabic_name,
            anchor_time=anchor.anchor_time,
            duration_minutes=anchor.duration_minutes,
            blocked_start=blocked.start,
            blocked_end=blocked.end,
            is_passed=anchor.anchor_time < now,
        )
