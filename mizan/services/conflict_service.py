"""
Conflict detector.

Checks a candidate placement against the day's buffered anchor windows.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from mizan.core.config import Settings, get_settings
from mizan.models.anchor import AnchorEvent
from mizan.models.time_window import TimeInterval


class ConflictDetector:
    """Service answering "does this placement collide with an anchor?"."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def blocked(self, anchor: AnchorEvent) -> TimeInterval:
        return anchor.blocked_interval(self.settings.MAX_ANCHOR_BUFFER_MINUTES)

    def find_conflict(
        self,
        start: datetime,
        duration_minutes: int,
        anchors: list[AnchorEvent],
    ) -> Optional[AnchorEvent]:
        """
        First anchor (in time order) whose buffered window meets the placement.

        Args:
            start: Candidate start
            duration_minutes: Candidate length
            anchors: Anchors of the relevant day

        Returns:
            The colliding anchor, or None
        """
        candidate = TimeInterval.of_minutes(start, duration_minutes)
        for anchor in sorted(anchors, key=lambda a: a.anchor_time):
            if candidate.overlaps(self.blocked(anchor)):
                return anchor
        return None

    def suggest_after(self, anchor: AnchorEvent) -> datetime:
        """
        Suggested start once an anchor is over.

        anchor_time + duration + follow gap, never earlier than the end of
        the anchor's buffered window.
        """
        suggested = anchor.end_time + timedelta(minutes=self.settings.ANCHOR_FOLLOW_GAP_MINUTES)
        return max(suggested, self.blocked(anchor).end)

    def first_clear_start(
        self,
        start: datetime,
        duration_minutes: int,
        anchors: list[AnchorEvent],
    ) -> datetime:
        """Push a start past every anchor it collides with."""
        cursor = start
        # Each jump clears one anchor, so this ends after at most len(anchors) jumps
        for _ in range(len(anchors) + 1):
            conflict = self.find_conflict(cursor, duration_minutes, anchors)
            if conflict is None:
                break
            cursor = self.blocked(conflict).end
        return cursor
