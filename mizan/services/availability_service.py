"""
Availability calculator.

Subtracts anchor events and scheduled commitments from a bounded day and
reports the remaining free windows.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional

from mizan.core.config import Settings, get_settings
from mizan.core.logger import setup_logger
from mizan.models.anchor import AnchorEvent
from mizan.models.commitment import Commitment
from mizan.models.enums import AnchorKind
from mizan.models.schedule import DayAvailability
from mizan.models.time_window import DayBounds, FreeWindow, TimeInterval
from mizan.utils.datetime_utils import minutes_between, next_boundary

logger = setup_logger(__name__)


def merge_ranges(ranges: Iterable[TimeInterval]) -> list[TimeInterval]:
    """
    Merge overlapping or touching intervals.

    Returns:
        Sorted, non-overlapping intervals covering the same time
    """
    merged: list[TimeInterval] = []
    for interval in sorted(ranges, key=lambda r: (r.start, r.end)):
        if merged and interval.start <= merged[-1].end:
            last = merged[-1]
            if interval.end > last.end:
                merged[-1] = TimeInterval(start=last.start, end=interval.end)
        else:
            merged.append(interval)
    return merged


class AvailabilityCalculator:
    """
    Service computing free time for one day.

    Provides:
    - Blocked range collection (buffered anchors + scheduled commitments)
    - Free window extraction with a minimum slot size
    - First-fit slot search
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    @property
    def min_slot_minutes(self) -> int:
        return self.settings.MIN_SLOT_MINUTES

    def default_bounds(self, day: date) -> DayBounds:
        """Configured day window for a calendar day."""
        return DayBounds.for_day(day, self.settings.day_start_time, self.settings.day_end_time)

    def clamp_to_future(self, bounds: DayBounds, now: datetime) -> DayBounds:
        """
        Move today's start to the next rounding boundary after now.

        Other days are returned unchanged. The clamp never rolls into the
        next day: a late "now" simply yields a degenerate (empty) day.
        """
        if bounds.day != now.date() or now <= bounds.start:
            return bounds
        return bounds.with_start(next_boundary(now, self.settings.SLOT_ROUNDING_MINUTES))

    def blocked_ranges(
        self,
        bounds: DayBounds,
        anchors: list[AnchorEvent],
        commitments: list[Commitment],
    ) -> list[TimeInterval]:
        """Unmerged blocked intervals clipped to the day."""
        ranges: list[TimeInterval] = []
        for anchor in anchors:
            clipped = bounds.clamp(anchor.blocked_interval(self.settings.MAX_ANCHOR_BUFFER_MINUTES))
            if clipped:
                ranges.append(clipped)
        for commitment in commitments:
            interval = commitment.interval()
            if interval is None:
                continue
            clipped = bounds.clamp(interval)
            if clipped:
                ranges.append(clipped)
        return ranges

    def free_windows(
        self, bounds: DayBounds, merged: list[TimeInterval]
    ) -> list[FreeWindow]:
        """Gaps between merged blocked ranges that meet the minimum size."""
        windows: list[FreeWindow] = []
        cursor = bounds.start
        for blocked in merged:
            if blocked.start > cursor and minutes_between(cursor, blocked.start) >= self.min_slot_minutes:
                windows.append(FreeWindow.between(cursor, blocked.start))
            cursor = max(cursor, blocked.end)

        if cursor < bounds.end and minutes_between(cursor, bounds.end) >= self.min_slot_minutes:
            windows.append(FreeWindow.between(cursor, bounds.end))
        return windows

    def compute(
        self,
        bounds: DayBounds,
        anchors: list[AnchorEvent],
        commitments: list[Commitment],
        future_only: bool = False,
        now: Optional[datetime] = None,
    ) -> DayAvailability:
        """
        Compute the free windows of a day.

        Args:
            bounds: Day window (default 06:00-23:00)
            anchors: The day's anchor events
            commitments: Commitments to subtract; unscheduled ones are ignored
            future_only: Ignore time before now when the day is today
            now: Current local time (required when future_only is set)

        Returns:
            DayAvailability whose windows and blocked ranges tile the day
        """
        if future_only and now is not None:
            bounds = self.clamp_to_future(bounds, now)

        if bounds.is_empty:
            logger.warning(
                f"Day window empty for {bounds.day} ({bounds.start:%H:%M} >= {bounds.end:%H:%M}), "
                "no free windows"
            )
            return DayAvailability(bounds=bounds)

        merged = merge_ranges(self.blocked_ranges(bounds, anchors, commitments))
        windows = self.free_windows(bounds, merged)

        logger.debug(
            f"Availability {bounds.day}: {len(merged)} blocked ranges, {len(windows)} windows, "
            f"{sum(w.duration_minutes for w in windows)} free minutes"
        )
        return DayAvailability(
            bounds=bounds,
            blocked_ranges=self._complement(bounds, windows),
            free_windows=windows,
        )

    def _complement(self, bounds: DayBounds, windows: list[FreeWindow]) -> list[TimeInterval]:
        """
        Blocked ranges as the exact complement of the windows.

        Equal to the merged ranges with sub-minimum slivers folded in.
        """
        blocked: list[TimeInterval] = []
        cursor = bounds.start
        for window in windows:
            if window.start > cursor:
                blocked.append(TimeInterval(start=cursor, end=window.start))
            cursor = window.end
        if cursor < bounds.end:
            blocked.append(TimeInterval(start=cursor, end=bounds.end))
        return blocked

    def find_slot(
        self,
        availability: DayAvailability,
        duration_minutes: int,
        anchors: list[AnchorEvent],
        after_anchor: Optional[AnchorKind] = None,
    ) -> Optional[FreeWindow]:
        """
        First free window that fits a duration.

        Args:
            availability: Computed day availability
            duration_minutes: Required length
            anchors: The day's anchors (for after_anchor lookup)
            after_anchor: Only consider windows starting at or after this anchor ends

        Returns:
            Matching window, or None
        """
        candidates = [w for w in availability.free_windows if w.can_fit(duration_minutes)]
        if after_anchor is not None:
            anchor = next((a for a in anchors if a.kind == after_anchor), None)
            if anchor is not None:
                candidates = [w for w in candidates if w.start >= anchor.end_time]
        return candidates[0] if candidates else None
