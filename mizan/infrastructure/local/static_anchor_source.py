"""
Static anchor source.

Serves the same clock times every day, with optional per-date overrides.
Useful for local runs and tests where no prayer-time calculation is wired in.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

from mizan.interfaces.anchor_source import IAnchorSource
from mizan.models.anchor import AnchorEvent
from mizan.models.enums import AnchorKind

DEFAULT_ANCHOR_TIMES: dict[AnchorKind, time] = {
    AnchorKind.FAJR: time(5, 0),
    AnchorKind.DHUHR: time(12, 0),
    AnchorKind.ASR: time(15, 30),
    AnchorKind.MAGHRIB: time(18, 15),
    AnchorKind.ISHA: time(19, 45),
}


class StaticAnchorSource(IAnchorSource):
    """Anchor source with fixed daily times."""

    def __init__(
        self,
        times: Optional[dict[AnchorKind, time]] = None,
        buffer_before_minutes: int = 5,
        buffer_after_minutes: int = 5,
        durations: Optional[dict[AnchorKind, int]] = None,
    ):
        """
        Initialize source.

        Args:
            times: Clock time per anchor kind (default: DEFAULT_ANCHOR_TIMES)
            buffer_before_minutes: Buffer before every anchor
            buffer_after_minutes: Buffer after every anchor
            durations: Duration per kind (default: the kind's default duration)
        """
        self.times = dict(DEFAULT_ANCHOR_TIMES if times is None else times)
        self.buffer_before_minutes = buffer_before_minutes
        self.buffer_after_minutes = buffer_after_minutes
        self.durations = durations or {}
        self._overrides: dict[date, list[AnchorEvent]] = {}

    def set_day(self, day: date, anchors: list[AnchorEvent]) -> None:
        """Replace the anchors of one specific day."""
        self._overrides[day] = list(anchors)

    def anchors_for(self, day: date) -> list[AnchorEvent]:
        if day in self._overrides:
            return sorted(self._overrides[day], key=lambda a: a.anchor_time)
        anchors = [
            AnchorEvent(
                kind=kind,
                anchor_time=datetime.combine(day, clock),
                duration_minutes=self.durations.get(kind, kind.default_duration),
                buffer_before_minutes=self.buffer_before_minutes,
                buffer_after_minutes=self.buffer_after_minutes,
            )
            for kind, clock in self.times.items()
        ]
        return sorted(anchors, key=lambda a: a.anchor_time)
