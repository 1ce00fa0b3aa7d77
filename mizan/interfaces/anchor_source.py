"""
Anchor event source interface.

Implementations already account for location and calculation method.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from mizan.models.anchor import AnchorEvent


class IAnchorSource(ABC):
    """Abstract interface for per-day anchor events."""

    @abstractmethod
    def anchors_for(self, day: date) -> list[AnchorEvent]:
        """
        Get the anchors of one day.

        Args:
            day: Calendar day

        Returns:
            Anchor events sorted by anchor_time
        """
        pass
