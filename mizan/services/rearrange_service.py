"""
Rearrangement strategies.

Each strategy reorders one day's scheduled, incomplete commitments and
returns the audit trail of what moved. Strategies write ``scheduled_start``
directly; the caller flushes through the store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from mizan.core.logger import setup_logger
from mizan.models.anchor import AnchorEvent
from mizan.models.commitment import Commitment
from mizan.models.enums import RearrangeStrategy
from mizan.models.schedule import ScheduleChange
from mizan.models.time_window import DayBounds, FreeWindow, TimeInterval
from mizan.services.conflict_service import ConflictDetector

logger = setup_logger(__name__)


@dataclass
class RearrangeContext:
    """
    Everything a strategy needs besides the commitments themselves.

    free_windows are computed from anchors and fixed commitments only, so the
    commitments being moved never block their own new placement. fixed holds
    the spans of the day's commitments that stay put (the completed ones).
    """

    bounds: DayBounds
    anchors: list[AnchorEvent]
    free_windows: list[FreeWindow]
    start_cursor: datetime
    now: datetime
    detector: ConflictDetector
    due_soon_hours: int = 24
    spread_gap_minutes: int = 15
    fixed: list[TimeInterval] = field(default_factory=list)


class BaseRearrangeStrategy(ABC):
    """Base class for rearrangement strategies."""

    kind: RearrangeStrategy
    reason: str

    def infeasibility_reason(
        self, commitments: list[Commitment], context: RearrangeContext
    ) -> Optional[str]:
        """Why the strategy cannot run, or None when it can."""
        return None

    @abstractmethod
    def apply(
        self, commitments: list[Commitment], context: RearrangeContext
    ) -> list[ScheduleChange]:
        """
        Rearrange commitments in place.

        Args:
            commitments: The day's scheduled, incomplete commitments
            context: Day bounds, anchors, windows and clock

        Returns:
            One change per commitment whose start actually moved
        """
        pass

    def _place(
        self,
        commitment: Commitment,
        start: datetime,
        changes: list[ScheduleChange],
        reason: Optional[str] = None,
    ) -> None:
        old_start = commitment.scheduled_start
        if old_start == start:
            return
        commitment.schedule_at(start)
        changes.append(
            ScheduleChange(
                commitment_id=commitment.id,
                commitment_title=commitment.title,
                old_start=old_start,
                new_start=start,
                reason=reason or self.reason,
            )
        )

    @staticmethod
    def _current_start(commitment: Commitment, context: RearrangeContext) -> datetime:
        return commitment.scheduled_start or context.now

    @staticmethod
    def _is_clear(start: datetime, duration_minutes: int, context: RearrangeContext) -> bool:
        if context.detector.find_conflict(start, duration_minutes, context.anchors) is not None:
            return False
        placement = TimeInterval.of_minutes(start, duration_minutes)
        return not any(span.overlaps(placement) for span in context.fixed)

    @staticmethod
    def _clear_start(start: datetime, duration_minutes: int, context: RearrangeContext) -> datetime:
        """First start at or after ``start`` clear of anchors and fixed commitments."""
        cursor = start
        # Each pass either succeeds or clears at least one fixed span for good
        for _ in range(len(context.fixed) + 1):
            cursor = context.detector.first_clear_start(cursor, duration_minutes, context.anchors)
            placement = TimeInterval.of_minutes(cursor, duration_minutes)
            blocking = [span for span in context.fixed if span.overlaps(placement)]
            if not blocking:
                break
            cursor = max(span.end for span in blocking)
        return cursor


class AfterAnchorStrategy(BaseRearrangeStrategy):
    """
    Place one commitment right after each upcoming anchor.

    A commitment already sitting at an anchor's buffered end keeps that
    anchor, so a second run finds nothing to move. A placement must clear
    every anchor and fixed commitment; an anchor nothing fits after is
    skipped.
    """

    kind = RearrangeStrategy.AFTER_ANCHOR
    reason = "After anchor"

    def apply(self, commitments, context):
        upcoming = [
            a for a in sorted(context.anchors, key=lambda a: a.anchor_time)
            if a.anchor_time >= context.now
        ]
        slots = [(anchor, context.detector.blocked(anchor).end) for anchor in upcoming]

        held: set[int] = set()
        holder_ids: set[UUID] = set()
        for index, (_, end) in enumerate(slots):
            for commitment in commitments:
                if (
                    commitment.id not in holder_ids
                    and commitment.scheduled_start == end
                    and self._is_clear(end, commitment.duration_minutes, context)
                ):
                    held.add(index)
                    holder_ids.add(commitment.id)
                    break

        remaining = sorted(
            (c for c in commitments if c.id not in holder_ids),
            key=lambda c: (not c.is_overdue(context.now), self._current_start(c, context)),
        )
        changes: list[ScheduleChange] = []
        for index, (anchor, end) in enumerate(slots):
            if index in held:
                continue
            fitting = next(
                (c for c in remaining if self._is_clear(end, c.duration_minutes, context)), None
            )
            if fitting is None:
                continue
            remaining.remove(fitting)
            self._place(fitting, end, changes, reason=f"After {anchor.name}")
        return changes


class OptimizeGapsStrategy(BaseRearrangeStrategy):
    """Pack commitments back-to-back from the start cursor, hopping over anchors."""

    kind = RearrangeStrategy.OPTIMIZE_GAPS
    reason = "Minimize gaps"

    def order(self, commitments: list[Commitment], context: RearrangeContext) -> list[Commitment]:
        return sorted(commitments, key=lambda c: self._current_start(c, context))

    def apply(self, commitments, context):
        changes: list[ScheduleChange] = []
        cursor = context.start_cursor
        for commitment in self.order(commitments, context):
            cursor = self._clear_start(cursor, commitment.duration_minutes, context)
            self._place(commitment, cursor, changes)
            cursor += timedelta(minutes=commitment.duration_minutes)
        return changes


class PrioritizeUrgentStrategy(OptimizeGapsStrategy):
    """Optimize-gaps placement with overdue and due-soon commitments first."""

    kind = RearrangeStrategy.PRIORITIZE_URGENT
    reason = "Urgent first"

    def order(self, commitments, context):
        return sorted(
            commitments,
            key=lambda c: (
                not c.is_overdue(context.now),
                not c.is_due_soon(context.now, context.due_soon_hours),
                self._current_start(c, context),
            ),
        )


class SpreadEvenlyStrategy(BaseRearrangeStrategy):
    """Distribute commitments across the free windows with a gap between them."""

    kind = RearrangeStrategy.SPREAD_EVENLY
    reason = "Spread evenly"

    def _pack(
        self, commitments: list[Commitment], context: RearrangeContext
    ) -> Optional[list[tuple[Commitment, datetime]]]:
        """Planned starts for every commitment, or None if they do not all fit."""
        ordered = sorted(commitments, key=lambda c: self._current_start(c, context))
        windows = context.free_windows
        plan: list[tuple[Commitment, datetime]] = []
        index = 0
        offset = 0
        for commitment in ordered:
            while index < len(windows) and offset + commitment.duration_minutes > windows[index].duration_minutes:
                index += 1
                offset = 0
            if index >= len(windows):
                return None
            plan.append((commitment, windows[index].start + timedelta(minutes=offset)))
            offset += commitment.duration_minutes + context.spread_gap_minutes
        return plan

    def infeasibility_reason(self, commitments, context):
        demand = sum(c.duration_minutes for c in commitments)
        supply = sum(w.duration_minutes for w in context.free_windows)
        if demand > supply:
            return f"Not enough free time: {demand} minutes of tasks, {supply} minutes available"
        if self._pack(commitments, context) is None:
            return "Tasks do not fit into the free windows once gaps are added"
        return None

    def apply(self, commitments, context):
        reason = self.infeasibility_reason(commitments, context)
        if reason:
            logger.warning(f"Spread evenly skipped: {reason}")
            return []
        changes: list[ScheduleChange] = []
        for commitment, start in self._pack(commitments, context) or []:
            self._place(commitment, start, changes)
        return changes


_STRATEGIES: dict[RearrangeStrategy, BaseRearrangeStrategy] = {
    strategy.kind: strategy
    for strategy in (
        AfterAnchorStrategy(),
        OptimizeGapsStrategy(),
        PrioritizeUrgentStrategy(),
        SpreadEvenlyStrategy(),
    )
}


def get_strategy(kind: RearrangeStrategy) -> BaseRearrangeStrategy:
    """Strategy instance for an enum value."""
    return _STRATEGIES[kind]
