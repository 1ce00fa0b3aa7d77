"""
Unit tests for the rearrangement strategies.
"""

from datetime import date, datetime, timedelta

import pytest

from mizan.core.config import Settings
from mizan.models.anchor import AnchorEvent
from mizan.models.commitment import Commitment
from mizan.models.enums import AnchorKind, RearrangeStrategy
from mizan.models.time_window import FreeWindow, TimeInterval
from mizan.services.availability_service import AvailabilityCalculator
from mizan.services.conflict_service import ConflictDetector
from mizan.services.rearrange_service import (
    AfterAnchorStrategy,
    OptimizeGapsStrategy,
    PrioritizeUrgentStrategy,
    RearrangeContext,
    SpreadEvenlyStrategy,
    get_strategy,
)

DAY = date(2026, 3, 2)


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(DAY.year, DAY.month, DAY.day, hour, minute)


def make_commitment(
    title: str,
    start: datetime,
    duration: int = 30,
    due_date: datetime | None = None,
) -> Commitment:
    return Commitment(title=title, duration_minutes=duration, scheduled_start=start, due_date=due_date)


def make_anchor(kind, hour, minute=0, duration=20) -> AnchorEvent:
    return AnchorEvent(
        kind=kind,
        anchor_time=at(hour, minute),
        duration_minutes=duration,
        buffer_before_minutes=5,
        buffer_after_minutes=5,
    )


def make_context(
    anchors: list[AnchorEvent] | None = None,
    cursor: datetime | None = None,
    now: datetime | None = None,
    free_windows: list[FreeWindow] | None = None,
    fixed: list[TimeInterval] | None = None,
) -> RearrangeContext:
    settings = Settings()
    calc = AvailabilityCalculator(settings)
    anchors = anchors or []
    bounds = calc.default_bounds(DAY)
    if free_windows is None:
        free_windows = calc.compute(bounds, anchors, []).free_windows
    return RearrangeContext(
        bounds=bounds,
        anchors=anchors,
        free_windows=free_windows,
        start_cursor=cursor or at(13),
        now=now or at(13),
        detector=ConflictDetector(settings),
        fixed=fixed or [],
    )


class TestOptimizeGaps:
    """Tests for the optimize-gaps strategy."""

    def test_packs_from_cursor(self):
        a = make_commitment("A", at(14), duration=30)
        b = make_commitment("B", at(14, 10), duration=20)
        context = make_context(cursor=at(13))

        changes = OptimizeGapsStrategy().apply([b, a], context)

        assert a.scheduled_start == at(13)
        assert b.scheduled_start == at(13, 30)
        assert [(c.commitment_title, c.old_start, c.new_start) for c in changes] == [
            ("A", at(14), at(13)),
            ("B", at(14, 10), at(13, 30)),
        ]

    def test_second_run_changes_nothing(self):
        a = make_commitment("A", at(14), duration=30)
        b = make_commitment("B", at(14, 10), duration=20)
        context = make_context(cursor=at(13))
        strategy = OptimizeGapsStrategy()

        strategy.apply([a, b], context)
        assert strategy.apply([a, b], context) == []

    def test_hops_over_anchor(self):
        dhuhr = make_anchor(AnchorKind.DHUHR, 12)
        a = make_commitment("A", at(15), duration=60)
        b = make_commitment("B", at(16), duration=30)
        context = make_context(anchors=[dhuhr], cursor=at(11, 30))

        OptimizeGapsStrategy().apply([a, b], context)

        # Dhuhr blocks 11:55-12:25
        assert a.scheduled_start == at(12, 25)
        assert b.scheduled_start == at(13, 25)

    def test_hops_over_fixed_commitment(self):
        asr = make_anchor(AnchorKind.ASR, 15, 30)
        done = TimeInterval.of_minutes(at(13), 30)
        a = make_commitment("A", at(14), duration=60)
        b = make_commitment("B", at(15), duration=60)
        context = make_context(anchors=[asr], cursor=at(13), fixed=[done])

        OptimizeGapsStrategy().apply([a, b], context)

        assert a.scheduled_start == at(13, 30)
        # 14:30 + 60 would run into Asr's 15:25 buffer
        assert b.scheduled_start == at(15, 55)

    def test_cursor_inside_anchor_is_pushed_out(self):
        dhuhr = make_anchor(AnchorKind.DHUHR, 12)
        a = make_commitment("A", at(15), duration=15)
        context = make_context(anchors=[dhuhr], cursor=at(12, 5))

        OptimizeGapsStrategy().apply([a], context)

        assert a.scheduled_start == at(12, 25)


class TestPrioritizeUrgent:
    """Tests for the prioritize-urgent strategy."""

    def test_overdue_then_due_soon_then_start(self):
        now = at(13)
        later = make_commitment("Later", at(14), duration=30)
        due_soon = make_commitment("Due soon", at(16), duration=30, due_date=now + timedelta(hours=5))
        overdue = make_commitment("Overdue", at(18), duration=30, due_date=now - timedelta(days=1))
        context = make_context(cursor=now, now=now)

        PrioritizeUrgentStrategy().apply([later, due_soon, overdue], context)

        assert overdue.scheduled_start == at(13)
        assert due_soon.scheduled_start == at(13, 30)
        assert later.scheduled_start == at(14)

    def test_unchanged_commitment_is_not_reported(self):
        now = at(13)
        overdue = make_commitment("Overdue", at(13), duration=30, due_date=now - timedelta(hours=1))
        other = make_commitment("Other", at(15), duration=30)
        context = make_context(cursor=now, now=now)

        changes = PrioritizeUrgentStrategy().apply([other, overdue], context)

        assert [c.commitment_title for c in changes] == ["Other"]

    def test_second_run_changes_nothing(self):
        now = at(13)
        items = [
            make_commitment("One", at(20), duration=45, due_date=now + timedelta(hours=2)),
            make_commitment("Two", at(17), duration=15),
            make_commitment("Three", at(19), duration=60, due_date=now - timedelta(hours=2)),
        ]
        context = make_context(cursor=now, now=now)
        strategy = PrioritizeUrgentStrategy()

        strategy.apply(items, context)
        assert strategy.apply(items, context) == []


class TestAfterAnchor:
    """Tests for the after-anchor strategy."""

    def test_one_commitment_per_upcoming_anchor(self):
        anchors = [
            make_anchor(AnchorKind.DHUHR, 12),
            make_anchor(AnchorKind.ASR, 15, 30),
            make_anchor(AnchorKind.MAGHRIB, 18, 15, duration=15),
        ]
        first = make_commitment("First", at(9), duration=30)
        second = make_commitment("Second", at(10), duration=30)
        context = make_context(anchors=anchors, now=at(13), cursor=at(13))

        changes = AfterAnchorStrategy().apply([second, first], context)

        # Dhuhr has already started; Asr blocks until 15:55, Maghrib until 18:35
        assert first.scheduled_start == at(15, 55)
        assert second.scheduled_start == at(18, 35)
        assert [c.reason for c in changes] == ["After Asr", "After Maghrib"]

    def test_overdue_goes_first(self):
        anchors = [make_anchor(AnchorKind.ASR, 15, 30)]
        early = make_commitment("Early", at(9), duration=30)
        overdue = make_commitment("Overdue", at(11), duration=30, due_date=at(8))
        context = make_context(anchors=anchors, now=at(13), cursor=at(13))

        AfterAnchorStrategy().apply([early, overdue], context)

        assert overdue.scheduled_start == at(15, 55)
        assert early.scheduled_start == at(9)

    def test_more_commitments_than_anchors_is_stable(self):
        dhuhr = make_anchor(AnchorKind.DHUHR, 12)
        a = make_commitment("A", at(7))
        b = make_commitment("B", at(8))
        c = make_commitment("C", at(9))
        context = make_context(anchors=[dhuhr], now=at(6), cursor=at(6))
        strategy = AfterAnchorStrategy()

        first = strategy.apply([a, b, c], context)
        second = strategy.apply([a, b, c], context)

        assert [ch.commitment_title for ch in first] == ["A"]
        assert second == []
        assert (a.scheduled_start, b.scheduled_start, c.scheduled_start) == (at(12, 25), at(8), at(9))

    def test_skips_anchor_when_commitment_would_reach_the_next(self):
        anchors = [make_anchor(AnchorKind.ASR, 15, 30), make_anchor(AnchorKind.MAGHRIB, 18, 15, duration=15)]
        long_task = make_commitment("Long", at(9), duration=180)
        short_task = make_commitment("Short", at(10), duration=30)
        context = make_context(anchors=anchors, now=at(13), cursor=at(13))

        AfterAnchorStrategy().apply([long_task, short_task], context)

        # 15:55 + 180 would run into Maghrib's 18:10 buffer
        assert short_task.scheduled_start == at(15, 55)
        assert long_task.scheduled_start == at(18, 35)

    def test_does_not_land_on_fixed_commitment(self):
        asr = make_anchor(AnchorKind.ASR, 15, 30)
        done = TimeInterval.of_minutes(at(15, 55), 30)
        task = make_commitment("Task", at(9))
        context = make_context(anchors=[asr], now=at(13), cursor=at(13), fixed=[done])

        assert AfterAnchorStrategy().apply([task], context) == []
        assert task.scheduled_start == at(9)

    def test_second_run_changes_nothing(self):
        anchors = [make_anchor(AnchorKind.ASR, 15, 30), make_anchor(AnchorKind.ISHA, 19, 45)]
        items = [make_commitment("X", at(8)), make_commitment("Y", at(9))]
        context = make_context(anchors=anchors, now=at(7), cursor=at(7))
        strategy = AfterAnchorStrategy()

        strategy.apply(items, context)
        assert strategy.apply(items, context) == []


class TestSpreadEvenly:
    """Tests for the spread-evenly strategy."""

    def test_demand_over_supply_is_infeasible(self):
        windows = [
            FreeWindow.between(at(8), at(12)),
            FreeWindow.between(at(13), at(17, 20)),
        ]
        items = [make_commitment(f"Task {i}", at(8 + i), duration=100) for i in range(6)]
        before = [c.scheduled_start for c in items]
        context = make_context(free_windows=windows)
        strategy = SpreadEvenlyStrategy()

        assert sum(w.duration_minutes for w in windows) == 500
        assert strategy.infeasibility_reason(items, context) is not None
        assert strategy.apply(items, context) == []
        assert [c.scheduled_start for c in items] == before

    def test_packs_with_gap_and_moves_to_next_window(self):
        windows = [
            FreeWindow.between(at(8), at(9)),
            FreeWindow.between(at(10), at(12)),
        ]
        a = make_commitment("A", at(14), duration=30)
        b = make_commitment("B", at(15), duration=30)
        c = make_commitment("C", at(16), duration=45)
        context = make_context(free_windows=windows)

        SpreadEvenlyStrategy().apply([c, b, a], context)

        assert a.scheduled_start == at(8)
        # 08:45 + 30 would overrun 09:00
        assert b.scheduled_start == at(10)
        assert c.scheduled_start == at(10, 45)

    def test_fragmentation_is_infeasible_not_partial(self):
        windows = [FreeWindow.between(at(8), at(8, 40)), FreeWindow.between(at(10), at(10, 40))]
        items = [make_commitment("Long", at(14), duration=60)]
        context = make_context(free_windows=windows)

        assert SpreadEvenlyStrategy().infeasibility_reason(items, context) is not None
        assert SpreadEvenlyStrategy().apply(items, context) == []
        assert items[0].scheduled_start == at(14)

    def test_second_run_changes_nothing(self):
        items = [make_commitment("A", at(20), duration=40), make_commitment("B", at(21), duration=20)]
        context = make_context()
        strategy = SpreadEvenlyStrategy()

        strategy.apply(items, context)
        assert strategy.apply(items, context) == []


def make_full_day_anchors() -> list[AnchorEvent]:
    return [
        make_anchor(AnchorKind.FAJR, 5),
        make_anchor(AnchorKind.DHUHR, 12),
        make_anchor(AnchorKind.ASR, 15, 30),
        make_anchor(AnchorKind.MAGHRIB, 18, 15, duration=15),
        make_anchor(AnchorKind.ISHA, 19, 45),
    ]


DAY_SHAPES = [
    [30, 30, 30],
    [30, 45, 200, 60, 20, 90, 30],
    [120, 15, 15, 240, 45, 30, 30, 60],
]
FIXED_SPANS = [TimeInterval.of_minutes(at(9), 45), TimeInterval.of_minutes(at(15, 55), 20)]


def assert_clear_and_disjoint(placed: list[Commitment], context: RearrangeContext):
    for commitment in placed:
        interval = commitment.interval()
        assert context.detector.find_conflict(interval.start, commitment.duration_minutes, context.anchors) is None
        assert not any(span.overlaps(interval) for span in context.fixed)
    spans = sorted((c.interval() for c in placed), key=lambda i: i.start)
    for earlier, later in zip(spans, spans[1:]):
        assert earlier.end <= later.start


@pytest.mark.parametrize("durations", DAY_SHAPES)
@pytest.mark.parametrize("strategy_cls", [OptimizeGapsStrategy, PrioritizeUrgentStrategy])
def test_packing_strategies_are_stable_and_clear(strategy_cls, durations):
    items = [make_commitment(f"Task {i}", at(6 + i), duration=d) for i, d in enumerate(durations)]
    context = make_context(anchors=make_full_day_anchors(), cursor=at(6), now=at(4), fixed=FIXED_SPANS)
    strategy = strategy_cls()

    strategy.apply(items, context)

    assert_clear_and_disjoint(items, context)
    assert strategy.apply(items, context) == []


@pytest.mark.parametrize("durations", DAY_SHAPES)
def test_after_anchor_is_stable_and_clear(durations):
    items = [make_commitment(f"Task {i}", at(6 + i), duration=d) for i, d in enumerate(durations)]
    context = make_context(anchors=make_full_day_anchors(), cursor=at(6), now=at(4), fixed=FIXED_SPANS)
    strategy = AfterAnchorStrategy()

    changes = strategy.apply(items, context)
    moved = {change.commitment_id for change in changes}

    assert changes
    assert_clear_and_disjoint([c for c in items if c.id in moved], context)
    assert strategy.apply(items, context) == []


@pytest.mark.parametrize("kind", list(RearrangeStrategy))
def test_registry_covers_every_strategy(kind):
    assert get_strategy(kind).kind == kind
