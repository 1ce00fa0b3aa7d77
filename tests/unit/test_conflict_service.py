"""
Unit tests for ConflictDetector.
"""

from datetime import date, datetime, timedelta

import pytest

from mizan.core.config import Settings
from mizan.models.anchor import AnchorEvent
from mizan.models.enums import AnchorKind
from mizan.models.time_window import TimeInterval
from mizan.services.availability_service import AvailabilityCalculator
from mizan.services.conflict_service import ConflictDetector

DAY = date(2026, 3, 2)


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(DAY.year, DAY.month, DAY.day, hour, minute)


def make_anchor(kind, hour, minute=0, duration=15, before=5, after=5) -> AnchorEvent:
    return AnchorEvent(
        kind=kind,
        anchor_time=at(hour, minute),
        duration_minutes=duration,
        buffer_before_minutes=before,
        buffer_after_minutes=after,
    )


@pytest.fixture
def detector():
    return ConflictDetector(Settings())


@pytest.fixture
def anchors():
    return [
        make_anchor(AnchorKind.ASR, 15, 30, duration=20),
        make_anchor(AnchorKind.DHUHR, 12, duration=20),
        make_anchor(AnchorKind.MAGHRIB, 18, 15),
    ]


def test_overlap_with_leading_buffer(detector, anchors):
    conflict = detector.find_conflict(at(11, 50), 10, anchors)
    assert conflict is not None
    assert conflict.kind == AnchorKind.DHUHR


def test_ending_at_buffer_start_is_clear(detector, anchors):
    assert detector.find_conflict(at(11, 45), 10, anchors) is None


def test_starting_at_buffer_end_is_clear(detector, anchors):
    # Dhuhr blocks 11:55-12:25
    assert detector.find_conflict(at(12, 25), 60, anchors) is None


def test_first_conflict_in_time_order(detector, anchors):
    """A long placement spanning two anchors reports the earlier one."""
    conflict = detector.find_conflict(at(11), 6 * 60, anchors)
    assert conflict.kind == AnchorKind.DHUHR


def test_suggest_after_uses_follow_gap(detector):
    dhuhr = make_anchor(AnchorKind.DHUHR, 12, duration=20)
    # 12:00 + 20 + 15
    assert detector.suggest_after(dhuhr) == at(12, 35)


def test_suggest_after_never_inside_buffer(detector):
    dhuhr = make_anchor(AnchorKind.DHUHR, 12, duration=20, after=30)
    suggested = detector.suggest_after(dhuhr)

    assert suggested == at(12, 50)
    assert detector.find_conflict(suggested, 15, [dhuhr]) is None


def test_first_clear_start_hops_adjacent_anchors(detector):
    first = make_anchor(AnchorKind.MAGHRIB, 18, 15, duration=15)
    second = make_anchor(AnchorKind.ISHA, 18, 40, duration=20)

    start = detector.first_clear_start(at(18), 30, [first, second])

    assert start == at(19, 5)
    assert detector.find_conflict(start, 30, [first, second]) is None


def test_no_anchors_never_conflicts(detector):
    assert detector.find_conflict(at(12), 60, []) is None


def test_conflicts_and_free_windows_agree(detector, anchors):
    """A placement inside a free window never conflicts, and vice versa."""
    calc = AvailabilityCalculator(Settings())
    availability = calc.compute(calc.default_bounds(DAY), anchors, [])
    windows = [w.as_interval() for w in availability.free_windows]

    start = at(6)
    while start < at(22):
        for duration in (15, 30, 60, 90):
            candidate = TimeInterval.of_minutes(start, duration)
            contained = any(w.contains(candidate) for w in windows)
            conflict = detector.find_conflict(start, duration, anchors)
            if contained:
                assert conflict is None
            if conflict is not None:
                assert not contained
        start += timedelta(minutes=5)
