"""
Unit tests for local-time helpers.
"""

from datetime import date, datetime, time

import pytest

from mizan.utils.datetime_utils import (
    is_date_reference,
    minutes_between,
    next_boundary,
    next_weekday,
    parse_clock,
    resolve_date_reference,
    time_of_day_label,
    to_local_naive,
    weekday_index,
)

TODAY = date(2026, 3, 2)  # Monday


@pytest.mark.parametrize(
    "moment,expected",
    [
        (datetime(2026, 3, 2, 9, 50), datetime(2026, 3, 2, 10, 0)),
        (datetime(2026, 3, 2, 10, 0), datetime(2026, 3, 2, 10, 15)),
        (datetime(2026, 3, 2, 10, 14, 59), datetime(2026, 3, 2, 10, 15)),
        (datetime(2026, 3, 2, 23, 50), datetime(2026, 3, 3, 0, 0)),
    ],
)
def test_next_boundary(moment, expected):
    assert next_boundary(moment, 15) == expected


def test_minutes_between_floors():
    assert minutes_between(datetime(2026, 3, 2, 9, 0), datetime(2026, 3, 2, 9, 14, 59)) == 14


def test_parse_clock():
    assert parse_clock(" 07:05 ") == time(7, 5)
    with pytest.raises(ValueError):
        parse_clock("7pm")


@pytest.mark.parametrize(
    "reference,expected",
    [
        ("today", TODAY),
        ("اليوم", TODAY),
        ("Tomorrow", date(2026, 3, 3)),
        ("بكرة", date(2026, 3, 3)),
        ("2026-04-01", date(2026, 4, 1)),
    ],
)
def test_resolve_date_reference(reference, expected):
    assert is_date_reference(reference)
    assert resolve_date_reference(reference, TODAY) == expected


def test_unknown_date_reference():
    assert not is_date_reference("next week")
    with pytest.raises(ValueError):
        resolve_date_reference("next week", TODAY)


def test_next_weekday_counts_today():
    assert next_weekday(TODAY, weekday_index("Monday")) == TODAY
    assert next_weekday(TODAY, weekday_index("الجمعة")) == date(2026, 3, 6)
    assert weekday_index("someday") is None


@pytest.mark.parametrize(
    "hour,label",
    [(5, "morning"), (11, "morning"), (12, "afternoon"), (17, "evening"), (21, "night"), (3, "night")],
)
def test_time_of_day_label(hour, label):
    assert time_of_day_label(datetime(2026, 3, 2, hour)) == label


def test_to_local_naive():
    naive = datetime(2026, 3, 2, 9)
    assert to_local_naive(naive) is naive
