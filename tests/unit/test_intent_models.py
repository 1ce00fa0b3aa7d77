"""
Unit tests for intent parsing and core model invariants.
"""

from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from mizan.core.exceptions import IntentParseError
from mizan.models.commitment import Commitment
from mizan.models.enums import AnchorKind, RearrangeStrategy, TaskCategory
from mizan.models.intent import (
    CreateTaskIntent,
    DeleteTaskIntent,
    RearrangeDayIntent,
    RescheduleTaskIntent,
    TaskQuery,
    parse_intent,
)
from mizan.models.time_window import TimeInterval


class TestParseIntent:
    """Tests for parse_intent."""

    def test_create_task(self):
        intent = parse_intent(
            {
                "type": "create_task",
                "task": {
                    "title": "Gym",
                    "duration_minutes": 45,
                    "category": "health",
                    "when": {"date": "tomorrow", "time": "07:30"},
                },
            }
        )

        assert isinstance(intent, CreateTaskIntent)
        assert intent.task.when.time == "07:30"
        assert intent.task.when.names_clock_time

    def test_defaults(self):
        intent = parse_intent({"type": "delete_task", "query": {"title_contains": "gym"}})

        assert isinstance(intent, DeleteTaskIntent)
        assert intent.confirmed is False
        assert intent.delete_all_recurring is False

    def test_arabic_references(self):
        intent = parse_intent(
            {
                "type": "reschedule_task",
                "query": {"title_contains": "جري", "date": "غداً"},
                "new_time": {"weekday": "الجمعة", "after_anchor": "العصر"},
            }
        )

        assert isinstance(intent, RescheduleTaskIntent)
        assert AnchorKind.from_label(intent.new_time.after_anchor) == AnchorKind.ASR

    def test_time_of_day_is_normalized(self):
        intent = parse_intent(
            {"type": "reschedule_task", "query": {"title_contains": "x"}, "new_time": {"time_of_day": "Evening"}}
        )
        assert intent.new_time.time_of_day == "evening"

    def test_rearrange(self):
        intent = parse_intent({"type": "rearrange_day", "strategy": "spread_evenly"})

        assert isinstance(intent, RearrangeDayIntent)
        assert intent.date == "today"
        assert intent.strategy == RearrangeStrategy.SPREAD_EVENLY

    @pytest.mark.parametrize(
        "payload",
        [
            {"type": "toggle_nawafil", "enabled": True},
            {"type": "create_task", "task": {"title": ""}},
            {"type": "create_task", "task": {"title": "x", "when": {"time": "25:00"}}},
            {"type": "create_task", "task": {"title": "x", "when": {"time": "noon"}}},
            {"type": "query_anchors", "date": "next week"},
            {"type": "find_available_slot", "duration_minutes": 30, "after_anchor": "tahajjud"},
            {"type": "reschedule_task", "query": {"title_contains": "x"}},
            {"type": "reschedule_task", "query": {}, "new_time": {"weekday": "someday"}},
            {"type": "rearrange_day", "strategy": "random"},
            {"type": "find_available_slot", "duration_minutes": 0},
            {"type": "create_task", "task": {"title": "x", "when": {"relative_minutes": 10**12}}},
            {"no_type": "create_task"},
        ],
    )
    def test_invalid_payloads_are_rejected(self, payload):
        with pytest.raises(IntentParseError) as exc_info:
            parse_intent(payload)

        assert exc_info.value.errors
        assert exc_info.value.details["errors"] == exc_info.value.errors


class TestTaskQuery:
    """Tests for TaskQuery helpers."""

    def test_describe(self):
        query = TaskQuery(title_contains="gym", date="today", is_completed=False)
        assert query.describe() == "title contains 'gym', date: today, completed: false"

    def test_describe_empty(self):
        assert TaskQuery().describe() == "any task"

    def test_is_empty(self):
        assert TaskQuery().is_empty
        assert not TaskQuery(is_completed=False).is_empty
        assert not TaskQuery(title_contains="gym").is_empty


class TestCommitment:
    """Tests for Commitment derived state."""

    def test_end_time_and_interval(self):
        start = datetime(2026, 3, 2, 9)
        commitment = Commitment(title="Read", duration_minutes=45, scheduled_start=start)

        assert commitment.end_time == start + timedelta(minutes=45)
        assert commitment.interval().duration_minutes == 45

    def test_unscheduled_has_no_interval(self):
        commitment = Commitment(title="Someday", duration_minutes=30)

        assert not commitment.is_scheduled
        assert commitment.interval() is None
        assert commitment.end_time is None

    def test_overdue_and_due_soon(self):
        now = datetime(2026, 3, 2, 12)
        overdue = Commitment(title="a", duration_minutes=10, due_date=now - timedelta(minutes=1))
        soon = Commitment(title="b", duration_minutes=10, due_date=now + timedelta(hours=24))
        later = Commitment(title="c", duration_minutes=10, due_date=now + timedelta(hours=25))

        assert overdue.is_overdue(now) and not overdue.is_due_soon(now)
        assert soon.is_due_soon(now) and not soon.is_overdue(now)
        assert not later.is_due_soon(now)

    def test_completed_is_never_overdue(self):
        now = datetime(2026, 3, 2, 12)
        commitment = Commitment(title="a", duration_minutes=10, due_date=now - timedelta(days=1))
        commitment.mark_complete(at=now)

        assert not commitment.is_overdue(now)
        assert commitment.completed_at == now

    def test_blank_title_rejected(self):
        with pytest.raises(ValidationError):
            Commitment(title="   ", duration_minutes=10)

    def test_category_from_label(self):
        assert TaskCategory.from_label(" Study ") == TaskCategory.STUDY
        assert TaskCategory.from_label("hobby") is None


def test_interval_must_not_be_empty():
    moment = datetime(2026, 3, 2, 9)
    with pytest.raises(ValidationError):
        TimeInterval(start=moment, end=moment)
