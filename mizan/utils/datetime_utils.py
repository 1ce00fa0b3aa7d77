"""
Local-time datetime utilities.

The engine works on naive local wall-clock datetimes: one timezone per
installation, so an "instant" is the local time the user sees. Aware values
entering from outside are converted to the configured zone and stripped.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

# Relative date keywords accepted in payloads (English and Arabic)
TODAY_KEYWORDS = frozenset({"today", "اليوم"})
TOMORROW_KEYWORDS = frozenset({"tomorrow", "غدا", "غداً", "بكرة"})

WEEKDAY_NAMES: dict[str, int] = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
    "الاثنين": 0,
    "الإثنين": 0,
    "الثلاثاء": 1,
    "الأربعاء": 2,
    "الاربعاء": 2,
    "الخميس": 3,
    "الجمعة": 4,
    "السبت": 5,
    "الأحد": 6,
    "الاحد": 6,
}

# Start of each named part of the day when a task is placed "in the morning" etc.
TIME_OF_DAY_STARTS: dict[str, time] = {
    "morning": time(8, 0),
    "afternoon": time(12, 0),
    "evening": time(17, 0),
    "night": time(21, 0),
}


def now_local(tz_name: str = "") -> datetime:
    """
    Current wall-clock time in the configured zone, without tzinfo.

    Args:
        tz_name: IANA timezone name; empty uses the system local zone
    """
    if tz_name:
        return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)
    return datetime.now()


def to_local_naive(dt: datetime, tz_name: str = "") -> datetime:
    """
    Normalize a datetime to naive local time.

    Naive values are assumed to already be local.
    """
    if dt.tzinfo is None:
        return dt
    if tz_name:
        return dt.astimezone(ZoneInfo(tz_name)).replace(tzinfo=None)
    return dt.astimezone().replace(tzinfo=None)


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end (floored)."""
    return int((end - start).total_seconds() // 60)


def next_boundary(moment: datetime, step_minutes: int) -> datetime:
    """
    First step boundary strictly after ``moment``.

    Example:
        >>> next_boundary(datetime(2024, 1, 20, 9, 50), 15)
        datetime(2024, 1, 20, 10, 0)
    """
    floored = moment.replace(second=0, microsecond=0)
    floored -= timedelta(minutes=floored.minute % step_minutes)
    return floored + timedelta(minutes=step_minutes)


def parse_clock(value: str) -> time:
    """
    Parse an ``HH:MM`` clock time.

    Raises:
        ValueError: If the string is not a valid 24h clock time
    """
    parts = value.strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    try:
        hour, minute = int(parts[0]), int(parts[1])
    except ValueError:
        raise ValueError(f"Invalid time '{value}', expected HH:MM") from None
    return time(hour, minute)


def is_date_reference(value: str) -> bool:
    """Check that a payload date is a known keyword or an ISO date."""
    normalized = value.strip().lower()
    if normalized in TODAY_KEYWORDS or normalized in TOMORROW_KEYWORDS:
        return True
    try:
        date.fromisoformat(normalized)
    except ValueError:
        return False
    return True


def resolve_date_reference(value: str, today: date) -> date:
    """
    Resolve ``today`` / ``tomorrow`` / ``YYYY-MM-DD`` to a concrete date.

    Raises:
        ValueError: If the reference is not recognized
    """
    normalized = value.strip().lower()
    if normalized in TODAY_KEYWORDS:
        return today
    if normalized in TOMORROW_KEYWORDS:
        return today + timedelta(days=1)
    return date.fromisoformat(normalized)


def weekday_index(name: str) -> Optional[int]:
    """Monday=0 index for an English or Arabic weekday name."""
    return WEEKDAY_NAMES.get(name.strip().lower())


def next_weekday(today: date, weekday: int) -> date:
    """Nearest date on or after ``today`` falling on ``weekday``."""
    return today + timedelta(days=(weekday - today.weekday()) % 7)


def time_of_day_label(moment: datetime) -> str:
    """Classify a datetime as morning / afternoon / evening / night."""
    hour = moment.hour
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 21:
        return "evening"
    return "night"
