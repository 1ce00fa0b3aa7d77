"""
Schedule analysis service.

Labels a day's free windows by time of day, notes which anchor each one
follows, and proposes habits that fit them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from mizan.core.config import Settings, get_settings
from mizan.core.logger import setup_logger
from mizan.models.anchor import AnchorEvent
from mizan.models.commitment import Commitment
from mizan.models.enums import AnchorKind, TaskCategory, TimeOfDay
from mizan.models.schedule import (
    AnalyzedSlot,
    DayAvailability,
    HabitSuggestion,
    ScheduleAnalysis,
    ScheduleSummary,
)
from mizan.utils.datetime_utils import time_of_day_label

logger = setup_logger(__name__)

FOCUS_ALL = "all"
FOCUS_AFTER_ANCHORS = "after_anchors"

# Categories suggested when the caller does not restrict them
DEFAULT_HABIT_CATEGORIES = frozenset({"worship", "health", "study", "personal", "social"})


@dataclass(frozen=True)
class HabitTemplate:
    title: str
    title_english: str
    category: TaskCategory
    duration_minutes: int
    reason: str
    recurring: bool


HABITS_BY_TIME_OF_DAY: dict[TimeOfDay, tuple[HabitTemplate, ...]] = {
    TimeOfDay.MORNING: (
        HabitTemplate("صلاة الضحى", "Duha Prayer", TaskCategory.WORSHIP, 15, "Best time for the Duha prayer", True),
        HabitTemplate("قراءة القرآن", "Quran Reading", TaskCategory.WORSHIP, 30, "Blessed morning hours", True),
        HabitTemplate("تمارين رياضية", "Morning Exercise", TaskCategory.HEALTH, 45, "Morning exercise raises energy", True),
        HabitTemplate("مراجعة الأهداف", "Review Goals", TaskCategory.PERSONAL, 15, "Start the day with clarity", True),
        HabitTemplate("تعلم شيء جديد", "Learn Something New", TaskCategory.STUDY, 30, "The mind is sharpest in the morning", True),
    ),
    TimeOfDay.AFTERNOON: (
        HabitTemplate("قيلولة قصيرة", "Power Nap", TaskCategory.HEALTH, 20, "A short nap restores energy", False),
        HabitTemplate("قراءة كتاب", "Book Reading", TaskCategory.STUDY, 30, "Use the time after lunch", False),
        HabitTemplate("مشي خفيف", "Light Walk", TaskCategory.HEALTH, 20, "Walking after a meal helps digestion", False),
        HabitTemplate("أذكار المساء", "Evening Adhkar", TaskCategory.WORSHIP, 15, "Keep up the evening adhkar", True),
    ),
    TimeOfDay.EVENING: (
        HabitTemplate("قراءة القرآن", "Quran Reading", TaskCategory.WORSHIP, 30, "Close the day with Quran", True),
        HabitTemplate("وقت عائلي", "Family Time", TaskCategory.SOCIAL, 60, "Time with family", False),
        HabitTemplate("مراجعة اليوم", "Day Review", TaskCategory.PERSONAL, 15, "Review what you achieved today", True),
        HabitTemplate("تحضير للغد", "Prepare for Tomorrow", TaskCategory.PERSONAL, 15, "Plan the next day", True),
        HabitTemplate("استرخاء", "Relaxation", TaskCategory.HEALTH, 30, "Time to rest and unwind", False),
    ),
    TimeOfDay.NIGHT: (
        HabitTemplate("صلاة الوتر", "Witr Prayer", TaskCategory.WORSHIP, 15, "Pray witr before sleeping", True),
        HabitTemplate("قراءة قبل النوم", "Bedtime Reading", TaskCategory.STUDY, 20, "Reading helps you fall asleep", False),
        HabitTemplate("أذكار النوم", "Sleep Adhkar", TaskCategory.WORSHIP, 10, "Adhkar before sleep", True),
    ),
}

HABITS_AFTER_ANCHOR: dict[AnchorKind, HabitTemplate] = {
    AnchorKind.FAJR: HabitTemplate("أذكار الصباح", "Morning Adhkar", TaskCategory.WORSHIP, 15, "Best time for the morning adhkar", True),
    AnchorKind.DHUHR: HabitTemplate("راحة قصيرة", "Short Rest", TaskCategory.HEALTH, 15, "A midday break", False),
    AnchorKind.ASR: HabitTemplate("قراءة", "Reading", TaskCategory.STUDY, 30, "A quiet time for reading", False),
    AnchorKind.MAGHRIB: HabitTemplate("أذكار المساء", "Evening Adhkar", TaskCategory.WORSHIP, 15, "Time for the evening adhkar", True),
    AnchorKind.ISHA: HabitTemplate("صلاة الوتر", "Witr Prayer", TaskCategory.WORSHIP, 15, "Close the night prayer", True),
}

# Periods compared for busiest / freest, in tie-break order
SUMMARY_PERIODS = (TimeOfDay.MORNING, TimeOfDay.AFTERNOON, TimeOfDay.EVENING)


class ScheduleAnalysisService:
    """
    Service analyzing one day's free time.

    Provides:
    - Time-of-day labelling of free windows
    - Detection of windows that directly follow an anchor
    - Habit suggestions sized to each window
    - A summary of free vs. scheduled time
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def label_slots(
        self, availability: DayAvailability, anchors: list[AnchorEvent]
    ) -> list[AnalyzedSlot]:
        slots: list[AnalyzedSlot] = []
        tolerance = self.settings.AFTER_ANCHOR_TOLERANCE_MINUTES * 60
        for window in availability.free_windows:
            follows: Optional[AnchorKind] = None
            for anchor in sorted(anchors, key=lambda a: a.anchor_time):
                blocked_end = anchor.blocked_interval(self.settings.MAX_ANCHOR_BUFFER_MINUTES).end
                if abs((window.start - blocked_end).total_seconds()) <= tolerance:
                    follows = anchor.kind
                    break
            slots.append(
                AnalyzedSlot(
                    start=window.start,
                    end=window.end,
                    duration_minutes=window.duration_minutes,
                    time_of_day=TimeOfDay(time_of_day_label(window.start)),
                    after_anchor=follows.value if follows else None,
                )
            )
        return slots

    @staticmethod
    def apply_focus(slots: list[AnalyzedSlot], focus_area: Optional[str]) -> list[AnalyzedSlot]:
        """
        Keep the slots matching a focus area.

        ``all`` (or nothing) keeps everything, ``after_anchors`` keeps the
        slots that follow an anchor, a time-of-day label keeps that period.
        Unknown labels keep nothing.
        """
        focus = (focus_area or FOCUS_ALL).strip().lower()
        if focus == FOCUS_ALL:
            return slots
        if focus == FOCUS_AFTER_ANCHORS:
            return [slot for slot in slots if slot.after_anchor]
        return [slot for slot in slots if slot.time_of_day.value == focus]

    def suggest_habits(
        self,
        slots: list[AnalyzedSlot],
        categories: Optional[list[str]] = None,
    ) -> list[HabitSuggestion]:
        """
        Propose habits for free slots.

        The anchor-specific habit comes first for slots that follow an
        anchor, then time-of-day habits. Each habit must fit the slot and
        belong to an allowed category.
        """
        allowed = {c.strip().lower() for c in categories} if categories else set(DEFAULT_HABIT_CATEGORIES)
        per_slot = self.settings.ANALYSIS_SUGGESTIONS_PER_SLOT
        suggestions: list[HabitSuggestion] = []

        for slot in slots:
            candidates: list[HabitTemplate] = []
            if slot.after_anchor:
                anchor_habit = HABITS_AFTER_ANCHOR.get(AnchorKind(slot.after_anchor))
                if anchor_habit:
                    candidates.append(anchor_habit)
            candidates.extend(HABITS_BY_TIME_OF_DAY[slot.time_of_day])

            picked: list[HabitTemplate] = []
            for habit in candidates:
                if len(picked) >= per_slot:
                    break
                if habit.category.value not in allowed or habit.duration_minutes > slot.duration_minutes:
                    continue
                if any(p.title == habit.title for p in picked):
                    continue
                picked.append(habit)

            suggestions.extend(
                HabitSuggestion(
                    title=habit.title,
                    title_english=habit.title_english,
                    category=habit.category.value,
                    duration_minutes=habit.duration_minutes,
                    slot_start=slot.start,
                    reason=habit.reason,
                    is_recurring_recommended=habit.recurring,
                )
                for habit in picked
            )

        return suggestions[: self.settings.ANALYSIS_SUGGESTION_LIMIT]

    @staticmethod
    def summarize(
        slots: list[AnalyzedSlot],
        anchors: list[AnchorEvent],
        commitments: list[Commitment],
    ) -> ScheduleSummary:
        free_by_period = {
            period: sum(s.duration_minutes for s in slots if s.time_of_day == period)
            for period in SUMMARY_PERIODS
        }
        busiest: Optional[TimeOfDay] = None
        freest: Optional[TimeOfDay] = None
        if slots:
            # max/min return the first period on ties
            freest = max(SUMMARY_PERIODS, key=lambda p: free_by_period[p])
            busiest = min(SUMMARY_PERIODS, key=lambda p: free_by_period[p])

        return ScheduleSummary(
            total_free_minutes=sum(s.duration_minutes for s in slots),
            total_scheduled_minutes=sum(c.duration_minutes for c in commitments),
            anchor_count=len(anchors),
            task_count=len(commitments),
            busiest_period=busiest,
            freest_period=freest,
        )

    def analyze(
        self,
        availability: DayAvailability,
        anchors: list[AnchorEvent],
        commitments: list[Commitment],
        focus_area: Optional[str] = None,
        suggest_habits: bool = False,
        habit_categories: Optional[list[str]] = None,
    ) -> ScheduleAnalysis:
        """
        Analyze a day.

        Args:
            availability: The day's computed free windows
            anchors: The day's anchors
            commitments: Commitments scheduled on the day
            focus_area: all / morning / afternoon / evening / night / after_anchors
            suggest_habits: Whether to propose habits
            habit_categories: Allowed habit categories (default: all but work)

        Returns:
            ScheduleAnalysis with labelled slots, suggestions and summary
        """
        slots = self.apply_focus(self.label_slots(availability, anchors), focus_area)
        suggestions = self.suggest_habits(slots, habit_categories) if suggest_habits else []
        summary = self.summarize(slots, anchors, commitments)

        logger.debug(
            f"Analysis {availability.bounds.day}: {len(slots)} slots, "
            f"{len(suggestions)} suggestions, {summary.total_free_minutes} free minutes"
        )
        return ScheduleAnalysis(
            day=availability.bounds.day,
            free_slots=slots,
            suggestions=suggestions,
            summary=summary,
        )
