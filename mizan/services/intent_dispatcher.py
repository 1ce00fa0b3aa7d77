"""
Intent dispatcher.

Turns one structured intent into a schedule mutation or a query result.
Every recoverable situation (not found, ambiguous, anchor conflict,
infeasible) comes back as an outcome value; only store failures raise.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Callable, Optional

from mizan.core.config import Settings, get_settings
from mizan.core.exceptions import StoreError
from mizan.core.logger import setup_logger
from mizan.interfaces.anchor_source import IAnchorSource
from mizan.interfaces.commitment_store import ICommitmentStore
from mizan.models.anchor import AnchorEvent, AnchorSummary
from mizan.models.commitment import Commitment, CommitmentSummary
from mizan.models.enums import AnchorKind, ResolutionStatus, TaskCategory
from mizan.models.intent import (
    AnalyzeScheduleIntent,
    ClarificationOption,
    ClarificationRequest,
    CompleteTaskIntent,
    CreateTaskIntent,
    DeleteTaskIntent,
    EditTaskIntent,
    FindAvailableSlotIntent,
    Intent,
    MoveToUnscheduledIntent,
    QueryAnchorsIntent,
    QueryAvailableTimeIntent,
    QueryScheduleIntent,
    QueryTasksIntent,
    RearrangeDayIntent,
    ReportInfeasibleIntent,
    RequestClarificationIntent,
    RescheduleTaskIntent,
    TaskDraft,
    TaskQuery,
    TimeSpec,
    UncompleteTaskIntent,
    parse_intent,
)
from mizan.models.outcome import (
    AlreadyCompletedOutcome,
    AnchorListOutcome,
    CompletedOutcome,
    CreatedOutcome,
    DayScheduleOutcome,
    DeletedOutcome,
    DeletionPendingOutcome,
    EditedOutcome,
    FreeWindowsOutcome,
    InfeasibleOutcome,
    MovedToUnscheduledOutcome,
    NeedsClarificationOutcome,
    NotFoundOutcome,
    Outcome,
    PrayerConflictOutcome,
    RearrangedOutcome,
    RescheduledOutcome,
    ScheduleAnalysisOutcome,
    SlotFoundOutcome,
    StoreFailureOutcome,
    TaskListOutcome,
    UncompletedOutcome,
)
from mizan.models.schedule import DayAvailability
from mizan.services.availability_service import AvailabilityCalculator
from mizan.services.conflict_service import ConflictDetector
from mizan.services.entity_resolver import EntityResolver
from mizan.services.rearrange_service import RearrangeContext, get_strategy
from mizan.services.schedule_analysis_service import ScheduleAnalysisService
from mizan.utils.datetime_utils import (
    TIME_OF_DAY_STARTS,
    next_weekday,
    now_local,
    parse_clock,
    resolve_date_reference,
    to_local_naive,
    weekday_index,
)

logger = setup_logger(__name__)

Clock = Callable[[], datetime]


class IntentDispatcher:
    """
    Executes intents against the commitment store.

    Collaborators are injected once; the dispatcher keeps no state between
    calls and must not run two intents against the same store at once.
    """

    def __init__(
        self,
        store: ICommitmentStore,
        anchor_source: IAnchorSource,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self.anchor_source = anchor_source
        self.settings = settings or get_settings()
        self.clock = clock or (lambda: now_local(self.settings.TIMEZONE))
        self.availability = AvailabilityCalculator(self.settings)
        self.detector = ConflictDetector(self.settings)
        self.resolver = EntityResolver()
        self.analysis = ScheduleAnalysisService(self.settings)

    # ===========================================
    # Entry points
    # ===========================================

    async def dispatch(self, intent: Intent) -> Outcome:
        """
        Execute one intent.

        Args:
            intent: Parsed intent

        Returns:
            Exactly one outcome variant

        Raises:
            StoreError: If flushing a mutation fails
        """
        now = self.clock()
        handler = getattr(self, f"_handle_{intent.type}")
        logger.debug(f"Dispatching {intent.type}")
        return await handler(intent, now)

    async def dispatch_payload(self, payload: dict[str, Any]) -> Outcome:
        """
        Parse and execute a raw payload.

        Raises:
            IntentParseError: If the payload is not a valid intent
            StoreError: If flushing a mutation fails
        """
        return await self.dispatch(parse_intent(payload))

    async def dispatch_safely(self, intent: Intent) -> Outcome:
        """Like dispatch(), but store failures come back as an outcome."""
        try:
            return await self.dispatch(intent)
        except StoreError as e:
            logger.error(f"Store flush failed for {intent.type}: {e.message}")
            return StoreFailureOutcome(message=e.message)

    # ===========================================
    # Shared helpers
    # ===========================================

    def _resolve_day(self, reference: Optional[str], today: date) -> date:
        return resolve_date_reference(reference or "today", today)

    def _anchors(self, day: date) -> list[AnchorEvent]:
        return sorted(self.anchor_source.anchors_for(day), key=lambda a: a.anchor_time)

    @staticmethod
    def _scheduled_on(day: date, commitments: list[Commitment]) -> list[Commitment]:
        on_day = [c for c in commitments if c.scheduled_day == day]
        return sorted(on_day, key=lambda c: c.scheduled_start)

    def _day_availability(
        self,
        day: date,
        now: datetime,
        future_only: bool,
        anchors: Optional[list[AnchorEvent]] = None,
        commitments: Optional[list[Commitment]] = None,
    ) -> DayAvailability:
        if anchors is None:
            anchors = self._anchors(day)
        if commitments is None:
            commitments = self._scheduled_on(day, self.store.fetch_all())
        return self.availability.compute(
            self.availability.default_bounds(day),
            anchors,
            commitments,
            future_only=future_only,
            now=now,
        )

    def _day_of(self, spec: TimeSpec, today: date) -> Optional[date]:
        """Day named by a time spec (date first, then weekday), if any."""
        if spec.date:
            return resolve_date_reference(spec.date, today)
        if spec.weekday:
            return next_weekday(today, weekday_index(spec.weekday))
        return None

    def _resolve_time(self, spec: TimeSpec, now: datetime) -> Optional[datetime]:
        """
        Concrete start for a time spec.

        Priority: after_anchor, relative_minutes, time, time_of_day. A bare
        time means today, or tomorrow once it has passed. Returns None when
        the spec names no moment (or the anchor does not exist that day).
        """
        today = now.date()
        day = self._day_of(spec, today)

        if spec.after_anchor:
            kind = AnchorKind.from_label(spec.after_anchor)
            anchor = next((a for a in self._anchors(day or today) if a.kind == kind), None)
            if anchor is None:
                logger.warning(f"No {spec.after_anchor} anchor on {day or today}")
                return None
            return self.detector.suggest_after(anchor)

        if spec.relative_minutes is not None:
            return now.replace(second=0, microsecond=0) + timedelta(minutes=spec.relative_minutes)

        if spec.time:
            clock = parse_clock(spec.time)
            if day is not None:
                return datetime.combine(day, clock)
            candidate = datetime.combine(today, clock)
            if candidate <= now:
                candidate += timedelta(days=1)
            return candidate

        if spec.time_of_day:
            return datetime.combine(day or today, TIME_OF_DAY_STARTS[spec.time_of_day])

        return None

    def _time_question(
        self,
        question: str,
        day: date,
        now: datetime,
        duration_minutes: int,
        partial_task: Optional[TaskDraft] = None,
    ) -> NeedsClarificationOutcome:
        """Ask for a time, offering the first free windows that fit."""
        windows = self._day_availability(day, now, future_only=True).free_windows
        options = [
            ClarificationOption(
                label=f"{w.start:%H:%M}",
                value=f"{w.start:%H:%M}",
                subtitle=f"{w.duration_minutes} min free until {w.end:%H:%M}",
            )
            for w in windows
            if w.can_fit(duration_minutes)
        ][: self.settings.CLARIFICATION_OPTION_LIMIT]
        return NeedsClarificationOutcome(
            request=ClarificationRequest(question=question, options=options, partial_task=partial_task)
        )

    def _which_task(self, action: str, matches: list[Commitment]) -> NeedsClarificationOutcome:
        options = [
            ClarificationOption(
                label=c.title,
                value=str(c.id),
                subtitle=f"{c.scheduled_start:%Y-%m-%d %H:%M}" if c.scheduled_start else "Inbox",
            )
            for c in matches[: self.settings.CLARIFICATION_OPTION_LIMIT]
        ]
        return NeedsClarificationOutcome(
            request=ClarificationRequest(question=f"Which task do you want to {action}?", options=options),
            candidates=[CommitmentSummary.of(c) for c in matches],
        )

    def _resolve_target(
        self, query: TaskQuery, action: str, now: datetime
    ) -> tuple[Optional[Commitment], Optional[Outcome]]:
        """Exactly one commitment, or the outcome explaining why not."""
        resolution = self.resolver.resolve_one(query, self.store.fetch_all(), now.date())
        if resolution.status == ResolutionStatus.NOT_FOUND:
            return None, NotFoundOutcome(query=query.describe())
        if resolution.status == ResolutionStatus.AMBIGUOUS:
            return None, self._which_task(action, resolution.matches)
        return resolution.commitment, None

    def _conflict_outcome(
        self,
        start: datetime,
        duration_minutes: int,
        pending_task: Optional[TaskDraft] = None,
    ) -> Optional[PrayerConflictOutcome]:
        conflict = self.detector.find_conflict(start, duration_minutes, self._anchors(start.date()))
        if conflict is None:
            return None
        suggested = self.detector.suggest_after(conflict)
        if pending_task is not None:
            pending_task = pending_task.model_copy(
                update={"when": TimeSpec(date=suggested.date().isoformat(), time=f"{suggested:%H:%M}")}
            )
        logger.info(f"{start:%Y-%m-%d %H:%M} collides with {conflict.name}, suggesting {suggested:%H:%M}")
        return PrayerConflictOutcome(
            anchor_name=conflict.name,
            anchor_name_arabic=conflict.kind.arabic_name,
            suggested_time=suggested,
            pending_task=pending_task,
        )

    # ===========================================
    # Mutations
    # ===========================================

    async def _handle_create_task(self, intent: CreateTaskIntent, now: datetime) -> Outcome:
        draft = intent.task
        category = TaskCategory.from_label(draft.category) or TaskCategory.PERSONAL

        start: Optional[datetime] = None
        if draft.when is not None and not draft.when.is_empty:
            start = self._resolve_time(draft.when, now)
            if start is None:
                day = self._day_of(draft.when, now.date()) or now.date()
                return self._time_question(
                    f"When should '{draft.title}' be scheduled on {day.isoformat()}?",
                    day,
                    now,
                    draft.duration_minutes,
                    partial_task=draft,
                )
            conflict = self._conflict_outcome(start, draft.duration_minutes, pending_task=draft)
            if conflict:
                return conflict

        commitment = Commitment(
            title=draft.title,
            duration_minutes=draft.duration_minutes,
            category=category,
            notes=draft.notes,
            due_date=to_local_naive(draft.due_date, self.settings.TIMEZONE) if draft.due_date else None,
            is_recurring=draft.is_recurring,
            scheduled_start=start,
        )
        self.store.insert(commitment)
        await self.store.save()

        placement = f"at {start:%Y-%m-%d %H:%M}" if start else "in inbox"
        logger.info(f"Created '{commitment.title}' {placement}")
        return CreatedOutcome(task=CommitmentSummary.of(commitment), show_in_timeline=start is not None)

    async def _handle_edit_task(self, intent: EditTaskIntent, now: datetime) -> Outcome:
        changes = intent.changes
        if not changes.has_changes:
            return InfeasibleOutcome(reason="No changes were given", alternative="Say what should change")

        commitment, failure = self._resolve_target(intent.query, "edit", now)
        if failure:
            return failure

        category: Optional[TaskCategory] = None
        if changes.category is not None:
            category = TaskCategory.from_label(changes.category)
            if category is None:
                return InfeasibleOutcome(
                    reason=f"Unknown category '{changes.category}'",
                    alternative=", ".join(c.value for c in TaskCategory),
                )

        duration = changes.duration_minutes or commitment.duration_minutes
        new_start: Optional[datetime] = None
        if changes.scheduled_date is not None or changes.scheduled_time is not None:
            current = commitment.scheduled_start
            day = (
                resolve_date_reference(changes.scheduled_date, now.date())
                if changes.scheduled_date
                else (current.date() if current else now.date())
            )
            if changes.scheduled_time:
                clock = parse_clock(changes.scheduled_time)
            elif current:
                clock = current.time()
            else:
                return self._time_question(
                    f"What time should '{commitment.title}' be scheduled on {day.isoformat()}?",
                    day,
                    now,
                    duration,
                )
            new_start = datetime.combine(day, clock)

        check_start = new_start or (commitment.scheduled_start if changes.duration_minutes else None)
        if check_start is not None:
            conflict = self._conflict_outcome(check_start, duration)
            if conflict:
                return conflict

        applied: list[str] = []
        if changes.title is not None:
            commitment.update_title(changes.title)
            applied.append("title")
        if changes.duration_minutes is not None:
            commitment.update_duration(changes.duration_minutes)
            applied.append("duration_minutes")
        if changes.notes is not None:
            commitment.update_notes(changes.notes)
            applied.append("notes")
        if category is not None:
            commitment.update_category(category)
            applied.append("category")
        if new_start is not None:
            commitment.schedule_at(new_start)
            applied.append("scheduled_start")

        await self.store.save()
        logger.info(f"Edited '{commitment.title}': {', '.join(applied)}")
        return EditedOutcome(task=CommitmentSummary.of(commitment), changes=applied)

    async def _handle_delete_task(self, intent: DeleteTaskIntent, now: datetime) -> Outcome:
        commitment, failure = self._resolve_target(intent.query, "delete", now)
        if failure:
            return failure

        if not intent.confirmed:
            description = f"Delete task '{commitment.title}'"
            if commitment.is_recurring:
                description += " (recurring)"
            return DeletionPendingOutcome(
                task=CommitmentSummary.of(commitment),
                description=description,
                delete_all_recurring=intent.delete_all_recurring,
            )

        title, was_recurring = commitment.title, commitment.is_recurring
        self.store.delete(commitment)
        await self.store.save()
        logger.info(f"Deleted '{title}'")
        return DeletedOutcome(task_title=title, was_recurring=was_recurring)

    async def _handle_complete_task(self, intent: CompleteTaskIntent, now: datetime) -> Outcome:
        commitment, failure = self._resolve_target(intent.query, "complete", now)
        if failure:
            return failure
        if commitment.is_completed:
            return AlreadyCompletedOutcome(task_title=commitment.title)

        commitment.mark_complete(at=now)
        await self.store.save()
        logger.info(f"Completed '{commitment.title}'")
        return CompletedOutcome(task=CommitmentSummary.of(commitment))

    async def _handle_uncomplete_task(self, intent: UncompleteTaskIntent, now: datetime) -> Outcome:
        commitment, failure = self._resolve_target(intent.query, "reopen", now)
        if failure:
            return failure
        if not commitment.is_completed:
            return InfeasibleOutcome(reason=f"'{commitment.title}' is not completed")

        commitment.unmark_complete()
        await self.store.save()
        logger.info(f"Reopened '{commitment.title}'")
        return UncompletedOutcome(task=CommitmentSummary.of(commitment))

    async def _handle_reschedule_task(self, intent: RescheduleTaskIntent, now: datetime) -> Outcome:
        commitment, failure = self._resolve_target(intent.query, "reschedule", now)
        if failure:
            return failure

        new_start = self._resolve_time(intent.new_time, now)
        if new_start is None:
            day = self._day_of(intent.new_time, now.date()) or now.date()
            return self._time_question(
                f"When should '{commitment.title}' be moved to?",
                day,
                now,
                commitment.duration_minutes,
            )

        conflict = self._conflict_outcome(new_start, commitment.duration_minutes)
        if conflict:
            return conflict

        old_start = commitment.scheduled_start
        commitment.schedule_at(new_start)
        await self.store.save()
        logger.info(f"Rescheduled '{commitment.title}': {old_start} -> {new_start}")
        return RescheduledOutcome(task=CommitmentSummary.of(commitment), old_start=old_start, new_start=new_start)

    async def _handle_move_to_unscheduled(self, intent: MoveToUnscheduledIntent, now: datetime) -> Outcome:
        commitment, failure = self._resolve_target(intent.query, "move to the inbox", now)
        if failure:
            return failure
        if not commitment.is_scheduled:
            return InfeasibleOutcome(reason=f"'{commitment.title}' is already in the inbox")

        commitment.move_to_unscheduled()
        await self.store.save()
        logger.info(f"Moved '{commitment.title}' to the inbox")
        return MovedToUnscheduledOutcome(task=CommitmentSummary.of(commitment))

    async def _handle_rearrange_day(self, intent: RearrangeDayIntent, now: datetime) -> Outcome:
        day = self._resolve_day(intent.date, now.date())
        scheduled = self._scheduled_on(day, self.store.fetch_all())
        commitments = [c for c in scheduled if not c.is_completed]
        completed = [c for c in scheduled if c.is_completed]
        if not commitments:
            return InfeasibleOutcome(
                reason=f"No scheduled tasks on {day.isoformat()}",
                alternative="Add tasks to the day first",
            )

        bounds = self.availability.default_bounds(day)
        anchors = self._anchors(day)
        start_cursor = bounds.start
        if day == now.date():
            start_cursor = max(bounds.start, now.replace(second=0, microsecond=0))

        context = RearrangeContext(
            bounds=bounds,
            anchors=anchors,
            free_windows=self._day_availability(day, now, True, anchors=anchors, commitments=completed).free_windows,
            start_cursor=start_cursor,
            now=now,
            detector=self.detector,
            due_soon_hours=self.settings.DUE_SOON_HOURS,
            spread_gap_minutes=self.settings.SPREAD_GAP_MINUTES,
            fixed=[c.interval() for c in completed],
        )
        strategy = get_strategy(intent.strategy)
        reason = strategy.infeasibility_reason(commitments, context)
        if reason:
            return InfeasibleOutcome(reason=reason, alternative="Move some tasks to another day")

        changes = strategy.apply(commitments, context)
        if changes:
            await self.store.save()
        logger.info(f"Rearranged {day} with {intent.strategy.value}: {len(changes)} task(s) moved")
        return RearrangedOutcome(strategy=intent.strategy.value, tasks_affected=len(changes), changes=changes)

    # ===========================================
    # Queries
    # ===========================================

    async def _handle_query_tasks(self, intent: QueryTasksIntent, now: datetime) -> Outcome:
        task_filter = intent.filter
        tasks = self.store.fetch_all()

        if task_filter.date:
            day = resolve_date_reference(task_filter.date, now.date())
            tasks = [c for c in tasks if c.scheduled_day == day]
        if task_filter.category:
            tasks = [c for c in tasks if c.category.value == task_filter.category.strip().lower()]
        if task_filter.is_completed is not None:
            tasks = [c for c in tasks if c.is_completed == task_filter.is_completed]
        if task_filter.in_inbox is not None:
            tasks = [c for c in tasks if c.is_scheduled != task_filter.in_inbox]
        if task_filter.is_overdue is not None:
            tasks = [c for c in tasks if c.is_overdue(now) == task_filter.is_overdue]

        # Scheduled first in time order, then the inbox by creation time
        tasks.sort(key=lambda c: (not c.is_scheduled, c.scheduled_start or c.created_at))
        if task_filter.limit:
            tasks = tasks[: task_filter.limit]
        return TaskListOutcome(tasks=[CommitmentSummary.of(c) for c in tasks])

    def _anchor_summaries(self, anchors: list[AnchorEvent], now: datetime) -> list[AnchorSummary]:
        return [
            AnchorSummary.from_anchor(a, self.settings.MAX_ANCHOR_BUFFER_MINUTES, now)
            for a in anchors
        ]

    async def _handle_query_anchors(self, intent: QueryAnchorsIntent, now: datetime) -> Outcome:
        day = self._resolve_day(intent.date, now.date())
        return AnchorListOutcome(anchors=self._anchor_summaries(self._anchors(day), now))

    async def _handle_query_schedule(self, intent: QueryScheduleIntent, now: datetime) -> Outcome:
        day = self._resolve_day(intent.date, now.date())
        tasks = self._scheduled_on(day, self.store.fetch_all())
        return DayScheduleOutcome(
            tasks=[CommitmentSummary.of(c) for c in tasks],
            anchors=self._anchor_summaries(self._anchors(day), now),
        )

    async def _handle_query_available_time(self, intent: QueryAvailableTimeIntent, now: datetime) -> Outcome:
        day = self._resolve_day(intent.date, now.date())
        availability = self._day_availability(day, now, intent.future_only)
        return FreeWindowsOutcome(
            windows=availability.free_windows,
            total_free_minutes=availability.total_free_minutes,
        )

    async def _handle_find_available_slot(self, intent: FindAvailableSlotIntent, now: datetime) -> Outcome:
        day = self._resolve_day(intent.date, now.date())
        anchors = self._anchors(day)
        availability = self._day_availability(day, now, intent.future_only, anchors=anchors)
        after = AnchorKind.from_label(intent.after_anchor) if intent.after_anchor else None

        slot = self.availability.find_slot(availability, intent.duration_minutes, anchors, after_anchor=after)
        if slot is None:
            longest = max((w.duration_minutes for w in availability.free_windows), default=0)
            alternative = (
                f"The longest free window is {longest} minutes"
                if longest
                else "Try another day"
            )
            return InfeasibleOutcome(
                reason=f"No free slot of {intent.duration_minutes} minutes on {day.isoformat()}",
                alternative=alternative,
            )
        return SlotFoundOutcome(slot=slot)

    async def _handle_analyze_schedule(self, intent: AnalyzeScheduleIntent, now: datetime) -> Outcome:
        day = self._resolve_day(intent.date, now.date())
        anchors = self._anchors(day)
        commitments = self._scheduled_on(day, self.store.fetch_all())
        availability = self._day_availability(day, now, True, anchors=anchors, commitments=commitments)
        analysis = self.analysis.analyze(
            availability,
            anchors,
            commitments,
            focus_area=intent.focus_area,
            suggest_habits=intent.suggest_habits,
            habit_categories=intent.habit_categories,
        )
        return ScheduleAnalysisOutcome(analysis=analysis)

    # ===========================================
    # Pass-through
    # ===========================================

    async def _handle_request_clarification(self, intent: RequestClarificationIntent, now: datetime) -> Outcome:
        return NeedsClarificationOutcome(request=intent.request)

    async def _handle_report_infeasible(self, intent: ReportInfeasibleIntent, now: datetime) -> Outcome:
        return InfeasibleOutcome(reason=intent.reason, alternative=intent.alternative)
