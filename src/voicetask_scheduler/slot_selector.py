"""
Best time slot search over the lookahead window
"""

import asyncio
import logging
import time as time_module
from datetime import date, datetime, time, timedelta

from voicetask_scheduler.cache import MISS, ResultCache, get_cache_key
from voicetask_scheduler.config import Settings, get_settings
from voicetask_scheduler.data_source import DataSource
from voicetask_scheduler.exceptions import (
    DataFetchError,
    SchedulerValidationError,
    require_user_id,
)
from voicetask_scheduler.metrics import SchedulingMetrics
from voicetask_scheduler.models import (
    DEFAULT_PRODUCTIVITY_SCORE,
    DateRange,
    ScheduledSlot,
    ScheduleSuggestion,
    SlotMetrics,
    Task,
    Todo,
    UserPreferences,
)
from voicetask_scheduler.preferences import (
    PreferenceResolver,
    calculate_productivity_score,
)
from voicetask_scheduler.schedule_map import ScheduleDay, build_schedule_map
from voicetask_scheduler.scoring import free_time_ratio, score_slot
from voicetask_scheduler.timeutils import Clock, SystemClock, weekday_index

logger = logging.getLogger(__name__)


def fallback_suggestion(
    duration_minutes: int,
    now: datetime,
    *,
    hour: int = 10,
    score: float = 50,
    has_conflicts: bool = False,
) -> ScheduleSuggestion:
    """Deterministic suggestion: tomorrow at ``hour``:00 for the requested duration."""
    tomorrow = now.date() + timedelta(days=1)
    start = datetime.combine(tomorrow, time(hour, 0), tzinfo=now.tzinfo)
    return ScheduleSuggestion(
        best_slot=ScheduledSlot(
            date=tomorrow,
            start_time=start,
            end_time=start + timedelta(minutes=duration_minutes),
            score=score,
            metrics=SlotMetrics(
                free_time_percentage=100,
                todo_count=0,
                productivity_score=DEFAULT_PRODUCTIVITY_SCORE,
            ),
        ),
        alternatives=[],
        has_conflicts=has_conflicts,
        is_fallback=True,
    )


class SlotSelector:
    """Finds and ranks feasible slots for a task of a given duration"""

    def __init__(
        self,
        data_source: DataSource,
        preference_resolver: PreferenceResolver,
        cache: ResultCache,
        clock: Clock | None = None,
        settings: Settings | None = None,
        metrics: SchedulingMetrics | None = None,
    ):
        self.data_source = data_source
        self.preference_resolver = preference_resolver
        self.cache = cache
        self.clock = clock or SystemClock()
        self.settings = settings or get_settings()
        self.metrics = metrics or SchedulingMetrics()

    def fallback_suggestion(
        self, duration_minutes: int, has_conflicts: bool = False
    ) -> ScheduleSuggestion:
        return fallback_suggestion(
            duration_minutes,
            self.clock.now(),
            hour=self.settings.fallback_hour,
            score=self.settings.fallback_score,
            has_conflicts=has_conflicts,
        )

    def lookahead_range(self, today: date) -> DateRange:
        return DateRange(
            start=today, end=today + timedelta(days=self.settings.lookahead_days - 1)
        )

    async def _fetch_window(
        self, user_id: str, date_range: DateRange
    ) -> tuple[list[Task], list[Todo]]:
        # Both reads are independent; wait for both before building the map
        results = await asyncio.gather(
            self.data_source.fetch_tasks(user_id, date_range),
            self.data_source.fetch_todos(user_id, date_range),
            return_exceptions=True,
        )
        for source, result in zip(("tasks", "todos"), results, strict=True):
            if isinstance(result, Exception):
                logger.error(f"Failed to fetch {source} for user {user_id}: {result}")
                raise DataFetchError(source, str(result)) from result
            if isinstance(result, BaseException):
                raise result
        tasks, todos = results
        return list(tasks), list(todos)

    def select(
        self,
        schedule: dict[date, ScheduleDay],
        duration_minutes: int,
        prefs: UserPreferences,
        now: datetime,
    ) -> ScheduleSuggestion:
        """Score every feasible free interval and keep the best plus alternatives."""
        candidates: list[ScheduledSlot] = []

        for day in schedule.values():
            if day.date < now.date():
                continue
            if weekday_index(day.date) not in prefs.work_days:
                continue

            for free_slot in day.free_time_slots:
                if free_slot.duration_minutes < duration_minutes:
                    continue
                if free_slot.end <= now:
                    continue

                candidates.append(
                    ScheduledSlot(
                        date=day.date,
                        start_time=free_slot.start,
                        end_time=free_slot.start + timedelta(minutes=duration_minutes),
                        score=score_slot(free_slot, day, duration_minutes, prefs, now),
                        metrics=SlotMetrics(
                            free_time_percentage=free_time_ratio(
                                free_slot.duration_minutes, duration_minutes
                            ),
                            todo_count=day.todo_count,
                            productivity_score=calculate_productivity_score(
                                free_slot.start, prefs
                            ),
                        ),
                    )
                )

        if not candidates:
            logger.info(f"No feasible slot for a {duration_minutes}-minute task")
            return self.fallback_suggestion(duration_minutes, has_conflicts=True)

        candidates.sort(key=lambda candidate: candidate.score, reverse=True)
        return ScheduleSuggestion(
            best_slot=candidates[0],
            alternatives=candidates[1 : 1 + self.settings.max_alternatives],
            has_conflicts=False,
            is_fallback=False,
        )

    async def find_best_slot(
        self, duration_minutes: int, user_id: str | None
    ) -> ScheduleSuggestion:
        """
        Suggest the best slot for a new task of ``duration_minutes``

        Never fails for data or computation errors: those produce the
        deterministic fallback suggestion.

        Raises:
            AuthenticationMissingError: no user id was supplied
            SchedulerValidationError: the duration is not positive
        """
        user_id = require_user_id(user_id)
        if duration_minutes <= 0:
            raise SchedulerValidationError(
                "Duration must be a positive number of minutes", "duration_minutes"
            )

        cache_key = get_cache_key("best_slot", user_id, duration_minutes)
        cached = self.cache.get(cache_key)
        if cached is not MISS:
            self.metrics.track_cache(self.cache.name, hit=True)
            return cached
        self.metrics.track_cache(self.cache.name, hit=False)

        started = time_module.perf_counter()
        try:
            with self.metrics.track_operation("find_best_slot"):
                prefs = await self.preference_resolver.get_preferences(user_id)
                now = self.clock.now()
                tasks, todos = await self._fetch_window(
                    user_id, self.lookahead_range(now.date())
                )
                schedule = build_schedule_map(
                    tasks,
                    todos,
                    prefs,
                    now.date(),
                    lookahead_days=self.settings.lookahead_days,
                    default_task_start=self.settings.default_task_start,
                    tz=now.tzinfo,
                )
                suggestion = self.select(schedule, duration_minutes, prefs, now)
        except Exception as e:
            elapsed_ms = (time_module.perf_counter() - started) * 1000
            logger.error(f"Error finding optimal schedule for user {user_id}: {e}")
            self.metrics.track_scheduling("error", elapsed_ms)
            return self.fallback_suggestion(duration_minutes)

        elapsed_ms = (time_module.perf_counter() - started) * 1000
        self.metrics.track_scheduling(
            "fallback" if suggestion.is_fallback else "success", elapsed_ms
        )
        self.cache.set(cache_key, suggestion)
        return suggestion
