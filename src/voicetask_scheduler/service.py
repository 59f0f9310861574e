"""
Scheduling service facade

Wires the preference resolver, slot selector and day ranker with explicit
collaborators instead of a global registry.
"""

import logging
import time
from collections.abc import Callable, Mapping
from datetime import date, datetime
from typing import Any

from voicetask_scheduler.cache import ResultCache
from voicetask_scheduler.config import Settings, get_settings
from voicetask_scheduler.data_source import DataSource
from voicetask_scheduler.metrics import SchedulingMetrics
from voicetask_scheduler.models import (
    RankedDay,
    ScheduleSuggestion,
    UserPreferences,
    UserPreferencesUpdate,
)
from voicetask_scheduler.preferences import PreferenceResolver
from voicetask_scheduler.ranking import DayRanker, summarize
from voicetask_scheduler.slot_selector import SlotSelector
from voicetask_scheduler.timeutils import Clock, SystemClock

logger = logging.getLogger(__name__)

DateLike = date | datetime | str


class SchedulingService:
    """Entry point used by conversation and todo handlers"""

    def __init__(
        self,
        preference_resolver: PreferenceResolver,
        slot_selector: SlotSelector,
        day_ranker: DayRanker,
        metrics: SchedulingMetrics,
    ):
        self.preference_resolver = preference_resolver
        self.slot_selector = slot_selector
        self.day_ranker = day_ranker
        self.metrics = metrics

    async def find_best_slot(
        self, duration_minutes: int, user_id: str | None
    ) -> ScheduleSuggestion:
        return await self.slot_selector.find_best_slot(duration_minutes, user_id)

    async def rank_days(
        self, start: DateLike, end: DateLike, user_id: str | None
    ) -> list[RankedDay]:
        return await self.day_ranker.rank_days(start, end, user_id)

    async def busiest_day(
        self, start: DateLike, end: DateLike, user_id: str | None
    ) -> RankedDay | None:
        return await self.day_ranker.busiest_day(start, end, user_id)

    async def least_busy_day(
        self, start: DateLike, end: DateLike, user_id: str | None
    ) -> RankedDay | None:
        return await self.day_ranker.least_busy_day(start, end, user_id)

    async def summarize_days(
        self,
        start: DateLike,
        end: DateLike,
        user_id: str | None,
        least_busy: bool = False,
    ) -> str:
        """Answer "when am I busiest" (or least busy) for the range in one paragraph."""
        ranked = await self.day_ranker.rank_days(start, end, user_id)
        return summarize(ranked, least_busy=least_busy)

    async def get_preferences(self, user_id: str | None) -> UserPreferences:
        return await self.preference_resolver.get_preferences(user_id)

    async def update_preferences(
        self,
        user_id: str | None,
        partial: UserPreferencesUpdate | Mapping[str, Any],
    ) -> UserPreferences:
        preferences = await self.preference_resolver.update_preferences(user_id, partial)
        # Suggestions computed with the old preferences are stale
        removed = self.slot_selector.cache.invalidate(f"best_slot:{user_id}:")
        logger.debug(f"Dropped {removed} cached suggestions for user {user_id}")
        return preferences

    def metrics_snapshot(self) -> dict[str, Any]:
        snapshot = self.metrics.snapshot()
        snapshot["caches"] = {
            cache.name: cache.stats()
            for cache in (
                self.preference_resolver.cache,
                self.slot_selector.cache,
                self.day_ranker.cache,
            )
        }
        return snapshot


def create_scheduling_service(
    data_source: DataSource,
    settings: Settings | None = None,
    clock: Clock | None = None,
    timer: Callable[[], float] = time.monotonic,
) -> SchedulingService:
    """
    Build a SchedulingService with one cache per concern

    Args:
        data_source: Collaborator supplying tasks, todos and preferences
        settings: Scheduler settings (defaults to environment settings)
        clock: Source of the current local time
        timer: Monotonic time source driving cache expiry
    """
    settings = settings or get_settings()
    clock = clock or SystemClock()
    metrics = SchedulingMetrics()

    preferences_cache = ResultCache(
        "preferences",
        ttl=settings.preferences_cache_ttl_seconds,
        maxsize=settings.cache_maxsize,
        timer=timer,
    )
    schedule_cache = ResultCache(
        "schedule",
        ttl=settings.schedule_cache_ttl_seconds,
        maxsize=settings.cache_maxsize,
        timer=timer,
    )
    ranking_cache = ResultCache(
        "ranking",
        ttl=settings.ranking_cache_ttl_seconds,
        maxsize=settings.cache_maxsize,
        timer=timer,
    )

    preference_resolver = PreferenceResolver(data_source, preferences_cache, metrics)
    slot_selector = SlotSelector(
        data_source,
        preference_resolver,
        schedule_cache,
        clock=clock,
        settings=settings,
        metrics=metrics,
    )
    day_ranker = DayRanker(data_source, ranking_cache, metrics)

    logger.info("Scheduling service initialized")
    return SchedulingService(preference_resolver, slot_selector, day_ranker, metrics)
