"""
User preference resolution and time-of-day predicates
"""

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from voicetask_scheduler.cache import MISS, ResultCache, get_cache_key
from voicetask_scheduler.data_source import DataSource
from voicetask_scheduler.exceptions import (
    DataFetchError,
    MalformedPreferencesError,
    PreferencesValidationError,
    require_user_id,
)
from voicetask_scheduler.metrics import SchedulingMetrics
from voicetask_scheduler.models import (
    TimeRange,
    UserPreferences,
    UserPreferencesUpdate,
)
from voicetask_scheduler.timeutils import weekday_index

logger = logging.getLogger(__name__)

WORK_HOURS_BASE_SCORE = 5
PRODUCTIVE_HOURS_BONUS = 3
BREAK_SCORE = 2
MAX_PRODUCTIVITY_SCORE = 10


def _bounds(instant: datetime, time_range: TimeRange) -> tuple[datetime, datetime]:
    start = datetime.combine(instant.date(), time_range.start_time, tzinfo=instant.tzinfo)
    end = datetime.combine(instant.date(), time_range.end_time, tzinfo=instant.tzinfo)
    return start, end


def _within(instant: datetime, time_range: TimeRange) -> bool:
    start, end = _bounds(instant, time_range)
    return start <= instant <= end


def is_within_work_hours(instant: datetime, prefs: UserPreferences) -> bool:
    """True on a work day between work start and end, bounds included."""
    if weekday_index(instant.date()) not in prefs.work_days:
        return False
    return _within(instant, prefs.work_hours)


def is_within_break_time(instant: datetime, prefs: UserPreferences) -> bool:
    return any(_within(instant, break_time) for break_time in prefs.break_times)


def is_within_productive_hours(instant: datetime, prefs: UserPreferences) -> bool:
    return _within(instant, prefs.productive_hours)


def calculate_productivity_score(instant: datetime, prefs: UserPreferences) -> int:
    """
    Productivity score for an instant on a 0-10 scale.

    0 outside work hours, 2 during a break, otherwise 5 plus 3 inside the
    productive window.
    """
    if not is_within_work_hours(instant, prefs):
        return 0

    if is_within_break_time(instant, prefs):
        return BREAK_SCORE

    score = WORK_HOURS_BASE_SCORE
    if is_within_productive_hours(instant, prefs):
        score += PRODUCTIVE_HOURS_BONUS

    return min(score, MAX_PRODUCTIVITY_SCORE)


def parse_preferences(stored: UserPreferences | Mapping[str, Any]) -> UserPreferences:
    """Validate a stored preference record at the boundary."""
    if isinstance(stored, UserPreferences):
        return stored
    try:
        return UserPreferences.model_validate(stored)
    except ValidationError as e:
        raise MalformedPreferencesError(str(e)) from e


def _first_error_field(error: ValidationError) -> str | None:
    errors = error.errors()
    if not errors or not errors[0]["loc"]:
        return None
    return ".".join(str(loc) for loc in errors[0]["loc"])


class PreferenceResolver:
    """Supplies validated preferences, creating defaults on first access"""

    is_within_work_hours = staticmethod(is_within_work_hours)
    is_within_break_time = staticmethod(is_within_break_time)
    is_within_productive_hours = staticmethod(is_within_productive_hours)
    calculate_productivity_score = staticmethod(calculate_productivity_score)

    def __init__(
        self,
        data_source: DataSource,
        cache: ResultCache,
        metrics: SchedulingMetrics | None = None,
    ):
        self.data_source = data_source
        self.cache = cache
        self.metrics = metrics or SchedulingMetrics()

    @staticmethod
    def _cache_key(user_id: str) -> str:
        return get_cache_key("preferences", user_id)

    async def get_preferences(self, user_id: str | None) -> UserPreferences:
        """
        Get user preferences, with fallback to defaults

        Raises:
            AuthenticationMissingError: no user id was supplied
            DataFetchError: the preference store failed
        """
        user_id = require_user_id(user_id)
        cache_key = self._cache_key(user_id)

        cached = self.cache.get(cache_key)
        if cached is not MISS:
            self.metrics.track_cache(self.cache.name, hit=True)
            return cached
        self.metrics.track_cache(self.cache.name, hit=False)

        self.metrics.track_preferences("fetches")
        logger.debug(f"Fetching preferences for user {user_id}")
        try:
            stored = await self.data_source.fetch_preferences(user_id)
        except Exception as e:
            self.metrics.track_preferences("errors")
            logger.error(f"Failed to fetch preferences for user {user_id}: {e}")
            raise DataFetchError("preferences", str(e)) from e

        if stored is None:
            return await self._create_default_preferences(user_id)

        try:
            preferences = parse_preferences(stored)
        except MalformedPreferencesError as e:
            self.metrics.track_preferences("errors")
            logger.warning(f"Using default preferences for user {user_id}: {e.message}")
            return UserPreferences.defaults()

        self.cache.set(cache_key, preferences)
        return preferences

    async def _create_default_preferences(self, user_id: str) -> UserPreferences:
        defaults = UserPreferences.defaults()
        try:
            persisted = await self.data_source.persist_preferences(user_id, defaults)
        except Exception as e:
            self.metrics.track_preferences("errors")
            logger.error(f"Failed to persist default preferences for user {user_id}: {e}")
            return defaults

        preferences = self._read_back(user_id, persisted, defaults)
        logger.info(f"Created default preferences for user {user_id}")
        self.cache.set(self._cache_key(user_id), preferences)
        return preferences

    async def update_preferences(
        self,
        user_id: str | None,
        partial: UserPreferencesUpdate | Mapping[str, Any],
    ) -> UserPreferences:
        """
        Merge a partial update into the user's preferences and persist it

        Top-level fields present in ``partial`` replace the current values.

        Raises:
            PreferencesValidationError: the update or the merged record is invalid
            DataFetchError: the preference store failed
        """
        user_id = require_user_id(user_id)

        if not isinstance(partial, UserPreferencesUpdate):
            try:
                partial = UserPreferencesUpdate.model_validate(partial)
            except ValidationError as e:
                raise PreferencesValidationError(str(e), _first_error_field(e)) from e

        current = await self.get_preferences(user_id)
        merged = current.model_dump()
        merged.update(partial.model_dump(exclude_unset=True, exclude_none=True))

        try:
            preferences = UserPreferences.model_validate(merged)
        except ValidationError as e:
            raise PreferencesValidationError(str(e), _first_error_field(e)) from e

        try:
            persisted = await self.data_source.persist_preferences(user_id, preferences)
        except Exception as e:
            self.metrics.track_preferences("errors")
            logger.error(f"Failed to persist preferences for user {user_id}: {e}")
            raise DataFetchError("preferences", str(e)) from e

        preferences = self._read_back(user_id, persisted, preferences)

        self.metrics.track_preferences("updates")
        self.cache.set(self._cache_key(user_id), preferences)
        logger.info(f"Updated preferences for user {user_id}")
        return preferences

    @staticmethod
    def _read_back(
        user_id: str,
        persisted: UserPreferences | Mapping[str, Any] | None,
        written: UserPreferences,
    ) -> UserPreferences:
        """Record echoed by the store, or the one just written if the echo is unusable."""
        if persisted is None:
            return written
        try:
            return parse_preferences(persisted)
        except MalformedPreferencesError as e:
            logger.warning(
                f"Store returned malformed preferences for user {user_id}, "
                f"keeping the written record: {e.message}"
            )
            return written

    def invalidate(self, user_id: str) -> None:
        self.cache.delete(self._cache_key(user_id))
