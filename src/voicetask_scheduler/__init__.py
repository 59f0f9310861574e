"""Time-slot suggestion and day ranking for AI-assisted task management.

The core is pure Python over plain records; the only I/O is the injected
data source.
"""

from .cache import ResultCache, get_cache_key
from .config import Settings, configure_logging, get_settings
from .data_source import DataSource, InMemoryDataSource
from .exceptions import (
    AuthenticationMissingError,
    DataFetchError,
    MalformedPreferencesError,
    PreferencesValidationError,
    SchedulerError,
    SchedulerValidationError,
)
from .models import (
    BreakTime,
    DateRange,
    RankedDay,
    RankedTask,
    ScheduledSlot,
    ScheduleSuggestion,
    SlotMetrics,
    Subtask,
    Task,
    Todo,
    TimeRange,
    UserPreferences,
    UserPreferencesUpdate,
)
from .preferences import (
    PreferenceResolver,
    calculate_productivity_score,
    is_within_break_time,
    is_within_productive_hours,
    is_within_work_hours,
)
from .ranking import DayRanker, summarize
from .schedule_map import ScheduleDay, build_schedule_map
from .scoring import score_slot
from .service import SchedulingService, create_scheduling_service
from .slot_selector import SlotSelector, fallback_suggestion

__version__ = "0.1.0"
__all__ = [
    "AuthenticationMissingError",
    "BreakTime",
    "build_schedule_map",
    "calculate_productivity_score",
    "configure_logging",
    "create_scheduling_service",
    "DataFetchError",
    "DataSource",
    "DateRange",
    "DayRanker",
    "fallback_suggestion",
    "get_cache_key",
    "get_settings",
    "InMemoryDataSource",
    "is_within_break_time",
    "is_within_productive_hours",
    "is_within_work_hours",
    "MalformedPreferencesError",
    "PreferenceResolver",
    "PreferencesValidationError",
    "RankedDay",
    "RankedTask",
    "ResultCache",
    "ScheduleDay",
    "ScheduledSlot",
    "ScheduleSuggestion",
    "SchedulerError",
    "SchedulerValidationError",
    "SchedulingService",
    "score_slot",
    "Settings",
    "SlotMetrics",
    "SlotSelector",
    "Subtask",
    "summarize",
    "Task",
    "TimeRange",
    "Todo",
    "UserPreferences",
    "UserPreferencesUpdate",
]
