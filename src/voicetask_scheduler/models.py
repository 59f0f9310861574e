"""
Data models for task scheduling using Pydantic.
"""

import datetime as dt
import json
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from voicetask_scheduler.timeutils import HHMM_PATTERN, coerce_date, format_hhmm, parse_hhmm

DEFAULT_TASK_DURATION = 60
DEFAULT_DIFFICULTY = 3
DEFAULT_PRODUCTIVITY_SCORE = 5


def _normalize_hhmm(value: Any) -> Any:
    """Accept ``HH:MM:SS`` and ``time`` values where ``HH:MM`` is expected."""
    if isinstance(value, dt.time):
        return format_hhmm(value)
    if isinstance(value, str) and len(value) == 8 and value[5] == ":":
        return value[:5]
    return value


def _date_part(value: Any) -> Any:
    if value is None or value == "":
        return None
    if isinstance(value, (str, dt.datetime)):
        return coerce_date(value)
    return value


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar range handed to fetch collaborators."""

    start: dt.date
    end: dt.date

    def __contains__(self, day: dt.date) -> bool:
        return self.start <= day <= self.end


class SchedulerModel(BaseModel):
    """Base model accepting both camelCase and snake_case field names."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


# ============================================
# INPUT RECORDS
# ============================================


class Task(SchedulerModel):
    """Task already extracted and stored for the user."""

    id: str
    title: str = ""
    duration_minutes: int = Field(DEFAULT_TASK_DURATION, gt=0)
    scheduled_date: dt.date
    scheduled_time: str | None = Field(None, pattern=HHMM_PATTERN)
    difficulty: int = Field(DEFAULT_DIFFICULTY, ge=1, le=5)
    productivity_score: float | None = None
    completed: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return str(v)

    @field_validator("duration_minutes", mode="before")
    @classmethod
    def default_duration(cls, v: Any) -> Any:
        return v or DEFAULT_TASK_DURATION

    @field_validator("difficulty", mode="before")
    @classmethod
    def default_difficulty(cls, v: Any) -> Any:
        return DEFAULT_DIFFICULTY if v is None else v

    @field_validator("scheduled_date", mode="before")
    @classmethod
    def scheduled_date_part(cls, v: Any) -> Any:
        return _date_part(v)

    @field_validator("scheduled_time", mode="before")
    @classmethod
    def normalize_time(cls, v: Any) -> Any:
        if v == "":
            return None
        return _normalize_hhmm(v)


class Subtask(SchedulerModel):
    id: str
    completed: bool = False
    completed_at: dt.datetime | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return str(v)


class Todo(SchedulerModel):
    """Todo item; only its due date and completion state matter for scheduling."""

    id: str
    title: str = ""
    due_date: dt.date | None = None
    completed: bool = False
    subtasks: list[Subtask] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return str(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def due_date_part(cls, v: Any) -> Any:
        return _date_part(v)

    @property
    def completed_subtask_count(self) -> int:
        return sum(1 for subtask in self.subtasks if subtask.completed)


# ============================================
# USER PREFERENCES
# ============================================


class TimeRange(SchedulerModel):
    start: str = Field(..., pattern=HHMM_PATTERN)
    end: str = Field(..., pattern=HHMM_PATTERN)

    @field_validator("start", "end", mode="before")
    @classmethod
    def normalize_bounds(cls, v: Any) -> Any:
        return _normalize_hhmm(v)

    @property
    def start_time(self) -> dt.time:
        return parse_hhmm(self.start)

    @property
    def end_time(self) -> dt.time:
        return parse_hhmm(self.end)


class BreakTime(TimeRange):
    label: str = "Break"

    @field_validator("label", mode="before")
    @classmethod
    def default_label(cls, v: Any) -> Any:
        return v or "Break"


class TaskPreferences(SchedulerModel):
    preferred_duration: int = Field(60, gt=0)
    min_break_between_tasks: int = Field(15, ge=0)
    max_consecutive_tasks: int = Field(3, ge=1)


class NotificationPreferences(SchedulerModel):
    model_config = ConfigDict(extra="allow")

    enabled: bool = True
    reminder_time: int = Field(15, ge=0, description="Minutes before a task")


class UserPreferences(SchedulerModel):
    """Validated working-week preferences for one user."""

    work_hours: TimeRange = Field(
        default_factory=lambda: TimeRange(start="09:00", end="17:00")
    )
    work_days: list[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5])
    productive_hours: TimeRange = Field(
        default_factory=lambda: TimeRange(start="10:00", end="14:00")
    )
    break_times: list[BreakTime] = Field(
        default_factory=lambda: [BreakTime(start="12:00", end="13:00", label="Lunch")]
    )
    task_preferences: TaskPreferences = Field(default_factory=TaskPreferences)
    notifications: NotificationPreferences = Field(
        default_factory=NotificationPreferences
    )

    @field_validator(
        "work_hours",
        "work_days",
        "productive_hours",
        "break_times",
        "task_preferences",
        "notifications",
        mode="before",
    )
    @classmethod
    def decode_json_column(cls, v: Any) -> Any:
        # Row stores hand nested fields back as JSON text
        if isinstance(v, str):
            return json.loads(v)
        return v

    @field_validator("work_days")
    @classmethod
    def validate_work_days(cls, v: list[int]) -> list[int]:
        for day in v:
            if not 0 <= day <= 6:
                raise ValueError(f"Weekday index must be between 0 and 6: {day}")
        return sorted(set(v))

    @model_validator(mode="after")
    def work_hours_ordered(self) -> "UserPreferences":
        if self.work_hours.start_time >= self.work_hours.end_time:
            raise ValueError("Work hours must start before they end")
        return self

    @classmethod
    def defaults(cls) -> "UserPreferences":
        return cls()


class UserPreferencesUpdate(SchedulerModel):
    """Partial preference update; unset fields keep their current value."""

    work_hours: TimeRange | None = None
    work_days: list[int] | None = None
    productive_hours: TimeRange | None = None
    break_times: list[BreakTime] | None = None
    task_preferences: TaskPreferences | None = None
    notifications: NotificationPreferences | None = None


# ============================================
# RESULTS
# ============================================


class SlotMetrics(SchedulerModel):
    free_time_percentage: float
    todo_count: int
    productivity_score: float


class ScheduledSlot(SchedulerModel):
    """Suggested placement for the new task."""

    date: dt.date
    start_time: dt.datetime
    end_time: dt.datetime
    score: float = Field(..., ge=0, le=100)
    metrics: SlotMetrics


class ScheduleSuggestion(SchedulerModel):
    best_slot: ScheduledSlot | None = None
    alternatives: list[ScheduledSlot] = Field(default_factory=list)
    has_conflicts: bool = False
    is_fallback: bool = False


class RankedTask(SchedulerModel):
    id: str
    title: str
    duration_minutes: int
    difficulty: int
    time: str | None = None


class RankedDay(SchedulerModel):
    """Busyness summary for one calendar day."""

    date: dt.date
    formatted_date: str
    task_count: int
    total_duration_minutes: int
    average_difficulty: float
    max_difficulty: int
    busyness_score: float
    tasks: list[RankedTask] = Field(default_factory=list)
