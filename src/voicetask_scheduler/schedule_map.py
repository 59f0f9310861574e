"""
Per-day busy and free interval model built from tasks, todos and preferences.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo

from voicetask_scheduler.models import (
    DEFAULT_PRODUCTIVITY_SCORE,
    Task,
    Todo,
    UserPreferences,
)
from voicetask_scheduler.timeutils import at_time, minutes_between, weekday_index

DEFAULT_LOOKAHEAD_DAYS = 14
DEFAULT_TASK_START = "09:00"


@dataclass
class BusySlot:
    start: datetime
    end: datetime
    title: str
    duration_minutes: int
    productivity_score: float


@dataclass
class FreeSlot:
    start: datetime
    end: datetime
    duration_minutes: float


@dataclass
class Obstruction:
    """Busy slot or break considered by the free-time sweep."""

    start: datetime
    end: datetime
    title: str
    is_break: bool = False


@dataclass
class ScheduleDay:
    date: date
    busy_slots: list[BusySlot] = field(default_factory=list)
    total_task_duration_minutes: int = 0
    productivity_score_sum: float = 0
    todo_count: int = 0
    free_time_slots: list[FreeSlot] = field(default_factory=list)


def lookahead_dates(today: date, lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS) -> list[date]:
    return [today + timedelta(days=offset) for offset in range(lookahead_days)]


def task_busy_slot(
    task: Task, default_start: str = DEFAULT_TASK_START, tz: tzinfo | None = None
) -> BusySlot:
    start = at_time(task.scheduled_date, task.scheduled_time or default_start, tz)
    productivity = (
        task.productivity_score
        if task.productivity_score is not None
        else DEFAULT_PRODUCTIVITY_SCORE
    )
    return BusySlot(
        start=start,
        end=start + timedelta(minutes=task.duration_minutes),
        title=task.title,
        duration_minutes=task.duration_minutes,
        productivity_score=productivity,
    )


def compute_free_slots(
    day: ScheduleDay, prefs: UserPreferences, tz: tzinfo | None = None
) -> list[FreeSlot]:
    """
    Sweep the work window and return the gaps between busy slots and breaks.

    Obstructions are ordered by start time without merging; ones lying fully
    outside the window are skipped and the rest are clipped to it.
    """
    work_start = at_time(day.date, prefs.work_hours.start_time, tz)
    work_end = at_time(day.date, prefs.work_hours.end_time, tz)

    obstructions = [
        Obstruction(start=slot.start, end=slot.end, title=slot.title)
        for slot in day.busy_slots
    ]
    obstructions.extend(
        Obstruction(
            start=at_time(day.date, break_time.start_time, tz),
            end=at_time(day.date, break_time.end_time, tz),
            title=break_time.label,
            is_break=True,
        )
        for break_time in prefs.break_times
    )
    obstructions.sort(key=lambda obstruction: obstruction.start)

    free_slots: list[FreeSlot] = []
    current = work_start
    for obstruction in obstructions:
        if obstruction.end <= work_start or obstruction.start >= work_end:
            continue
        if obstruction.start > current:
            free_slots.append(
                FreeSlot(
                    start=current,
                    end=obstruction.start,
                    duration_minutes=minutes_between(current, obstruction.start),
                )
            )
        current = max(current, obstruction.end)

    if current < work_end:
        free_slots.append(
            FreeSlot(
                start=current,
                end=work_end,
                duration_minutes=minutes_between(current, work_end),
            )
        )
    return free_slots


def build_schedule_map(
    tasks: Iterable[Task],
    todos: Iterable[Todo],
    prefs: UserPreferences,
    today: date,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
    default_task_start: str = DEFAULT_TASK_START,
    tz: tzinfo | None = None,
) -> dict[date, ScheduleDay]:
    """
    Build one ScheduleDay per date from ``today`` for ``lookahead_days`` days.

    Tasks and todos dated outside the window are ignored. Todos only raise the
    day's todo count. Free time is computed for work days only; non-work days
    keep their busy slots but never get free slots. Every instant in the map
    carries ``tz``, which must match the clock it is compared against.
    """
    schedule = {day: ScheduleDay(date=day) for day in lookahead_dates(today, lookahead_days)}

    for task in tasks:
        day = schedule.get(task.scheduled_date)
        if day is None:
            continue
        slot = task_busy_slot(task, default_task_start, tz)
        day.busy_slots.append(slot)
        day.total_task_duration_minutes += slot.duration_minutes
        day.productivity_score_sum += slot.productivity_score

    for todo in todos:
        if todo.due_date is None:
            continue
        day = schedule.get(todo.due_date)
        if day is None:
            continue
        day.todo_count += 1

    for day in schedule.values():
        day.busy_slots.sort(key=lambda slot: slot.start)
        if weekday_index(day.date) not in prefs.work_days:
            continue
        day.free_time_slots = compute_free_slots(day, prefs, tz)

    return schedule
