"""Heuristic scoring of a free interval as a host for a new task."""

from datetime import datetime, timedelta

from voicetask_scheduler.models import UserPreferences
from voicetask_scheduler.preferences import calculate_productivity_score
from voicetask_scheduler.schedule_map import FreeSlot, ScheduleDay

BASE_SCORE = 50
MIN_SCORE = 0
MAX_SCORE = 100

# (minimum surplus percentage, bonus), checked in order
SURPLUS_BONUSES = ((200, 20), (150, 15), (120, 10))
SURPLUS_DEFAULT_BONUS = 5

# (day load below N minutes, bonus), checked after the empty-day case
EMPTY_DAY_BONUS = 20
DAY_LOAD_BONUSES = ((120, 15), (240, 10), (360, 5))
HEAVY_DAY_PENALTY = -10

NO_TODOS_BONUS = 10
FEW_TODOS_BONUS = 5
FEW_TODOS_LIMIT = 3
MANY_TODOS_LIMIT = 5
MANY_TODOS_PENALTY = -10

PRODUCTIVITY_WEIGHT = 2
DAYS_AHEAD_PENALTY = 2
MORNING_HOURS = range(9, 13)
MORNING_BONUS = 10


def free_time_ratio(slot_minutes: float, requested_minutes: float) -> float:
    """Free interval length as a percentage of the requested duration."""
    return slot_minutes / requested_minutes * 100


def surplus_bonus(ratio: float) -> int:
    for threshold, bonus in SURPLUS_BONUSES:
        if ratio >= threshold:
            return bonus
    return SURPLUS_DEFAULT_BONUS


def day_load_bonus(total_task_minutes: float) -> int:
    if total_task_minutes == 0:
        return EMPTY_DAY_BONUS
    for limit, bonus in DAY_LOAD_BONUSES:
        if total_task_minutes < limit:
            return bonus
    return HEAVY_DAY_PENALTY


def todo_load_bonus(todo_count: int) -> int:
    if todo_count == 0:
        return NO_TODOS_BONUS
    if todo_count < FEW_TODOS_LIMIT:
        return FEW_TODOS_BONUS
    if todo_count >= MANY_TODOS_LIMIT:
        return MANY_TODOS_PENALTY
    return 0


def days_from_now(start: datetime, now: datetime) -> int:
    return (start - now) // timedelta(days=1)


def score_slot(
    slot: FreeSlot,
    day: ScheduleDay,
    requested_minutes: float,
    prefs: UserPreferences,
    now: datetime,
) -> float:
    """
    Score ``slot`` for a task of ``requested_minutes`` on a 0-100 scale.

    Favors comfortable surplus time, light days, few todos, productive
    hours, sooner days and mornings.
    """
    score = BASE_SCORE
    score += surplus_bonus(free_time_ratio(slot.duration_minutes, requested_minutes))
    score += day_load_bonus(day.total_task_duration_minutes)
    score += todo_load_bonus(day.todo_count)
    score += PRODUCTIVITY_WEIGHT * calculate_productivity_score(slot.start, prefs)
    score -= DAYS_AHEAD_PENALTY * days_from_now(slot.start, now)
    if slot.start.hour in MORNING_HOURS:
        score += MORNING_BONUS

    return max(MIN_SCORE, min(MAX_SCORE, score))
