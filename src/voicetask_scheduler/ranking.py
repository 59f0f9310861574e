"""
Day ranking by busyness
"""

import logging
from collections import defaultdict
from collections.abc import Iterable
from datetime import date, datetime

from voicetask_scheduler.cache import MISS, ResultCache, get_cache_key
from voicetask_scheduler.data_source import DataSource
from voicetask_scheduler.exceptions import (
    DataFetchError,
    SchedulerValidationError,
    require_user_id,
)
from voicetask_scheduler.metrics import SchedulingMetrics
from voicetask_scheduler.models import DateRange, RankedDay, RankedTask, Task
from voicetask_scheduler.timeutils import coerce_date, iter_days

logger = logging.getLogger(__name__)

DIFFICULTY_WEIGHT = 2
TASK_COUNT_WEIGHT = 0.5
TASK_COUNT_CAP = 10


def format_day(day: date) -> str:
    """Long display form, e.g. ``Tuesday, June 3``."""
    return f"{day:%A}, {day:%B} {day.day}"


def busyness_score(
    total_duration_minutes: float, average_difficulty: float, task_count: int
) -> float:
    score = (
        total_duration_minutes / 60
        + average_difficulty * DIFFICULTY_WEIGHT
        + min(TASK_COUNT_CAP, task_count * TASK_COUNT_WEIGHT)
    )
    return round(score, 1)


def rank_day(day: date, tasks: list[Task]) -> RankedDay:
    """Summarize one calendar day; an empty day scores 0."""
    difficulties = [task.difficulty for task in tasks]
    total_duration = sum(task.duration_minutes for task in tasks)
    average_difficulty = sum(difficulties) / len(difficulties) if difficulties else 0
    max_difficulty = max(difficulties, default=0)

    return RankedDay(
        date=day,
        formatted_date=format_day(day),
        task_count=len(tasks),
        total_duration_minutes=total_duration,
        average_difficulty=average_difficulty,
        max_difficulty=max_difficulty,
        busyness_score=busyness_score(total_duration, average_difficulty, len(tasks)),
        tasks=[
            RankedTask(
                id=task.id,
                title=task.title,
                duration_minutes=task.duration_minutes,
                difficulty=task.difficulty,
                time=task.scheduled_time,
            )
            for task in tasks
        ],
    )


def rank_tasks_by_day(tasks: Iterable[Task], start: date, end: date) -> list[RankedDay]:
    """Rank every date in ``[start, end]`` by busyness, busiest first."""
    grouped: dict[date, list[Task]] = defaultdict(list)
    for task in tasks:
        if start <= task.scheduled_date <= end:
            grouped[task.scheduled_date].append(task)

    ranked = [rank_day(day, grouped.get(day, [])) for day in iter_days(start, end)]
    ranked.sort(key=lambda ranked_day: ranked_day.busyness_score, reverse=True)
    return ranked


def summarize(ranked_days: list[RankedDay], least_busy: bool = False) -> str:
    """One-paragraph answer to "when am I busiest / least busy"."""
    if not ranked_days:
        return "There are no days in the requested range."

    day = ranked_days[-1] if least_busy else ranked_days[0]
    label = "least busy" if least_busy else "busiest"
    summary = (
        f"You're {label} on {day.formatted_date}. You have {day.task_count} tasks "
        f"scheduled that day with a total duration of {day.total_duration_minutes} minutes."
    )
    if least_busy or not day.tasks:
        return summary

    lines = [
        f"- {task.title} ({task.duration_minutes} minutes, difficulty: {task.difficulty})"
        for task in day.tasks
    ]
    return summary + " Here are your tasks for that day:\n" + "\n".join(lines)


class DayRanker:
    """Ranks days in a date range by busyness"""

    def __init__(
        self,
        data_source: DataSource,
        cache: ResultCache,
        metrics: SchedulingMetrics | None = None,
    ):
        self.data_source = data_source
        self.cache = cache
        self.metrics = metrics or SchedulingMetrics()

    async def rank_days(
        self,
        start: date | datetime | str,
        end: date | datetime | str,
        user_id: str | None,
    ) -> list[RankedDay]:
        """
        Rank days from ``start`` through ``end`` inclusive, busiest first

        Raises:
            AuthenticationMissingError: no user id was supplied
            SchedulerValidationError: the range is malformed
            DataFetchError: the task collaborator failed
        """
        user_id = require_user_id(user_id)
        try:
            start_date = coerce_date(start)
            end_date = coerce_date(end)
        except ValueError as e:
            raise SchedulerValidationError(str(e), "date_range") from e
        if start_date > end_date:
            raise SchedulerValidationError(
                f"Start date {start_date} is after end date {end_date}", "date_range"
            )

        cache_key = get_cache_key("ranked_days", user_id, start_date, end_date)
        cached = self.cache.get(cache_key)
        if cached is not MISS:
            self.metrics.track_cache(self.cache.name, hit=True)
            return cached
        self.metrics.track_cache(self.cache.name, hit=False)

        try:
            tasks = await self.data_source.fetch_tasks(
                user_id, DateRange(start=start_date, end=end_date)
            )
        except Exception as e:
            logger.error(f"Error ranking days for user {user_id}: {e}")
            raise DataFetchError("tasks", str(e)) from e

        with self.metrics.track_operation("rank_days"):
            ranked = rank_tasks_by_day(tasks, start_date, end_date)

        self.cache.set(cache_key, ranked)
        return ranked

    async def busiest_day(self, start, end, user_id: str | None) -> RankedDay | None:
        ranked = await self.rank_days(start, end, user_id)
        return ranked[0] if ranked else None

    async def least_busy_day(self, start, end, user_id: str | None) -> RankedDay | None:
        """Last day of the ranking, which may still carry tasks."""
        ranked = await self.rank_days(start, end, user_id)
        return ranked[-1] if ranked else None
