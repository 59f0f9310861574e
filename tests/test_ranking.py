"""Tests for busyness ranking of days"""

from datetime import date, datetime
from unittest.mock import AsyncMock

import pytest
from conftest import SUNDAY, TUESDAY

from voicetask_scheduler.cache import ResultCache
from voicetask_scheduler.exceptions import (
    AuthenticationMissingError,
    DataFetchError,
    SchedulerValidationError,
)
from voicetask_scheduler.models import Task
from voicetask_scheduler.ranking import (
    DayRanker,
    busyness_score,
    format_day,
    rank_day,
    rank_tasks_by_day,
    summarize,
)

SATURDAY = date(2025, 6, 7)


def tuesday_tasks() -> list[Task]:
    return [
        Task(id="t1", title="Report", scheduled_date=TUESDAY, duration_minutes=60, difficulty=3),
        Task(id="t2", title="Review", scheduled_date=TUESDAY, duration_minutes=90, difficulty=4),
        Task(id="t3", title="Launch", scheduled_date=TUESDAY, duration_minutes=90, difficulty=5),
    ]


@pytest.fixture
def ranker(data_source):
    return DayRanker(data_source, ResultCache("ranking", ttl=300))


class TestRankTasksByDay:
    def test_busiest_day_first_and_empty_days_included(self):
        ranked = rank_tasks_by_day(tuesday_tasks(), SUNDAY, SATURDAY)

        assert len(ranked) == 7
        busiest = ranked[0]
        assert busiest.date == TUESDAY
        assert busiest.formatted_date == "Tuesday, June 3"
        assert busiest.task_count == 3
        assert busiest.total_duration_minutes == 240
        assert busiest.average_difficulty == 4
        assert busiest.max_difficulty == 5
        assert busiest.busyness_score == 13.5
        assert [task.title for task in busiest.tasks] == ["Report", "Review", "Launch"]

        for day in ranked[1:]:
            assert day.busyness_score == 0
            assert day.task_count == 0
            assert day.average_difficulty == 0
            assert day.max_difficulty == 0

    def test_ties_keep_date_order(self):
        ranked = rank_tasks_by_day(tuesday_tasks(), SUNDAY, SATURDAY)

        assert [day.date.day for day in ranked[1:]] == [1, 2, 4, 5, 6, 7]

    def test_tasks_outside_range_are_ignored(self):
        tasks = tuesday_tasks() + [Task(id="t9", scheduled_date=date(2025, 6, 9))]

        ranked = rank_tasks_by_day(tasks, SUNDAY, SATURDAY)

        assert sum(day.task_count for day in ranked) == 3

    def test_single_day_range(self):
        ranked = rank_tasks_by_day([], TUESDAY, TUESDAY)
        assert [day.date for day in ranked] == [TUESDAY]


class TestBusynessScore:
    def test_task_count_component_is_capped(self):
        tasks = [
            Task(id=str(i), scheduled_date=TUESDAY, duration_minutes=1, difficulty=1)
            for i in range(25)
        ]

        assert rank_day(TUESDAY, tasks).busyness_score == 12.4

    def test_missing_difficulty_counts_as_three(self):
        task = Task(id="t1", scheduled_date=TUESDAY, duration_minutes=60, difficulty=None)

        day = rank_day(TUESDAY, [task])

        assert day.average_difficulty == 3
        assert day.busyness_score == busyness_score(60, 3, 1) == 7.5

    def test_format_day(self):
        assert format_day(TUESDAY) == "Tuesday, June 3"
        assert format_day(date(2025, 12, 25)) == "Thursday, December 25"


class TestSummarize:
    def test_busiest_lists_tasks(self):
        ranked = rank_tasks_by_day(tuesday_tasks(), SUNDAY, SATURDAY)

        text = summarize(ranked)

        assert text.startswith("You're busiest on Tuesday, June 3.")
        assert "3 tasks" in text
        assert "240 minutes" in text
        assert "- Launch (90 minutes, difficulty: 5)" in text

    def test_least_busy(self):
        ranked = rank_tasks_by_day(tuesday_tasks(), SUNDAY, SATURDAY)

        text = summarize(ranked, least_busy=True)

        assert text == (
            "You're least busy on Saturday, June 7. You have 0 tasks scheduled "
            "that day with a total duration of 0 minutes."
        )

    def test_empty(self):
        assert summarize([]) == "There are no days in the requested range."


class TestDayRanker:
    @pytest.mark.asyncio
    async def test_busiest_and_least_busy(self, ranker, data_source):
        for task in tuesday_tasks():
            data_source.add_task("u1", task)

        busiest = await ranker.busiest_day(SUNDAY, SATURDAY, "u1")
        least = await ranker.least_busy_day(SUNDAY, SATURDAY, "u1")

        assert busiest.date == TUESDAY
        assert least.date == SATURDAY

    @pytest.mark.asyncio
    async def test_accepts_iso_strings_and_datetimes(self, ranker):
        ranked = await ranker.rank_days("2025-06-01T00:00:00Z", datetime(2025, 6, 3, 18), "u1")

        assert [day.date for day in ranked] == [SUNDAY, date(2025, 6, 2), TUESDAY]

    @pytest.mark.asyncio
    async def test_results_are_cached(self, ranker, data_source):
        first = await ranker.rank_days(SUNDAY, SATURDAY, "u1")
        second = await ranker.rank_days(SUNDAY, SATURDAY, "u1")

        assert second == first
        assert data_source.calls["fetch_tasks"] == 1

    @pytest.mark.asyncio
    async def test_mutating_result_leaves_cache_intact(self, ranker, data_source):
        data_source.add_task(
            "u1", Task(id="t1", scheduled_date=TUESDAY, duration_minutes=240)
        )

        first = await ranker.rank_days(SUNDAY, SATURDAY, "u1")
        first.reverse()
        first[-1].tasks.clear()

        second = await ranker.rank_days(SUNDAY, SATURDAY, "u1")

        assert second[0].date == TUESDAY
        assert len(second[0].tasks) == 1
        assert data_source.calls["fetch_tasks"] == 1

    @pytest.mark.asyncio
    async def test_start_after_end_rejected(self, ranker):
        with pytest.raises(SchedulerValidationError) as exc_info:
            await ranker.rank_days(SATURDAY, SUNDAY, "u1")

        assert exc_info.value.field == "date_range"

    @pytest.mark.asyncio
    async def test_unparseable_date_rejected(self, ranker):
        with pytest.raises(SchedulerValidationError):
            await ranker.rank_days("next tuesday", SATURDAY, "u1")

    @pytest.mark.asyncio
    async def test_fetch_failure_raises(self, ranker, data_source):
        data_source.fetch_tasks = AsyncMock(side_effect=ConnectionError("reset"))

        with pytest.raises(DataFetchError):
            await ranker.rank_days(SUNDAY, SATURDAY, "u1")

    @pytest.mark.asyncio
    async def test_missing_user_rejected(self, ranker):
        with pytest.raises(AuthenticationMissingError):
            await ranker.rank_days(SUNDAY, SATURDAY, "")
