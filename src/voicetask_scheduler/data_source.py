"""Data collaborator contract and an in-memory implementation."""

from __future__ import annotations

import copy
from collections import Counter, defaultdict
from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from voicetask_scheduler.models import DateRange, Task, Todo, UserPreferences


class DataSource(Protocol):
    """Async reads and writes the scheduling core depends on.

    Implementations wrap whatever store holds tasks, todos and preferences.
    ``fetch_preferences`` may return a loosely-typed mapping; the core
    validates it.
    """

    async def fetch_tasks(self, user_id: str, date_range: DateRange) -> list[Task]: ...

    async def fetch_todos(self, user_id: str, date_range: DateRange) -> list[Todo]: ...

    async def fetch_preferences(
        self, user_id: str
    ) -> UserPreferences | Mapping[str, Any] | None: ...

    async def persist_preferences(
        self, user_id: str, preferences: UserPreferences
    ) -> UserPreferences: ...


class InMemoryDataSource:
    """Dict-backed data source that counts every call."""

    def __init__(
        self,
        tasks: Mapping[str, Iterable[Task]] | None = None,
        todos: Mapping[str, Iterable[Todo]] | None = None,
        preferences: Mapping[str, UserPreferences | Mapping[str, Any]] | None = None,
    ):
        self.tasks: dict[str, list[Task]] = defaultdict(list)
        self.todos: dict[str, list[Todo]] = defaultdict(list)
        self.preferences: dict[str, UserPreferences | Mapping[str, Any]] = dict(
            preferences or {}
        )
        for user_id, user_tasks in (tasks or {}).items():
            self.tasks[user_id].extend(user_tasks)
        for user_id, user_todos in (todos or {}).items():
            self.todos[user_id].extend(user_todos)
        self.calls: Counter[str] = Counter()

    def add_task(self, user_id: str, task: Task) -> None:
        self.tasks[user_id].append(task)

    def add_todo(self, user_id: str, todo: Todo) -> None:
        self.todos[user_id].append(todo)

    async def fetch_tasks(self, user_id: str, date_range: DateRange) -> list[Task]:
        self.calls["fetch_tasks"] += 1
        return [
            task for task in self.tasks.get(user_id, []) if task.scheduled_date in date_range
        ]

    async def fetch_todos(self, user_id: str, date_range: DateRange) -> list[Todo]:
        self.calls["fetch_todos"] += 1
        return [
            todo
            for todo in self.todos.get(user_id, [])
            if todo.due_date is not None and todo.due_date in date_range
        ]

    async def fetch_preferences(
        self, user_id: str
    ) -> UserPreferences | Mapping[str, Any] | None:
        self.calls["fetch_preferences"] += 1
        stored = self.preferences.get(user_id)
        return copy.deepcopy(stored)

    async def persist_preferences(
        self, user_id: str, preferences: UserPreferences
    ) -> UserPreferences:
        self.calls["persist_preferences"] += 1
        self.preferences[user_id] = preferences.model_copy(deep=True)
        return preferences
