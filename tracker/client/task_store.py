"""Client-side task state.

A :class:`TaskStore` is an explicit state object built around a
:class:`TaskApiClient` and handed to whatever needs it. Mutations are never
applied optimistically: the cached task is replaced only with the server's
response, so a failed request leaves the cache exactly as it was.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import date
from typing import Protocol, TypeVar

from tracker.client import reflection
from tracker.client.api_client import ApiError
from tracker.domain.create_models import TaskCreate
from tracker.domain.progress import global_progress
from tracker.domain.task import Task
from tracker.domain.update_models import TaskUpdate


logger = logging.getLogger(__name__)

T = TypeVar("T")


class TaskApi(Protocol):
    """Operations the store needs from the API client."""

    async def list_tasks(self) -> list[Task]: ...
    async def create_task(self, draft: TaskCreate) -> Task: ...
    async def update_task(self, payload: TaskUpdate) -> Task: ...
    async def delete_task(self, task_id: str) -> None: ...
    async def check_in(self, task_id: str, *, completed: bool, value: float | None = None) -> Task: ...
    async def add_progress_value(self, task_id: str, value: float, day: date | None = None) -> Task: ...
    async def remove_progress_entry(self, task_id: str, entry_id: str) -> Task: ...


class TaskStore:
    """Last known good task list plus loading and error state."""

    def __init__(self, api: TaskApi) -> None:
        self.api = api
        self.tasks: list[Task] = []
        self.is_loading = False
        self.is_refreshing = False
        self.error: str | None = None

    # Derived views

    @property
    def active_tasks(self) -> list[Task]:
        return reflection.sorted_active(self.tasks)

    @property
    def completed_tasks(self) -> list[Task]:
        return reflection.sorted_completed(self.tasks)

    def tasks_for_check_in(self, today: date) -> list[Task]:
        return reflection.tasks_for_check_in(self.tasks, today)

    @property
    def global_progress(self) -> float:
        return global_progress(self.tasks)

    # Reads

    async def fetch_tasks(self) -> list[Task]:
        """Blocking load: marks the store as loading until the list arrives."""
        self.is_loading = True
        try:
            self.tasks = await self.api.list_tasks()
            self.error = None
        except ApiError as e:
            self._fail("fetch_tasks", e)
        finally:
            self.is_loading = False
        return self.tasks

    async def refresh(self) -> list[Task]:
        """Revalidate in the background, keeping the current list on screen.

        The list is swapped only on success; a failure keeps the last good
        list and records the error.
        """
        self.is_refreshing = True
        try:
            tasks = await self.api.list_tasks()
        except ApiError as e:
            self._fail("refresh", e)
        else:
            self.tasks = tasks
            self.error = None
        finally:
            self.is_refreshing = False
        return self.tasks

    # Mutations

    async def add_task(self, draft: TaskCreate) -> Task | None:
        task = await self._call("add_task", lambda: self.api.create_task(draft))
        if task is not None:
            self.tasks = [*self.tasks, task]
        return task

    async def update_task(self, payload: TaskUpdate) -> Task | None:
        task = await self._call("update_task", lambda: self.api.update_task(payload))
        if task is not None:
            self._replace(task)
        return task

    async def remove_task(self, task_id: str) -> bool:
        try:
            await self.api.delete_task(task_id)
        except ApiError as e:
            self._fail("remove_task", e)
            return False
        self.tasks = [task for task in self.tasks if task.id != task_id]
        return True

    async def process_check_in(self, task_id: str, *, completed: bool, value: float | None = None) -> Task | None:
        """Submit a check-in; the cached task changes only if the server accepts it."""
        task = await self._call(
            "process_check_in",
            lambda: self.api.check_in(task_id, completed=completed, value=value),
        )
        if task is not None:
            self._replace(task)
        return task

    async def add_progress_value(self, task_id: str, value: float, day: date | None = None) -> Task | None:
        task = await self._call("add_progress_value", lambda: self.api.add_progress_value(task_id, value, day))
        if task is not None:
            self._replace(task)
        return task

    async def remove_progress_entry(self, task_id: str, entry_id: str) -> Task | None:
        task = await self._call("remove_progress_entry", lambda: self.api.remove_progress_entry(task_id, entry_id))
        if task is not None:
            self._replace(task)
        return task

    def dismiss_error(self) -> None:
        self.error = None

    # Internals

    async def _call(self, operation: str, request: Callable[[], Awaitable[T]]) -> T | None:
        try:
            return await request()
        except ApiError as e:
            self._fail(operation, e)
            return None

    def _fail(self, operation: str, error: ApiError) -> None:
        logger.warning("task_store_error", extra={"operation": operation, "error": error.message})
        self.error = error.message

    def _replace(self, updated: Task) -> None:
        if any(task.id == updated.id for task in self.tasks):
            self.tasks = [updated if task.id == updated.id else task for task in self.tasks]
        else:
            self.tasks = [*self.tasks, updated]
