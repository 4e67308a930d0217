"""Client-side access to the task API."""

from tracker.client.api_client import ApiError, TaskApiClient
from tracker.client.task_store import TaskStore


__all__ = ["ApiError", "TaskApiClient", "TaskStore"]
