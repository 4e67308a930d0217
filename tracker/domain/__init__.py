"""Domain models and DTOs."""

from tracker.domain.create_models import CheckInRequest, ProgressEntryCreate, TaskCreate
from tracker.domain.task import DailyTask, OneTimeTask, ProgressEntry, ProgressTask, Task, TaskType
from tracker.domain.update_models import (
    DailyTaskUpdate,
    OneTimeTaskUpdate,
    ProgressTaskUpdate,
    TaskUpdate,
    TaskUpdateRequest,
    UserUpdate,
)
from tracker.domain.user import User


__all__ = [
    "CheckInRequest",
    "DailyTask",
    "DailyTaskUpdate",
    "OneTimeTask",
    "OneTimeTaskUpdate",
    "ProgressEntry",
    "ProgressEntryCreate",
    "ProgressTask",
    "ProgressTaskUpdate",
    "Task",
    "TaskCreate",
    "TaskType",
    "TaskUpdate",
    "TaskUpdateRequest",
    "User",
    "UserUpdate",
]
