"""Pure completion and progress derivations over tasks."""

import math
from collections.abc import Sequence
from datetime import date
from typing import assert_never

from tracker.domain.task import DailyTask, OneTimeTask, ProgressTask, Task


_FULL = 100.0


def _percent(numerator: float, denominator: float) -> float:
    """Return numerator/denominator as a percentage clamped to [0, 100].

    A zero (or negative) goal is trivially satisfied, so it counts as 100.
    """
    if denominator <= 0:
        return _FULL
    ratio = numerator / denominator * 100
    if math.isnan(ratio):
        return 0.0
    return max(0.0, min(_FULL, ratio))


def is_completed(task: Task) -> bool:
    """Return True once the task's goal is reached."""
    match task:
        case DailyTask():
            return len(task.completed_dates) >= task.target_days
        case ProgressTask():
            return task.current_value >= task.target_value
        case OneTimeTask():
            return task.completed_at is not None
        case _:
            assert_never(task)


def progress_percent(task: Task) -> float:
    """Return how far the task is toward its goal, as a number in [0, 100]."""
    match task:
        case DailyTask():
            return _percent(len(task.completed_dates), task.target_days)
        case ProgressTask():
            return _percent(task.current_value, task.target_value)
        case OneTimeTask():
            return _FULL if task.completed_at is not None else 0.0
        case _:
            assert_never(task)


def global_progress(tasks: Sequence[Task]) -> float:
    """Return the mean progress percent across tasks (0 for an empty collection)."""
    if not tasks:
        return 0.0
    return sum(progress_percent(task) for task in tasks) / len(tasks)


def is_completed_today(task: DailyTask, today: date) -> bool:
    """Return True if the daily task already has a check-in for ``today``."""
    return today in task.completed_dates
