"""Derived task views for the client: ordering and check-in eligibility.

Completion is always derived from the task itself; nothing is archived.
"""

from collections.abc import Iterable
from datetime import date

from tracker.domain.progress import is_completed, is_completed_today
from tracker.domain.task import DailyTask, Task


def sorted_active(tasks: Iterable[Task]) -> list[Task]:
    """Tasks not yet completed, check-in tasks first, most recently updated first."""
    active = [task for task in tasks if not is_completed(task)]
    # Two stable passes: secondary key first.
    active.sort(key=lambda task: task.updated_at, reverse=True)
    active.sort(key=lambda task: task.check_in_enabled, reverse=True)
    return active


def sorted_completed(tasks: Iterable[Task]) -> list[Task]:
    """Completed tasks, most recently updated first."""
    return sorted((task for task in tasks if is_completed(task)), key=lambda task: task.updated_at, reverse=True)


def tasks_for_check_in(tasks: Iterable[Task], today: date) -> list[Task]:
    """Active check-in tasks still awaiting today's check-in."""
    return [
        task
        for task in sorted_active(tasks)
        if task.check_in_enabled and not (isinstance(task, DailyTask) and is_completed_today(task, today))
    ]
