"""Pure check-in state machine.

One evaluation per check-in request. The engine starts in PENDING and moves
to exactly one terminal state:

* NO_OP    the task is returned unchanged (skip, repeat daily check-in,
           missing or non-positive progress value)
* APPLIED  a new snapshot is produced, together with the ledger effect the
           caller must persist (a completion date or a progress value)

"Already checked in today" is derived from the task itself; the engine keeps
no state between requests and performs no I/O.
"""

import logging
from datetime import date, datetime
from enum import StrEnum
from typing import assert_never

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

from tracker.domain.progress import is_completed_today
from tracker.domain.task import DailyTask, OneTimeTask, ProgressTask, Task


logger = logging.getLogger(__name__)


class CheckInState(StrEnum):
    """Engine state."""

    PENDING = "PENDING"
    NO_OP = "NO_OP"
    APPLIED = "APPLIED"


TRANSITIONS: dict[CheckInState, set[CheckInState]] = {
    CheckInState.PENDING: {CheckInState.NO_OP, CheckInState.APPLIED},
    CheckInState.NO_OP: set(),
    CheckInState.APPLIED: set(),
}


class CheckInEvent(BaseModel):
    """A single check-in submitted against a task."""

    model_config = ConfigDict(frozen=True)

    completed: bool
    value: float | None = Field(default=None, allow_inf_nan=False)
    now: AwareDatetime

    @property
    def today(self) -> date:
        """Calendar day (UTC) the check-in counts for."""
        return self.now.date()


class CheckInTransition(BaseModel):
    """Outcome of evaluating one check-in event."""

    model_config = ConfigDict(frozen=True)

    state: CheckInState
    task: Task
    completed_date: date | None = Field(default=None, description="Daily: date to add to the ledger")
    ledger_value: float | None = Field(default=None, description="Progress: value to append to the ledger")

    @property
    def applied(self) -> bool:
        """True when the caller has something to persist."""
        return self.state == CheckInState.APPLIED


def _transition(current: CheckInState, target: CheckInState) -> CheckInState:
    if target not in TRANSITIONS[current]:
        msg = f"Cannot move check-in from {current} to {target}"
        raise ValueError(msg)
    return target


def _bump(previous: datetime, now: datetime) -> datetime:
    """Return the new ``updated_at``, never earlier than the previous one."""
    return max(previous, now)


def _no_op(task: Task) -> CheckInTransition:
    return CheckInTransition(state=_transition(CheckInState.PENDING, CheckInState.NO_OP), task=task)


def _apply_daily(task: DailyTask, event: CheckInEvent) -> CheckInTransition:
    today = event.today
    if is_completed_today(task, today):
        return _no_op(task)

    snapshot = task.model_copy(
        update={
            "completed_dates": sorted([*task.completed_dates, today]),
            "updated_at": _bump(task.updated_at, event.now),
        }
    )
    return CheckInTransition(
        state=_transition(CheckInState.PENDING, CheckInState.APPLIED),
        task=snapshot,
        completed_date=today,
    )


def _apply_progress(task: ProgressTask, event: CheckInEvent) -> CheckInTransition:
    if event.value is None or event.value <= 0:
        return _no_op(task)

    # Projection only; the repository replaces current_value with the ledger sum.
    snapshot = task.model_copy(
        update={
            "current_value": task.current_value + event.value,
            "updated_at": _bump(task.updated_at, event.now),
        }
    )
    return CheckInTransition(
        state=_transition(CheckInState.PENDING, CheckInState.APPLIED),
        task=snapshot,
        ledger_value=event.value,
    )


def _apply_one_time(task: OneTimeTask, event: CheckInEvent) -> CheckInTransition:
    snapshot = task.model_copy(
        update={
            "completed_at": task.completed_at or event.today,
            "updated_at": _bump(task.updated_at, event.now),
        }
    )
    return CheckInTransition(state=_transition(CheckInState.PENDING, CheckInState.APPLIED), task=snapshot)


def apply_check_in(task: Task, event: CheckInEvent) -> CheckInTransition:
    """Evaluate a check-in event against a task and return the resulting transition."""
    if not event.completed:
        transition = _no_op(task)
    else:
        match task:
            case DailyTask():
                transition = _apply_daily(task, event)
            case ProgressTask():
                transition = _apply_progress(task, event)
            case OneTimeTask():
                transition = _apply_one_time(task, event)
            case _:
                assert_never(task)

    logger.debug(
        "Check-in evaluated",
        extra={"task_id": task.id, "task_type": task.type, "state": transition.state},
    )
    return transition
