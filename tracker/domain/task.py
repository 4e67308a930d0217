"""Task domain models and enums.

A task is a tagged union over its ``type``. Every variant is a frozen model,
so the discriminant (and any other field) can only change by building a new
snapshot with ``model_copy``.
"""

import datetime as dt
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaskType(StrEnum):
    """Kind of goal a task tracks."""

    DAILY = "daily"  # Complete on N distinct days
    PROGRESS = "progress"  # Accumulate a value toward a target
    ONE_TIME = "one-time"  # Single completion


class ProgressEntry(BaseModel):
    """One contribution recorded in a progress task's ledger."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Ledger entry ID")
    date: dt.date = Field(..., description="Calendar date the value was recorded for")
    value: float = Field(..., gt=0, allow_inf_nan=False, description="Contributed amount")
    created_at: dt.datetime = Field(..., description="When the entry was appended")


class TaskFields(BaseModel):
    """Fields shared by every task variant."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique task ID")
    owner_id: str = Field(..., description="Owner the task is scoped to")
    title: str = Field(..., min_length=1, description="Task title")
    description: str | None = Field(default=None, description="Optional free-text description")
    created_at: dt.datetime = Field(..., description="Creation timestamp (UTC)")
    updated_at: dt.datetime = Field(..., description="Last update timestamp (UTC)")
    check_in_enabled: bool = Field(default=False, description="Offer the task in the daily check-in flow")


class DailyTask(TaskFields):
    """Complete the task on ``target_days`` distinct days."""

    type: Literal[TaskType.DAILY] = TaskType.DAILY
    target_days: int = Field(default=30, ge=0, description="Number of days to reach the goal")
    completed_dates: list[dt.date] = Field(default_factory=list, description="Distinct days checked in")

    @field_validator("completed_dates")
    @classmethod
    def dedupe_dates(cls, v: list[dt.date]) -> list[dt.date]:
        """Keep each date once, in ascending order."""
        return sorted(set(v))


class ProgressTask(TaskFields):
    """Accumulate ledger values until ``target_value`` is reached."""

    type: Literal[TaskType.PROGRESS] = TaskType.PROGRESS
    target_value: float = Field(default=100, ge=0, allow_inf_nan=False, description="Value to reach")
    current_value: float = Field(default=0, description="Sum of all ledger entries")
    unit: str = Field(default="units", description="Label for the tracked value, e.g. 'km'")
    completed_values: list[ProgressEntry] = Field(default_factory=list, description="Ledger entries, oldest first")


class OneTimeTask(TaskFields):
    """Done once; ``completed_at`` marks completion."""

    type: Literal[TaskType.ONE_TIME] = TaskType.ONE_TIME
    completed_at: dt.date | None = Field(default=None, description="Day the task was completed")


Task = Annotated[DailyTask | ProgressTask | OneTimeTask, Field(discriminator="type")]
