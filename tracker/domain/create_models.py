"""Pydantic models for creating records in database."""

import datetime as dt

from pydantic import BaseModel, Field, field_validator

from tracker.core.config import constants
from tracker.core.text import normalize_description
from tracker.domain.task import TaskType


def clean_description(v: str | None) -> str | None:
    """Trim, collapse excess blank lines, and enforce the length limit.

    Whitespace-only descriptions become None.
    """
    if v is None:
        return None
    text = normalize_description(v.strip())
    if len(text) > constants.DESCRIPTION_MAX_LENGTH:
        msg = f"Description must be at most {constants.DESCRIPTION_MAX_LENGTH} characters"
        raise ValueError(msg)
    return text or None


def clean_title(v: str) -> str:
    """Trim the title and reject it if nothing is left."""
    title = v.strip()
    if not title:
        msg = "Title must not be empty"
        raise ValueError(msg)
    return title


class TaskCreate(BaseModel):
    """Draft for a new task; omitted type-specific fields fall back to defaults."""

    title: str = Field(..., description="Task title")
    description: str | None = Field(default=None, description="Optional description")
    type: TaskType = Field(..., description="daily, progress or one-time")
    target_days: int | None = Field(default=None, gt=0, description="Daily: number of days to reach")
    target_value: float | None = Field(
        default=None, ge=0, allow_inf_nan=False, description="Progress: value to reach"
    )
    unit: str | None = Field(default=None, description="Progress: unit label")
    check_in_enabled: bool = Field(default=False, description="Include in the daily check-in")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Validate title is non-empty after trimming."""
        return clean_title(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str | None) -> str | None:
        """Normalize the description text."""
        return clean_description(v)


class CheckInRequest(BaseModel):
    """Check-in event submitted for one task."""

    completed: bool = Field(..., description="False records a skip without changing the task")
    value: float | None = Field(default=None, allow_inf_nan=False, description="Progress tasks: amount to add")


class ProgressEntryCreate(BaseModel):
    """A value appended directly to a progress task's ledger."""

    value: float = Field(..., gt=0, allow_inf_nan=False, description="Amount to add (must be positive)")
    date: dt.date | None = Field(default=None, description="Day to record the value for (defaults to today)")
