"""Update models for database operations.

Update payloads carry no ``current_value``: that field is derived from the
progress ledger and cannot be written by a client. Unknown fields (such as a
full task echoed back by a client) are ignored.
"""

import datetime as dt
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator

from tracker.domain.create_models import clean_description, clean_title
from tracker.domain.task import TaskType


class _TaskUpdateFields(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="ID of the task being updated")
    title: str = Field(..., description="Task title")
    description: str | None = Field(default=None, description="Optional description")
    check_in_enabled: bool = Field(..., description="Include in the daily check-in")

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


class DailyTaskUpdate(_TaskUpdateFields):
    """Edit of a daily task; ``completed_dates`` replaces the stored set."""

    type: Literal[TaskType.DAILY]
    target_days: int = Field(default=30, gt=0)
    completed_dates: list[dt.date] = Field(default_factory=list)


class ProgressTaskUpdate(_TaskUpdateFields):
    """Edit of a progress task (goal and unit only)."""

    type: Literal[TaskType.PROGRESS]
    target_value: float = Field(default=100, ge=0, allow_inf_nan=False)
    unit: str = Field(default="units")


class OneTimeTaskUpdate(_TaskUpdateFields):
    """Edit of a one-time task."""

    type: Literal[TaskType.ONE_TIME]
    completed_at: dt.date | None = None


TaskUpdate = Annotated[DailyTaskUpdate | ProgressTaskUpdate | OneTimeTaskUpdate, Field(discriminator="type")]


class UserUpdate(BaseModel):
    """Update payload for the owner's profile settings."""

    is_public: bool | None = None
    display_name: str | None = Field(default=None, max_length=100)


class TaskUpdateRequest(RootModel[TaskUpdate]):
    """Request body wrapper selecting the update variant by ``type``."""
