"""Unit tests for task drafts, update payloads and text normalization."""

import pytest
from pydantic import TypeAdapter, ValidationError

from tracker.core.text import normalize_description
from tracker.domain.create_models import CheckInRequest, ProgressEntryCreate, TaskCreate
from tracker.domain.task import TaskType
from tracker.domain.update_models import DailyTaskUpdate, ProgressTaskUpdate, TaskUpdate


@pytest.mark.unit
class TestNormalizeDescription:
    """Tests for normalize_description."""

    def test_collapses_runs_of_blank_lines(self):
        assert normalize_description("a\n\n\n\nb") == "a\n\nb"

    def test_keeps_single_blank_line(self):
        assert normalize_description("a\n\nb") == "a\n\nb"


@pytest.mark.unit
class TestTaskCreate:
    """Tests for TaskCreate validation."""

    def test_trims_title(self):
        task = TaskCreate(title="  Read  ", type=TaskType.DAILY)
        assert task.title == "Read"

    def test_rejects_blank_title(self):
        with pytest.raises(ValidationError):
            TaskCreate(title="   ", type=TaskType.DAILY)

    def test_whitespace_description_becomes_none(self):
        task = TaskCreate(title="Read", type=TaskType.DAILY, description="  \n ")
        assert task.description is None

    def test_description_is_trimmed_and_collapsed(self):
        task = TaskCreate(title="Read", type=TaskType.DAILY, description="  one\n\n\n\ntwo  ")
        assert task.description == "one\n\ntwo"

    def test_description_length_limit(self):
        TaskCreate(title="Read", type=TaskType.DAILY, description="x" * 1000)
        with pytest.raises(ValidationError):
            TaskCreate(title="Read", type=TaskType.DAILY, description="x" * 1001)

    def test_rejects_unknown_type(self):
        with pytest.raises(ValidationError):
            TaskCreate(title="Read", type="weekly")

    def test_rejects_non_positive_target_days(self):
        with pytest.raises(ValidationError):
            TaskCreate(title="Read", type=TaskType.DAILY, target_days=0)


@pytest.mark.unit
class TestRequests:
    """Tests for check-in and progress entry payloads."""

    def test_check_in_value_optional(self):
        assert CheckInRequest(completed=True).value is None

    @pytest.mark.parametrize("value", [0, -1])
    def test_progress_entry_value_must_be_positive(self, value):
        with pytest.raises(ValidationError):
            ProgressEntryCreate(value=value)

    @pytest.mark.parametrize("value", [float("inf"), float("nan")])
    def test_non_finite_values_rejected(self, value):
        with pytest.raises(ValidationError):
            ProgressEntryCreate(value=value)
        with pytest.raises(ValidationError):
            CheckInRequest(completed=True, value=value)
        with pytest.raises(ValidationError):
            TaskCreate(title="Run", type=TaskType.PROGRESS, target_value=value)


@pytest.mark.unit
class TestTaskUpdate:
    """Tests for the update union."""

    def test_selects_variant_by_type(self):
        adapter = TypeAdapter(TaskUpdate)
        payload = adapter.validate_python(
            {"id": "t1", "type": "progress", "title": "Run", "check_in_enabled": True, "target_value": 50}
        )
        assert isinstance(payload, ProgressTaskUpdate)
        assert payload.unit == "units"

    def test_ignores_current_value(self):
        payload = TypeAdapter(TaskUpdate).validate_python(
            {"id": "t1", "type": "progress", "title": "Run", "check_in_enabled": False, "current_value": 999}
        )
        assert not hasattr(payload, "current_value")

    def test_daily_update_carries_dates(self):
        payload = DailyTaskUpdate(
            id="t1", type=TaskType.DAILY, title="Read", check_in_enabled=True, completed_dates=["2026-01-01"]
        )
        assert [d.isoformat() for d in payload.completed_dates] == ["2026-01-01"]

    def test_progress_update_rejects_infinite_target(self):
        with pytest.raises(ValidationError):
            ProgressTaskUpdate(
                id="t1", type=TaskType.PROGRESS, title="Run", check_in_enabled=True, target_value=float("inf")
            )
