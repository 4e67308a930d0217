"""Pytest configuration and shared fixtures."""

import datetime as dt
from collections.abc import AsyncIterator
from datetime import UTC, datetime

import logfire
import pytest

from tracker.core import db_client
from tracker.core.config import settings
from tracker.domain.create_models import TaskCreate
from tracker.domain.task import TaskType


OWNER_ID = "owner-alice"
OTHER_OWNER_ID = "owner-bob"


def pytest_configure(config: pytest.Config) -> None:
    """Keep spans local during tests."""
    logfire.configure(send_to_logfire=False, console=False)


@pytest.fixture
async def sqlite_db(tmp_path, monkeypatch) -> AsyncIterator[str]:
    """Point the app at a fresh SQLite file with the schema applied."""
    db_path = str(tmp_path / "tracker.db")
    monkeypatch.setattr(settings, "sqlite_db_path", db_path)

    await db_client.init_db()
    yield db_path
    await db_client.close_connection()


def at(day: dt.date, hour: int = 12) -> datetime:
    """Aware UTC timestamp on ``day``."""
    return datetime(day.year, day.month, day.day, hour, tzinfo=UTC)


def draft(task_type: TaskType, title: str = "Goal", **overrides) -> TaskCreate:
    return TaskCreate(title=title, type=task_type, **overrides)
