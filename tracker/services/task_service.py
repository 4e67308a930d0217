"""Task repository: owner-scoped CRUD and check-in orchestration.

Every read and write is filtered by ``owner_id``. A task that does not exist
and a task owned by someone else look the same to the caller: read and
write operations return ``None`` (or ``False`` for deletes) without side
effects.
"""

import logging
import uuid
from datetime import UTC, date, datetime
from typing import Any, assert_never

from tracker.core import db_client
from tracker.core.config import constants
from tracker.core.errors import TaskIdMismatchError, TaskTypeChangeError, TaskTypeMismatchError
from tracker.core.logging import log_with_owner_context, span
from tracker.domain.create_models import ProgressEntryCreate, TaskCreate
from tracker.domain.task import DailyTask, OneTimeTask, ProgressEntry, ProgressTask, Task, TaskType
from tracker.domain.update_models import DailyTaskUpdate, OneTimeTaskUpdate, ProgressTaskUpdate, TaskUpdate
from tracker.services import check_in_engine, ledger_service


logger = logging.getLogger(__name__)

COLLECTION = "tasks"


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def resolve_now(now: datetime | None) -> datetime:
    """Return ``now`` as an aware UTC datetime, defaulting to the current time.

    Naive values are taken to be UTC already.
    """
    if now is None:
        return utc_now()
    if now.tzinfo is None:
        return now.replace(tzinfo=UTC)
    return now.astimezone(UTC)


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _row_to_task(
    row: dict[str, Any],
    *,
    completed_dates: list | None = None,
    entries: list[ProgressEntry] | None = None,
) -> Task:
    """Build the task variant matching the row's type."""
    base = {
        "id": row["id"],
        "owner_id": row["owner_id"],
        "title": row["title"],
        "description": row["description"],
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
        "check_in_enabled": bool(row["check_in_enabled"]),
    }

    task_type = TaskType(row["type"])
    match task_type:
        case TaskType.DAILY:
            target_days = row["target_days"]
            return DailyTask(
                **base,
                target_days=constants.DEFAULT_TARGET_DAYS if target_days is None else target_days,
                completed_dates=completed_dates or [],
            )
        case TaskType.PROGRESS:
            target_value = row["target_value"]
            return ProgressTask(
                **base,
                target_value=constants.DEFAULT_TARGET_VALUE if target_value is None else target_value,
                current_value=row["current_value"] or 0,
                unit=constants.DEFAULT_UNIT if row["unit"] is None else row["unit"],
                completed_values=entries or [],
            )
        case TaskType.ONE_TIME:
            return OneTimeTask(**base, completed_at=row["completed_at"])
        case _:
            assert_never(task_type)


async def _get_owned_row(*, owner_id: str, task_id: str) -> dict[str, Any] | None:
    return await db_client.get_first_record(collection=COLLECTION, where={"id": task_id, "owner_id": owner_id})


async def list_tasks(*, owner_id: str) -> list[Task]:
    """Return all of the owner's tasks with their ledgers populated.

    Uses three bulk reads regardless of how many tasks the owner has.
    """
    with span("task_service.list_tasks"):
        rows = await db_client.list_records(
            collection=COLLECTION,
            where={"owner_id": owner_id},
            sort="created_at ASC, id ASC",
        )

        daily_ids = [row["id"] for row in rows if row["type"] == TaskType.DAILY]
        progress_ids = [row["id"] for row in rows if row["type"] == TaskType.PROGRESS]

        dates_by_task = await ledger_service.fetch_completion_dates(task_ids=daily_ids)
        entries_by_task = await ledger_service.fetch_entries(task_ids=progress_ids)

        return [
            _row_to_task(
                row,
                completed_dates=dates_by_task.get(row["id"]),
                entries=entries_by_task.get(row["id"]),
            )
            for row in rows
        ]


async def get_task(*, owner_id: str, task_id: str) -> Task | None:
    """Return one of the owner's tasks, or None if it is missing or not theirs."""
    with span("task_service.get_task"):
        row = await _get_owned_row(owner_id=owner_id, task_id=task_id)
        if row is None:
            return None

        task_type = TaskType(row["type"])
        match task_type:
            case TaskType.DAILY:
                dates = await ledger_service.fetch_completion_dates(task_ids=[task_id])
                return _row_to_task(row, completed_dates=dates.get(task_id))
            case TaskType.PROGRESS:
                entries = await ledger_service.fetch_entries(task_ids=[task_id])
                return _row_to_task(row, entries=entries.get(task_id))
            case TaskType.ONE_TIME:
                return _row_to_task(row)
            case _:
                assert_never(task_type)


async def create_task(*, owner_id: str, draft: TaskCreate, now: datetime | None = None) -> Task:
    """Create a task for the owner, applying per-type defaults for omitted fields."""
    with span("task_service.create_task"):
        now = resolve_now(now)
        data: dict[str, Any] = {
            "id": uuid.uuid4().hex,
            "owner_id": owner_id,
            "title": draft.title,
            "description": draft.description,
            "type": draft.type.value,
            "created_at": now,
            "updated_at": now,
            "check_in_enabled": draft.check_in_enabled,
        }

        match draft.type:
            case TaskType.DAILY:
                data["target_days"] = (
                    constants.DEFAULT_TARGET_DAYS if draft.target_days is None else draft.target_days
                )
            case TaskType.PROGRESS:
                data["target_value"] = (
                    constants.DEFAULT_TARGET_VALUE if draft.target_value is None else draft.target_value
                )
                data["current_value"] = 0
                data["unit"] = constants.DEFAULT_UNIT if draft.unit is None else draft.unit
            case TaskType.ONE_TIME:
                pass

        record = await db_client.create_record(collection=COLLECTION, data=data)

        log_with_owner_context(
            logger, "info", "Task created", owner_id=owner_id, task_id=record["id"], task_type=draft.type.value
        )
        return _row_to_task(record)


async def update_task(
    *,
    owner_id: str,
    task_id: str,
    payload: TaskUpdate,
    now: datetime | None = None,
) -> Task | None:
    """Apply an edit to one of the owner's tasks.

    ``current_value`` is never written here; for daily tasks the stored set of
    completion dates is replaced with the one in the payload.

    Returns:
        The updated task, or None if the task is missing or not the owner's

    Raises:
        TaskIdMismatchError: If the payload ID does not match ``task_id``
        TaskTypeChangeError: If the payload names a different task type
    """
    if payload.id != task_id:
        msg = "ID mismatch"
        raise TaskIdMismatchError(msg)

    with span("task_service.update_task"):
        now = resolve_now(now)
        async with db_client.transaction():
            existing = await _get_owned_row(owner_id=owner_id, task_id=task_id)
            if existing is None:
                log_with_owner_context(logger, "info", "Task update: not found", owner_id=owner_id, task_id=task_id)
                return None

            if existing["type"] != payload.type:
                msg = f"Cannot change task {task_id} from {existing['type']} to {payload.type}"
                raise TaskTypeChangeError(msg)

            data: dict[str, Any] = {
                "title": payload.title,
                "description": payload.description,
                "check_in_enabled": payload.check_in_enabled,
                "updated_at": max(_parse_timestamp(existing["updated_at"]), now),
            }
            match payload:
                case DailyTaskUpdate():
                    data["target_days"] = payload.target_days
                case ProgressTaskUpdate():
                    data["target_value"] = payload.target_value
                    data["unit"] = payload.unit
                case OneTimeTaskUpdate():
                    data["completed_at"] = payload.completed_at
                case _:
                    assert_never(payload)

            changed = await db_client.update_where(
                collection=COLLECTION,
                where={"id": task_id, "owner_id": owner_id, "type": existing["type"]},
                data=data,
            )
            if changed == 0:
                return None

            if isinstance(payload, DailyTaskUpdate):
                await ledger_service.replace_completion_dates(task_id=task_id, days=payload.completed_dates)

            updated = await get_task(owner_id=owner_id, task_id=task_id)

        log_with_owner_context(logger, "info", "Task updated", owner_id=owner_id, task_id=task_id)
        return updated


async def delete_task(*, owner_id: str, task_id: str) -> bool:
    """Delete one of the owner's tasks together with all of its ledger rows.

    Returns:
        True if the task was deleted, False if it is missing or not the owner's
    """
    with span("task_service.delete_task"):
        async with db_client.transaction():
            if await _get_owned_row(owner_id=owner_id, task_id=task_id) is None:
                return False

            await ledger_service.delete_for_task(task_id=task_id)
            deleted = await db_client.delete_where(collection=COLLECTION, where={"id": task_id, "owner_id": owner_id})

        log_with_owner_context(logger, "info", "Task deleted", owner_id=owner_id, task_id=task_id)
        return deleted > 0


async def check_in(
    *,
    owner_id: str,
    task_id: str,
    completed: bool,
    value: float | None = None,
    now: datetime | None = None,
) -> Task | None:
    """Record a check-in for one of the owner's tasks.

    The ledger is written before the task snapshot, in a single transaction.

    Returns:
        The task after the check-in (unchanged for a no-op), or None if the
        task is missing or not the owner's
    """
    with span("task_service.check_in"):
        now = resolve_now(now)
        async with db_client.transaction():
            task = await get_task(owner_id=owner_id, task_id=task_id)
            if task is None:
                log_with_owner_context(logger, "info", "Check-in: task not found", owner_id=owner_id, task_id=task_id)
                return None

            transition = check_in_engine.apply_check_in(
                task,
                check_in_engine.CheckInEvent(completed=completed, value=value, now=now),
            )
            if not transition.applied:
                return task

            snapshot = transition.task
            ownership = {"id": task_id, "owner_id": owner_id}
            match snapshot:
                case DailyTask():
                    await ledger_service.add_completion_date(task_id=task_id, day=transition.completed_date)
                    await db_client.update_where(
                        collection=COLLECTION, where=ownership, data={"updated_at": snapshot.updated_at}
                    )
                case ProgressTask():
                    await ledger_service.append_value(task_id=task_id, value=transition.ledger_value, now=now)
                    await ledger_service.recompute_current_value(task_id=task_id, now=snapshot.updated_at)
                case OneTimeTask():
                    await db_client.update_where(
                        collection=COLLECTION,
                        where=ownership,
                        data={"completed_at": snapshot.completed_at, "updated_at": snapshot.updated_at},
                    )
                case _:
                    assert_never(snapshot)

            updated = await get_task(owner_id=owner_id, task_id=task_id)

        log_with_owner_context(
            logger, "info", "Check-in applied", owner_id=owner_id, task_id=task_id, task_type=task.type.value
        )
        return updated


async def _get_progress_task(*, owner_id: str, task_id: str) -> ProgressTask | None:
    task = await get_task(owner_id=owner_id, task_id=task_id)
    if task is None:
        return None
    if not isinstance(task, ProgressTask):
        msg = f"Task {task_id} is a {task.type} task, not a progress task"
        raise TaskTypeMismatchError(msg)
    return task


async def add_progress_value(
    *,
    owner_id: str,
    task_id: str,
    value: float,
    day: date | None = None,
    now: datetime | None = None,
) -> Task | None:
    """Append a value to a progress task's ledger outside of the check-in flow.

    Raises:
        pydantic.ValidationError: If value is not positive
        TaskTypeMismatchError: If the task is not a progress task
    """
    entry = ProgressEntryCreate(value=value, date=day)

    with span("task_service.add_progress_value"):
        now = resolve_now(now)
        async with db_client.transaction():
            task = await _get_progress_task(owner_id=owner_id, task_id=task_id)
            if task is None:
                return None

            await ledger_service.append_value(task_id=task_id, value=entry.value, now=now, day=entry.date)
            await ledger_service.recompute_current_value(task_id=task_id, now=max(task.updated_at, now))
            updated = await get_task(owner_id=owner_id, task_id=task_id)

        log_with_owner_context(logger, "info", "Progress value added", owner_id=owner_id, task_id=task_id)
        return updated


async def remove_progress_entry(
    *,
    owner_id: str,
    task_id: str,
    entry_id: str,
    now: datetime | None = None,
) -> Task | None:
    """Remove one entry from a progress task's ledger and recompute its value.

    Returns:
        The updated task, or None if the task or the entry (for this task)
        does not exist or is not the owner's
    """
    with span("task_service.remove_progress_entry"):
        now = resolve_now(now)
        async with db_client.transaction():
            task = await get_task(owner_id=owner_id, task_id=task_id)
            if task is None:
                return None

            removed = await ledger_service.remove_entry(owner_id=owner_id, task_id=task_id, entry_id=entry_id)
            if not removed:
                log_with_owner_context(
                    logger, "info", "Progress entry not found", owner_id=owner_id, task_id=task_id, entry_id=entry_id
                )
                return None

            await ledger_service.recompute_current_value(task_id=task_id, now=max(task.updated_at, now))
            updated = await get_task(owner_id=owner_id, task_id=task_id)

        log_with_owner_context(
            logger, "info", "Progress entry removed", owner_id=owner_id, task_id=task_id, entry_id=entry_id
        )
        return updated
