"""Completion ledger: daily check-in dates and progress value entries.

The ledger is the source of truth. For progress tasks the task row's
``current_value`` is a materialized sum of the ledger and must be refreshed
with :func:`recompute_current_value` after every ledger mutation, inside the
same transaction and always after the ledger write.
"""

import logging
from collections import defaultdict
from datetime import date, datetime

from tracker.core import db_client
from tracker.core.logging import span
from tracker.domain.create_models import ProgressEntryCreate
from tracker.domain.task import ProgressEntry


logger = logging.getLogger(__name__)

DAILY_COLLECTION = "daily_completions"
PROGRESS_COLLECTION = "progress_entries"


def _entry_from_record(record: dict) -> ProgressEntry:
    return ProgressEntry(
        id=record["id"],
        date=record["date"],
        value=record["value"],
        created_at=record["created_at"],
    )


# Daily ledger


async def add_completion_date(*, task_id: str, day: date) -> bool:
    """Record a check-in date for a daily task.

    Inserting a date that is already present is a no-op, not an error.

    Returns:
        True if a new date was recorded, False if it already existed
    """
    with span("ledger_service.add_completion_date"):
        inserted = await db_client.create_record_if_absent(
            collection=DAILY_COLLECTION,
            data={"task_id": task_id, "completed_date": day},
        )
        logger.info(
            "Daily completion recorded" if inserted else "Daily completion already present",
            extra={"task_id": task_id, "day": day.isoformat()},
        )
        return inserted


async def replace_completion_dates(*, task_id: str, days: list[date]) -> list[date]:
    """Replace the full set of check-in dates for a daily task (delete, then reinsert)."""
    with span("ledger_service.replace_completion_dates"):
        unique_days = sorted(set(days))
        async with db_client.transaction():
            await db_client.delete_where(collection=DAILY_COLLECTION, where={"task_id": task_id})
            await db_client.create_records(
                collection=DAILY_COLLECTION,
                rows=[{"task_id": task_id, "completed_date": day} for day in unique_days],
            )
        logger.info("Daily completions replaced", extra={"task_id": task_id, "count": len(unique_days)})
        return unique_days


async def fetch_completion_dates(*, task_ids: list[str]) -> dict[str, list[date]]:
    """Load check-in dates for many tasks with a single query."""
    records = await db_client.list_records(
        collection=DAILY_COLLECTION,
        where_in={"task_id": task_ids},
        sort="completed_date ASC",
    )
    dates_by_task: dict[str, list[date]] = defaultdict(list)
    for record in records:
        dates_by_task[record["task_id"]].append(date.fromisoformat(record["completed_date"]))
    return dict(dates_by_task)


# Progress ledger


async def append_value(
    *,
    task_id: str,
    value: float,
    now: datetime,
    day: date | None = None,
) -> ProgressEntry:
    """Append a progress contribution; earlier entries are never touched.

    Raises:
        pydantic.ValidationError: If value is not positive
    """
    with span("ledger_service.append_value"):
        entry = ProgressEntryCreate(value=value, date=day)
        record = await db_client.create_record(
            collection=PROGRESS_COLLECTION,
            data={
                "task_id": task_id,
                "date": entry.date or now.date(),
                "value": entry.value,
                "created_at": now,
            },
        )
        logger.info("Progress entry appended", extra={"task_id": task_id, "entry_id": record["id"]})
        return _entry_from_record(record)


async def remove_entry(*, owner_id: str, task_id: str, entry_id: str) -> bool:
    """Remove exactly one ledger entry.

    Returns:
        False if the entry does not exist, belongs to another task, or the
        task is not owned by ``owner_id``
    """
    with span("ledger_service.remove_entry"):
        async with db_client.transaction():
            task = await db_client.get_first_record(
                collection="tasks",
                where={"id": task_id, "owner_id": owner_id},
            )
            if task is None:
                return False

            deleted = await db_client.delete_where(
                collection=PROGRESS_COLLECTION,
                where={"id": entry_id, "task_id": task_id},
            )

        logger.info("Progress entry removal", extra={"task_id": task_id, "entry_id": entry_id, "deleted": deleted})
        return deleted > 0


async def sum_values(*, task_id: str) -> float:
    """Return the sum of all ledger entries for a task (0 when there are none)."""
    return await db_client.sum_field(collection=PROGRESS_COLLECTION, field="value", where={"task_id": task_id})


async def recompute_current_value(*, task_id: str, now: datetime) -> float:
    """Write the ledger sum onto the task snapshot and bump ``updated_at``.

    Safe to repeat: the result depends only on the ledger contents.
    """
    with span("ledger_service.recompute_current_value"):
        async with db_client.transaction():
            total = await sum_values(task_id=task_id)
            await db_client.update_where(
                collection="tasks",
                where={"id": task_id},
                data={"current_value": total, "updated_at": now},
            )
        logger.info("Current value recomputed", extra={"task_id": task_id, "current_value": total})
        return total


async def fetch_entries(*, task_ids: list[str]) -> dict[str, list[ProgressEntry]]:
    """Load progress ledger entries for many tasks with a single query."""
    records = await db_client.list_records(
        collection=PROGRESS_COLLECTION,
        where_in={"task_id": task_ids},
        sort="id ASC",
    )
    entries_by_task: dict[str, list[ProgressEntry]] = defaultdict(list)
    for record in records:
        entries_by_task[record["task_id"]].append(_entry_from_record(record))
    return dict(entries_by_task)


async def delete_for_task(*, task_id: str) -> int:
    """Delete every ledger row (daily and progress) belonging to a task."""
    async with db_client.transaction():
        daily = await db_client.delete_where(collection=DAILY_COLLECTION, where={"task_id": task_id})
        progress = await db_client.delete_where(collection=PROGRESS_COLLECTION, where={"task_id": task_id})
    return daily + progress
