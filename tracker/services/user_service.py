"""Owner profile service: profile settings and public task sharing."""

import logging
from datetime import datetime
from typing import Any

from tracker.core import db_client
from tracker.core.logging import log_with_owner_context, span
from tracker.domain.task import Task
from tracker.domain.update_models import UserUpdate
from tracker.domain.user import User
from tracker.services import task_service


logger = logging.getLogger(__name__)

COLLECTION = "users"


def _record_to_user(record: dict[str, Any]) -> User:
    return User(
        id=record["id"],
        display_name=record["display_name"],
        is_public=bool(record["is_public"]),
        created_at=record["created_at"],
        updated_at=record["updated_at"],
    )


async def get_user(*, user_id: str) -> User | None:
    """Return the profile for ``user_id``, or None if it has never been created."""
    record = await db_client.get_first_record(collection=COLLECTION, where={"id": user_id})
    return _record_to_user(record) if record else None


async def get_or_create_user(
    *,
    owner_id: str,
    display_name: str | None = None,
    now: datetime | None = None,
) -> User:
    """Return the owner's profile, creating a private one on first use."""
    with span("user_service.get_or_create_user"):
        async with db_client.transaction():
            existing = await get_user(user_id=owner_id)
            if existing is not None:
                return existing

            now = task_service.resolve_now(now)
            record = await db_client.create_record(
                collection=COLLECTION,
                data={
                    "id": owner_id,
                    "display_name": display_name or "",
                    "is_public": False,
                    "created_at": now,
                    "updated_at": now,
                },
            )

        log_with_owner_context(logger, "info", "User profile created", owner_id=owner_id)
        return _record_to_user(record)


async def update_user(*, owner_id: str, payload: UserUpdate, now: datetime | None = None) -> User:
    """Apply profile settings for the owner."""
    with span("user_service.update_user"):
        now = task_service.resolve_now(now)
        async with db_client.transaction():
            user = await get_or_create_user(owner_id=owner_id, now=now)

            data: dict[str, Any] = {"updated_at": max(user.updated_at, now)}
            if payload.is_public is not None:
                data["is_public"] = payload.is_public
            if payload.display_name is not None:
                data["display_name"] = payload.display_name.strip()

            await db_client.update_where(collection=COLLECTION, where={"id": owner_id}, data=data)
            updated = await get_user(user_id=owner_id)

        log_with_owner_context(logger, "info", "User profile updated", owner_id=owner_id, fields=sorted(data))
        return updated


async def get_public_tasks(*, user_id: str) -> list[Task] | None:
    """Return another user's tasks if they have opted into public sharing.

    Returns:
        The tasks, or None if the user does not exist or is private
    """
    with span("user_service.get_public_tasks"):
        user = await get_user(user_id=user_id)
        if user is None or not user.is_public:
            return None
        return await task_service.list_tasks(owner_id=user_id)
