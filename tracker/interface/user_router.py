"""Owner profile and public sharing router."""

import logging

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse

from tracker.core.config import constants
from tracker.domain.task import Task
from tracker.domain.update_models import UserUpdate
from tracker.domain.user import User
from tracker.interface.auth import get_owner_id
from tracker.services import user_service


logger = logging.getLogger(__name__)

router = APIRouter(prefix=f"{constants.API_PREFIX}/users", tags=["users"])


@router.get("/me", response_model=User)
async def get_me(owner_id: str = Depends(get_owner_id)) -> User:
    return await user_service.get_or_create_user(owner_id=owner_id)


@router.patch("/me", response_model=User)
async def update_me(payload: UserUpdate, owner_id: str = Depends(get_owner_id)) -> User:
    """Change profile settings such as public sharing."""
    return await user_service.update_user(owner_id=owner_id, payload=payload)


@router.get("/{user_id}/tasks", response_model=list[Task])
async def get_public_tasks(user_id: str, _owner_id: str = Depends(get_owner_id)) -> Response | list[Task]:
    """List another user's tasks when they have opted into sharing.

    Private and unknown users both answer 404.
    """
    tasks = await user_service.get_public_tasks(user_id=user_id)
    if tasks is None:
        logger.info("public_tasks_unavailable", extra={"user_id": user_id})
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "User not found"})
    return tasks
