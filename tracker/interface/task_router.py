"""Task API router."""

import logging

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse

from tracker.core.config import constants
from tracker.domain.create_models import CheckInRequest, ProgressEntryCreate, TaskCreate
from tracker.domain.task import Task
from tracker.domain.update_models import TaskUpdateRequest
from tracker.interface.auth import get_owner_id
from tracker.services import task_service


logger = logging.getLogger(__name__)

router = APIRouter(prefix=f"{constants.API_PREFIX}/tasks", tags=["tasks"])


def task_not_found() -> JSONResponse:
    """Uniform 404 for missing tasks and tasks owned by someone else."""
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Task not found"})


@router.get("", response_model=list[Task])
async def list_tasks(owner_id: str = Depends(get_owner_id)) -> list[Task]:
    """List every task belonging to the signed-in owner."""
    return await task_service.list_tasks(owner_id=owner_id)


@router.get("/{task_id}", response_model=Task)
async def get_task(task_id: str, owner_id: str = Depends(get_owner_id)) -> Response | Task:
    task = await task_service.get_task(owner_id=owner_id, task_id=task_id)
    return task if task is not None else task_not_found()


@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED)
async def create_task(draft: TaskCreate, owner_id: str = Depends(get_owner_id)) -> Task:
    return await task_service.create_task(owner_id=owner_id, draft=draft)


@router.put("/{task_id}", response_model=Task)
async def update_task(
    task_id: str,
    body: TaskUpdateRequest,
    owner_id: str = Depends(get_owner_id),
) -> Response | Task:
    """Replace the editable fields of a task.

    The ID in the body must match the path; the task type can never change.
    """
    task = await task_service.update_task(owner_id=owner_id, task_id=task_id, payload=body.root)
    return task if task is not None else task_not_found()


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: str, owner_id: str = Depends(get_owner_id)) -> Response:
    if not await task_service.delete_task(owner_id=owner_id, task_id=task_id):
        return task_not_found()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{task_id}/checkin", response_model=Task)
async def check_in(
    task_id: str,
    body: CheckInRequest,
    owner_id: str = Depends(get_owner_id),
) -> Response | Task:
    """Record today's check-in; repeats and skips return the task unchanged."""
    task = await task_service.check_in(
        owner_id=owner_id,
        task_id=task_id,
        completed=body.completed,
        value=body.value,
    )
    return task if task is not None else task_not_found()


@router.post("/{task_id}/progress", response_model=Task)
async def add_progress_value(
    task_id: str,
    entry: ProgressEntryCreate,
    owner_id: str = Depends(get_owner_id),
) -> Response | Task:
    task = await task_service.add_progress_value(
        owner_id=owner_id,
        task_id=task_id,
        value=entry.value,
        day=entry.date,
    )
    return task if task is not None else task_not_found()


@router.delete("/{task_id}/progress/{entry_id}", response_model=Task)
async def remove_progress_entry(
    task_id: str,
    entry_id: str,
    owner_id: str = Depends(get_owner_id),
) -> Response | Task:
    task = await task_service.remove_progress_entry(owner_id=owner_id, task_id=task_id, entry_id=entry_id)
    return task if task is not None else task_not_found()
