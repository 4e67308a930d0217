"""HTTP client for the task API."""

import logging
from datetime import date
from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from tracker.core.config import constants
from tracker.domain.create_models import TaskCreate
from tracker.domain.task import Task
from tracker.domain.update_models import TaskUpdate


logger = logging.getLogger(__name__)

T = TypeVar("T")

_task_adapter: TypeAdapter[Task] = TypeAdapter(Task)
_task_list_adapter: TypeAdapter[list[Task]] = TypeAdapter(list[Task])
_update_adapter: TypeAdapter[TaskUpdate] = TypeAdapter(TaskUpdate)


class ApiError(Exception):
    """A request to the task API failed."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"Request failed with status {response.status_code}"
    if isinstance(body, dict):
        if "error" in body:
            return str(body["error"])
        if "detail" in body:
            return str(body["detail"])
    return f"Request failed with status {response.status_code}"


def _parse(adapter: TypeAdapter[T], response: httpx.Response) -> T:
    """Validate a success body, raising :class:`ApiError` when it is not what the API promises."""
    try:
        return adapter.validate_json(response.content)
    except ValidationError as e:
        logger.warning(
            "api_invalid_response",
            extra={
                "url": str(response.request.url),
                "status_code": response.status_code,
                "error_count": e.error_count(),
            },
        )
        raise ApiError("Invalid response from server", status_code=response.status_code) from e


class TaskApiClient:
    """Thin async wrapper over the ``/api/tasks`` endpoints.

    Non-2xx responses raise :class:`ApiError` carrying the server's message;
    transport failures and success bodies that do not validate raise it too.
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        session_token: str | None = None,
        timeout: float = constants.API_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {session_token}"} if session_token else {}
        self._client = httpx.AsyncClient(base_url=base_url, headers=headers, timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "TaskApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, *, json: Any = None) -> httpx.Response:
        url = f"{constants.API_PREFIX}/tasks{path}"
        try:
            response = await self._client.request(method, url, json=json)
        except httpx.HTTPError as e:
            logger.warning("api_request_failed", extra={"method": method, "url": url, "error": str(e)})
            raise ApiError(f"Network error: {e}") from e

        if response.is_success:
            return response

        message = _error_message(response)
        logger.warning(
            "api_error_response",
            extra={"method": method, "url": url, "status_code": response.status_code, "error": message},
        )
        raise ApiError(message, status_code=response.status_code)

    async def list_tasks(self) -> list[Task]:
        response = await self._request("GET", "")
        return _parse(_task_list_adapter, response)

    async def get_task(self, task_id: str) -> Task | None:
        """Fetch one task; None when the server answers 404."""
        try:
            response = await self._request("GET", f"/{task_id}")
        except ApiError as e:
            if e.status_code == constants.HTTP_NOT_FOUND:
                return None
            raise
        return _parse(_task_adapter, response)

    async def create_task(self, draft: TaskCreate) -> Task:
        response = await self._request("POST", "", json=draft.model_dump(mode="json"))
        return _parse(_task_adapter, response)

    async def update_task(self, payload: TaskUpdate) -> Task:
        body = _update_adapter.dump_python(payload, mode="json")
        response = await self._request("PUT", f"/{payload.id}", json=body)
        return _parse(_task_adapter, response)

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", f"/{task_id}")

    async def check_in(self, task_id: str, *, completed: bool, value: float | None = None) -> Task:
        response = await self._request("POST", f"/{task_id}/checkin", json={"completed": completed, "value": value})
        return _parse(_task_adapter, response)

    async def add_progress_value(self, task_id: str, value: float, day: date | None = None) -> Task:
        body = {"value": value, "date": day.isoformat() if day else None}
        response = await self._request("POST", f"/{task_id}/progress", json=body)
        return _parse(_task_adapter, response)

    async def remove_progress_entry(self, task_id: str, entry_id: str) -> Task:
        response = await self._request("DELETE", f"/{task_id}/progress/{entry_id}")
        return _parse(_task_adapter, response)
