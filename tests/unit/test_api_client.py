"""Unit tests for the task API client using httpx mock transports."""

import json

import httpx
import pytest

from tracker.client.api_client import ApiError, TaskApiClient


TASK_JSON = {
    "id": "t1",
    "owner_id": "o",
    "title": "Ship",
    "description": None,
    "type": "one-time",
    "created_at": "2026-01-01T12:00:00Z",
    "updated_at": "2026-01-01T12:00:00Z",
    "check_in_enabled": False,
    "completed_at": None,
}


def client_for(handler) -> TaskApiClient:
    return TaskApiClient("http://tracker.test", session_token="token", transport=httpx.MockTransport(handler))


@pytest.mark.unit
class TestTaskApiClient:
    """Tests for TaskApiClient."""

    async def test_sends_bearer_token_and_parses_tasks(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("Authorization")
            seen["path"] = request.url.path
            return httpx.Response(200, json=[TASK_JSON])

        async with client_for(handler) as client:
            tasks = await client.list_tasks()

        assert seen == {"auth": "Bearer token", "path": "/api/tasks"}
        assert tasks[0].id == "t1"
        assert tasks[0].type == "one-time"

    async def test_get_task_returns_none_on_404(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"error": "Task not found"})

        async with client_for(handler) as client:
            assert await client.get_task("missing") is None

    async def test_error_carries_server_message(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"error": "Task not found"})

        async with client_for(handler) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.check_in("missing", completed=True)

        assert exc_info.value.message == "Task not found"
        assert exc_info.value.status_code == 404

    async def test_transport_failure_becomes_api_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        async with client_for(handler) as client:
            with pytest.raises(ApiError, match="Network error"):
                await client.list_tasks()

    async def test_add_progress_value_posts_body(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    **TASK_JSON,
                    "type": "progress",
                    "target_value": 100,
                    "current_value": 5,
                    "unit": "km",
                    "completed_values": [],
                },
            )

        async with client_for(handler) as client:
            task = await client.add_progress_value("t1", 5)

        assert seen == {"path": "/api/tasks/t1/progress", "body": {"value": 5, "date": None}}
        assert task.current_value == 5

    async def test_malformed_list_becomes_api_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"type": "progress", "current_value": None}])

        async with client_for(handler) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.list_tasks()

        assert exc_info.value.message == "Invalid response from server"
        assert exc_info.value.status_code == 200

    async def test_non_json_task_body_becomes_api_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>maintenance</html>")

        async with client_for(handler) as client:
            with pytest.raises(ApiError, match="Invalid response from server"):
                await client.check_in("t1", completed=True)
