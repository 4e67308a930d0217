"""Pytest configuration and fixtures for integration tests."""

from collections.abc import AsyncIterator

import httpx
import pytest

from tests.conftest import OTHER_OWNER_ID, OWNER_ID
from tracker.core.config import constants
from tracker.interface.auth import issue_session_token
from tracker.main import app


def _client(owner_id: str | None) -> httpx.AsyncClient:
    cookies = {constants.SESSION_COOKIE_NAME: issue_session_token(owner_id)} if owner_id else None
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://tracker.test", cookies=cookies)


@pytest.fixture
async def client(sqlite_db) -> AsyncIterator[httpx.AsyncClient]:
    """HTTP client signed in as the primary owner."""
    async with _client(OWNER_ID) as http_client:
        yield http_client


@pytest.fixture
async def other_client(sqlite_db) -> AsyncIterator[httpx.AsyncClient]:
    """HTTP client signed in as a second owner."""
    async with _client(OTHER_OWNER_ID) as http_client:
        yield http_client


@pytest.fixture
async def anonymous_client(sqlite_db) -> AsyncIterator[httpx.AsyncClient]:
    async with _client(None) as http_client:
        yield http_client
