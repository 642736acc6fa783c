"""
Shared pytest configuration and fixtures for the UpCloud API tests.

This module provides common fixtures used across all test modules including:
- Test UpCloud configurations
- A scripted fake UpCloud backend built on httpx.MockTransport
- Clients and API facades bound to that backend
- Mock MCP contexts for tool testing
"""

import json
from typing import Any, Union
from unittest.mock import AsyncMock, MagicMock, Mock

import httpx
import pytest
import pytest_asyncio

from upcloud_api.core.api import UpCloudApi
from upcloud_api.core.client import UpCloudClient
from upcloud_api.core.models import UpCloudConfig

ScriptedResponse = Union[tuple[int, Any], Exception]


# ========== Configuration Fixtures ==========


@pytest.fixture
def upcloud_config() -> UpCloudConfig:
    """Provide an UpCloud configuration with a short poll interval for testing."""
    return UpCloudConfig(
        username="testuser",
        password="testpass",
        poll_interval=0.01,
    )


@pytest.fixture
def upcloud_config_dict() -> dict[str, Any]:
    """Provide a dictionary version of an UpCloud profile."""
    return {
        "username": "testuser",
        "password": "testpass",
        "api_url": "https://api.upcloud.com",
        "verify_ssl": True,
    }


# ========== Fake UpCloud Backend ==========


class FakeUpCloud(httpx.MockTransport):
    """Scripted UpCloud backend.

    Responses are registered per (method, path) where path is relative to the
    versioned API root. Each request consumes the next scripted response; the
    last one keeps being served. Unrouted requests get a 404 error body.
    """

    def __init__(self, api_version: str = "1.2"):
        self.prefix = f"/{api_version}/"
        self.routes: dict[tuple[str, str], list[ScriptedResponse]] = {}
        self.requests: list[httpx.Request] = []
        super().__init__(self._handle_request)

    def add(self, method: str, path: str, *responses: ScriptedResponse) -> "FakeUpCloud":
        self.routes.setdefault((method, path), []).extend(responses)
        return self

    def requests_to(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if (r.method, self._relative(r)) == (method, path)]

    def body_of(self, request: httpx.Request) -> Any:
        return json.loads(request.content) if request.content else None

    def _relative(self, request: httpx.Request) -> str:
        path = request.url.path
        return path[len(self.prefix):] if path.startswith(self.prefix) else path

    def _handle_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, self._relative(request)))

        if not queue:
            return httpx.Response(
                404,
                json={"error": {"error_code": "NOT_FOUND", "error_message": "No such route"}},
                request=request,
            )

        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item

        status_code, body = item
        if body is None:
            return httpx.Response(status_code, request=request)
        if isinstance(body, bytes):
            return httpx.Response(status_code, content=body, request=request)
        return httpx.Response(status_code, json=body, request=request)


@pytest.fixture
def fake_upcloud() -> FakeUpCloud:
    """Provide a fresh scripted backend for each test."""
    return FakeUpCloud()


@pytest_asyncio.fixture
async def upcloud_client(upcloud_config, fake_upcloud):
    """Provide a client talking to the fake backend."""
    client = UpCloudClient(upcloud_config, transport=fake_upcloud)
    yield client
    await client.close()


@pytest_asyncio.fixture
async def upcloud_api(upcloud_client):
    """Provide an API facade talking to the fake backend."""
    return UpCloudApi(upcloud_client)


# ========== MCP Context Mocks ==========


@pytest.fixture
def mock_mcp_context():
    """Provide a mock MCP context for tool testing."""
    context = Mock()
    context.info = AsyncMock()
    context.warn = AsyncMock()
    context.error = AsyncMock()
    context.debug = AsyncMock()
    return context


@pytest.fixture
def mock_api():
    """Provide a mocked API facade; its async methods are AsyncMocks."""
    return MagicMock(spec=UpCloudApi)


# ========== Pytest Configuration ==========


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")
