"""
Pytest configuration and shared fixtures
"""

import json
from datetime import datetime, timezone

import httpx
import pytest

from dbx.core.client import QueryClient
from dbx.core.config import Settings


@pytest.fixture(scope="session")
def anyio_backend():
    """Configure anyio to only use asyncio backend."""
    return "asyncio"


@pytest.fixture
def sample_data():
    """Sample rows for testing"""
    return [
        {"name": "Alice", "age": 30, "city": "NYC"},
        {"name": "Bob", "age": 25, "city": "LA"},
        {"name": "Charlie", "age": 35, "city": "SF"},
    ]


@pytest.fixture
def fixed_now():
    """A fixed timezone-aware timestamp"""
    return datetime(2024, 5, 1, 12, 30, 45, tzinfo=timezone.utc)


@pytest.fixture
def settings():
    """Default settings"""
    return Settings()


class EndpointStub:
    """
    In-memory query endpoint

    Maps query text to (status, body). Unknown queries answer 404 with a
    plain-text body; requests without a query answer ``probe_status``.
    """

    def __init__(self, responses=None, probe_status=200):
        self.responses = dict(responses or {})
        self.probe_status = probe_status
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        query = request.url.params.get("q")
        if query is None:
            return httpx.Response(self.probe_status, text="ok")
        status, body = self.responses.get(query, (404, "unknown query"))
        if not isinstance(body, str):
            body = json.dumps(body)
        return httpx.Response(status, text=body)


@pytest.fixture
def endpoint(sample_data):
    """Endpoint stub preloaded with a few queries"""
    return EndpointStub(
        {
            "select * from people": (200, sample_data),
            "select 1": (200, {"ok": 1}),
            "select nothing": (200, []),
            "scalars": (200, [1, 2, 3]),
            "boom": (500, "internal error"),
        }
    )


@pytest.fixture
def client(endpoint):
    """QueryClient talking to the endpoint stub"""
    client = QueryClient("http://db.test/db", transport=httpx.MockTransport(endpoint))
    yield client
    client.close()
