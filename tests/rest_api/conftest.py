"""Fixtures for REST API endpoint tests.

The FastAPI app's lifespan is not run by ``ASGITransport``; instead
``app.state.db`` and ``app.state.hub`` are pointed at the test database
and a fresh Hub.
"""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from starhub.main import app


def assert_error_response(response, status_code, error_substring=None):
    assert response.status_code == status_code
    body = response.json()
    assert "error" in body
    if error_substring:
        assert error_substring in body["error"]
    return body


@pytest.fixture
async def client(fresh_db, hub):
    app.state.db = fresh_db
    app.state.hub = hub
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
