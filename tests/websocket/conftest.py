"""WebSocket test configuration.

Creates a minimal FastAPI test app that mounts the WebSocket router and
the friends router, backed by an in-memory database and a fresh Hub.
"""

import aiosqlite
import pytest
from fastapi import FastAPI
from starlette.testclient import TestClient

from starhub.config import Settings
from starhub.database import init_db
from starhub.routers import friends
from starhub.routers.websocket import router as ws_router
from starhub.services.hub import Hub


def create_test_app() -> FastAPI:
    """Build a minimal FastAPI app with the WebSocket and friends routers."""
    test_app = FastAPI()
    test_app.include_router(ws_router)
    test_app.include_router(friends.router, prefix="/api/friends")
    return test_app


def identify(ws, user_id: str) -> dict:
    """Identify and consume the ``identified`` ack and presence snapshot."""
    ws.send_json({"type": "identify", "userId": user_id})
    ack = ws.receive_json()
    assert ack == {"type": "identified", "userId": user_id}
    snapshot = ws.receive_json()
    assert snapshot["type"] == "presence_snapshot"
    return snapshot


@pytest.fixture
async def ws_db():
    """In-memory SQLite database initialised via ``init_db``."""
    conn = await aiosqlite.connect(":memory:")
    conn.row_factory = aiosqlite.Row
    await init_db(conn)
    yield conn
    await conn.close()


@pytest.fixture
def ws_app(ws_db):
    """Minimal app with a Hub over the test database."""
    app = create_test_app()
    app.state.db = ws_db
    app.state.hub = Hub(ws_db, settings=Settings(_env_file=None))
    return app


@pytest.fixture
def client(ws_app):
    """TestClient whose connections all share one event loop."""
    with TestClient(ws_app) as c:
        yield c
