"""Shared pytest fixtures for starhub tests.

Provides:
- ``fresh_db``: in-memory SQLite initialised with the real schema
- ``test_settings``: Settings with defaults only (no ``.env``)
- ``hub``: a Hub over ``fresh_db``
- ``make_ws``: factory for AsyncMock websockets
- ``insert_user`` / ``insert_relationship`` helpers
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import aiosqlite
import pytest

from starhub.config import Settings
from starhub.database import init_db
from starhub.services.hub import Hub
from starhub.services.persistence import hash_password

from .factories import make_user


# ---------------------------------------------------------------------------
# Helpers: insert rows via parameterised SQL
# ---------------------------------------------------------------------------


async def insert_user(db: aiosqlite.Connection, user: dict) -> None:
    await db.execute(
        "INSERT INTO users (id, username, password_hash, avatar_url, created_at) "
        "VALUES (?, ?, ?, ?, ?)",
        (
            user["id"],
            user["username"],
            hash_password(user["password"]),
            user["avatar_url"],
            user["created_at"],
        ),
    )
    await db.commit()


async def insert_relationship(db: aiosqlite.Connection, row: dict) -> None:
    await db.execute(
        "INSERT INTO relationships (requester_id, target_id, status, created_at, updated_at) "
        "VALUES (?, ?, ?, ?, ?)",
        (
            row["requester_id"],
            row["target_id"],
            row["status"],
            row["created_at"],
            row["updated_at"],
        ),
    )
    await db.commit()


def sent_messages(ws: AsyncMock) -> list[dict]:
    """Every JSON payload sent through a mock websocket, in order."""
    return [c.args[0] for c in ws.send_json.await_args_list]


def sent_types(ws: AsyncMock) -> list[str]:
    return [m["type"] for m in sent_messages(ws)]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def fresh_db():
    """In-memory SQLite database with the full starhub schema."""
    conn = await aiosqlite.connect(":memory:")
    conn.row_factory = aiosqlite.Row
    await init_db(conn)
    yield conn
    await conn.close()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def hub(fresh_db, test_settings) -> Hub:
    return Hub(fresh_db, settings=test_settings)


@pytest.fixture
def make_ws():
    """Return a factory for mock WebSockets with an async ``send_json``."""

    def _make(*, name: str | None = None, dead: bool = False) -> AsyncMock:
        ws = AsyncMock(name=name)
        ws.send_json = AsyncMock(name=f"{name}.send_json" if name else "send_json")
        if dead:
            ws.send_json.side_effect = RuntimeError("connection closed")
        return ws

    return _make


@pytest.fixture
async def alice(fresh_db):
    user = make_user(id="alice", username="alice")
    await insert_user(fresh_db, user)
    return user


@pytest.fixture
async def bob(fresh_db):
    user = make_user(id="bob", username="bob")
    await insert_user(fresh_db, user)
    return user
