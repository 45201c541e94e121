"""FastAPI dependency injection functions.

Provides:
- ``get_db(request)``: Returns a database connection from the pool.
- ``get_hub(request)``: Returns the hub created by the lifespan.
- ``get_existing_user(user_id, db)``: Loads a user or raises 404.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import aiosqlite
from fastapi import Depends, Request

from starhub.database import DatabasePool
from starhub.exceptions import NotFoundError
from starhub.services import persistence
from starhub.services.hub import Hub


# ---------------------------------------------------------------------------
# get_db
# ---------------------------------------------------------------------------


async def get_db(request: Request) -> AsyncIterator[aiosqlite.Connection]:
    """Return a database connection from the pool (or shared connection for tests).

    For GET/HEAD requests, acquires a read connection from the pool.
    For POST/PUT/PATCH/DELETE requests, returns the dedicated write connection.
    """
    # Use isinstance check to ensure it's actually a DatabasePool, not a mock
    pool = getattr(request.app.state, "db_pool", None)
    if isinstance(pool, DatabasePool):
        if request.method in ("POST", "PATCH", "DELETE", "PUT"):
            yield pool.get_write_connection()
        else:
            conn = await pool.acquire_read()
            try:
                yield conn
            finally:
                await pool.release_read(conn)
    else:
        # Fallback for tests: use shared connection
        yield request.app.state.db


# ---------------------------------------------------------------------------
# get_hub
# ---------------------------------------------------------------------------


def get_hub(request: Request) -> Hub:
    return request.app.state.hub


# ---------------------------------------------------------------------------
# get_existing_user
# ---------------------------------------------------------------------------


async def get_existing_user(
    user_id: str,
    db: aiosqlite.Connection = Depends(get_db),
) -> dict:
    """Load the user named by the ``user_id`` path parameter.

    Raises ``NotFoundError`` (404) if there is no such user.
    """
    user = await persistence.get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user
