"""Tests for DatabasePool: write connection, read connections, close."""

from __future__ import annotations

import pytest

from starhub.database import DatabasePool


@pytest.fixture
async def pool(tmp_path):
    db_pool = DatabasePool(str(tmp_path / "hub.db"), pool_size=2)
    await db_pool.initialize()
    yield db_pool
    await db_pool.close()


async def test_write_connection_has_schema(pool):
    conn = pool.get_write_connection()
    cursor = await conn.execute("SELECT COUNT(*) FROM users")
    assert (await cursor.fetchone())[0] == 0


async def test_reads_see_committed_writes(pool):
    writer = pool.get_write_connection()
    await writer.execute(
        "INSERT INTO users (id, username, password_hash, created_at) VALUES ('u1', 'u', 'h', 'x')"
    )
    await writer.commit()

    reader = await pool.acquire_read()
    try:
        cursor = await reader.execute("SELECT username FROM users WHERE id = 'u1'")
        assert (await cursor.fetchone())["username"] == "u"
    finally:
        await pool.release_read(reader)


async def test_uninitialized_pool_raises(tmp_path):
    with pytest.raises(RuntimeError, match="not initialized"):
        DatabasePool(str(tmp_path / "x.db")).get_write_connection()
