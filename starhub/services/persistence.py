"""Persistence collaborator: users, relationship rows and the message log.

Plain async functions over an ``aiosqlite.Connection``, in the same shape
as the rest of the service layer (connection first, keyword options after).

Provides:
- ``create_user(db, username, password)`` / ``get_user_by_credentials(...)``
- ``get_user(db, user_id)`` / ``search_users_by_name_prefix(...)`` / ``set_avatar(...)``
- ``append_message(db, ...)`` / ``list_messages_for_identity(db, ...)``
- ``get_relationship_row`` / ``list_relationship_rows`` /
  ``insert_relationship_row_if_absent`` / ``upsert_relationship_row`` /
  ``upsert_relationship_rows``

Every ``aiosqlite.Error`` escapes as :class:`PersistenceError`.
"""

from __future__ import annotations

import functools
import logging
from datetime import datetime, timezone
from uuid import uuid4

import aiosqlite
import bcrypt

from starhub.exceptions import ConflictError, PersistenceError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_PASSWORD_BYTES = 72
SEARCH_RESULT_LIMIT = 20

_USER_COLUMNS = "id, username, avatar_url, created_at"
_RELATIONSHIP_COLUMNS = "requester_id, target_id, status, created_at, updated_at"
_MESSAGE_COLUMNS = "id, sender_id, recipient_id, content, media_url, created_at"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now() -> str:
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat()


def _translate_errors(func):
    """Re-raise ``aiosqlite.Error`` from *func* as :class:`PersistenceError`."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except aiosqlite.Error as exc:
            logger.error("Persistence failure in %s: %s", func.__name__, exc, exc_info=True)
            raise PersistenceError(f"Database error in {func.__name__}") from exc

    return wrapper


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_PASSWORD_BYTES]


def hash_password(password: str) -> str:
    """Hash *password* with bcrypt (salt included in the result)."""
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode()


def verify_password(password: str, stored: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), stored.encode())
    except ValueError:
        return False


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@_translate_errors
async def create_user(db: aiosqlite.Connection, username: str, password: str) -> dict:
    """Insert a new user and return it (without the password hash).

    Raises :class:`ConflictError` if *username* is taken (case-insensitive).
    """
    user = {
        "id": str(uuid4()),
        "username": username,
        "avatar_url": None,
        "created_at": _now(),
    }
    try:
        await db.execute(
            "INSERT INTO users (id, username, password_hash, avatar_url, created_at) "
            "VALUES (?, ?, ?, ?, ?)",
            (user["id"], username, hash_password(password), None, user["created_at"]),
        )
    except aiosqlite.IntegrityError:
        raise ConflictError("User already exists")
    await db.commit()
    return user


@_translate_errors
async def get_user_by_credentials(
    db: aiosqlite.Connection, username: str, password: str
) -> dict | None:
    """Return the user matching *username*/*password*, or ``None``."""
    cursor = await db.execute(
        f"SELECT {_USER_COLUMNS}, password_hash FROM users WHERE username = ?",
        (username,),
    )
    row = await cursor.fetchone()
    if row is None:
        return None
    user = dict(row)
    if not verify_password(password, user.pop("password_hash")):
        return None
    return user


@_translate_errors
async def get_user(db: aiosqlite.Connection, user_id: str) -> dict | None:
    cursor = await db.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,))
    row = await cursor.fetchone()
    return dict(row) if row is not None else None


@_translate_errors
async def search_users_by_name_prefix(
    db: aiosqlite.Connection,
    prefix: str,
    *,
    exclude_id: str | None = None,
    limit: int = SEARCH_RESULT_LIMIT,
) -> list[dict]:
    """Return users whose username starts with *prefix* (case-insensitive).

    A blank prefix matches nobody rather than the whole table.
    """
    prefix = prefix.strip()
    if not prefix:
        return []
    cursor = await db.execute(
        f"SELECT {_USER_COLUMNS} FROM users "
        "WHERE username LIKE ? ESCAPE '\\' AND id != ? "
        "ORDER BY username LIMIT ?",
        (_escape_like(prefix) + "%", exclude_id or "", limit),
    )
    rows = await cursor.fetchall()
    return [dict(r) for r in rows]


@_translate_errors
async def set_avatar(db: aiosqlite.Connection, user_id: str, avatar_url: str | None) -> bool:
    """Set the avatar URL for *user_id*. Returns ``False`` if the user is unknown."""
    cursor = await db.execute(
        "UPDATE users SET avatar_url = ? WHERE id = ?", (avatar_url, user_id)
    )
    await db.commit()
    return cursor.rowcount > 0


# ---------------------------------------------------------------------------
# Message log
# ---------------------------------------------------------------------------


@_translate_errors
async def append_message(
    db: aiosqlite.Connection,
    *,
    sender_id: str,
    recipient_id: str,
    content: str,
    media_url: str | None = None,
) -> dict:
    """Append one chat message to the log and return the stored row."""
    message = {
        "id": str(uuid4()),
        "sender_id": sender_id,
        "recipient_id": recipient_id,
        "content": content,
        "media_url": media_url,
        "created_at": _now(),
    }
    await db.execute(
        f"INSERT INTO messages ({_MESSAGE_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
        (
            message["id"],
            sender_id,
            recipient_id,
            content,
            media_url,
            message["created_at"],
        ),
    )
    await db.commit()
    return message


@_translate_errors
async def list_messages_for_identity(
    db: aiosqlite.Connection,
    identity: str,
    *,
    peer: str | None = None,
    limit: int = 100,
) -> list[dict]:
    """Return the newest *limit* messages sent or received by *identity*.

    Narrowed to the conversation with *peer* when given. Oldest first.
    """
    if peer is None:
        cursor = await db.execute(
            f"SELECT {_MESSAGE_COLUMNS} FROM messages "
            "WHERE sender_id = ? OR recipient_id = ? "
            "ORDER BY created_at DESC, rowid DESC LIMIT ?",
            (identity, identity, limit),
        )
    else:
        cursor = await db.execute(
            f"SELECT {_MESSAGE_COLUMNS} FROM messages "
            "WHERE (sender_id = ? AND recipient_id = ?) "
            "   OR (sender_id = ? AND recipient_id = ?) "
            "ORDER BY created_at DESC, rowid DESC LIMIT ?",
            (identity, peer, peer, identity, limit),
        )
    rows = await cursor.fetchall()
    return [dict(r) for r in reversed(rows)]


# ---------------------------------------------------------------------------
# Relationship rows
# ---------------------------------------------------------------------------


@_translate_errors
async def get_relationship_row(
    db: aiosqlite.Connection, requester_id: str, target_id: str
) -> dict | None:
    """Return the row stored for the ordered pair, or ``None``."""
    cursor = await db.execute(
        f"SELECT {_RELATIONSHIP_COLUMNS} FROM relationships "
        "WHERE requester_id = ? AND target_id = ?",
        (requester_id, target_id),
    )
    row = await cursor.fetchone()
    return dict(row) if row is not None else None


@_translate_errors
async def list_relationship_rows(db: aiosqlite.Connection, identity: str) -> list[dict]:
    """Return every row where *identity* is the requester or the target."""
    cursor = await db.execute(
        f"SELECT {_RELATIONSHIP_COLUMNS} FROM relationships "
        "WHERE requester_id = ? OR target_id = ?",
        (identity, identity),
    )
    rows = await cursor.fetchall()
    return [dict(r) for r in rows]


@_translate_errors
async def insert_relationship_row_if_absent(
    db: aiosqlite.Connection, requester_id: str, target_id: str, status: str = "pending"
) -> bool:
    """Insert-or-ignore keyed by the ordered pair. Returns ``True`` if inserted."""
    now = _now()
    cursor = await db.execute(
        f"INSERT OR IGNORE INTO relationships ({_RELATIONSHIP_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
        (requester_id, target_id, status, now, now),
    )
    await db.commit()
    return cursor.rowcount == 1


async def upsert_relationship_row(
    db: aiosqlite.Connection, requester_id: str, target_id: str, status: str
) -> None:
    """Insert or overwrite the status of one ordered pair."""
    await upsert_relationship_rows(db, [(requester_id, target_id, status)])


@_translate_errors
async def upsert_relationship_rows(
    db: aiosqlite.Connection, rows: list[tuple[str, str, str]]
) -> None:
    """Insert or overwrite several ``(requester, target, status)`` rows.

    All rows go through a single ``executemany`` followed by one commit, so
    other coroutines sharing *db* never see a partial update. Rolls back
    on failure.
    """
    now = _now()
    try:
        await db.executemany(
            f"INSERT INTO relationships ({_RELATIONSHIP_COLUMNS}) VALUES (?, ?, ?, ?, ?) "
            "ON CONFLICT(requester_id, target_id) "
            "DO UPDATE SET status = excluded.status, updated_at = excluded.updated_at",
            [(requester, target, status, now, now) for requester, target, status in rows],
        )
        await db.commit()
    except aiosqlite.Error:
        await db.rollback()
        raise
