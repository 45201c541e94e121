"""Users router: search by name prefix and avatar updates."""

from __future__ import annotations

import aiosqlite
from fastapi import APIRouter, Depends, Query

from starhub.dependencies import get_db, get_existing_user
from starhub.models import AvatarRequest, UserResponse, UserSearchResponse
from starhub.services import persistence

router = APIRouter()


# ---------------------------------------------------------------------------
# GET /api/users/search?q=...&exclude=...
# ---------------------------------------------------------------------------


@router.get("/search", response_model=UserSearchResponse)
async def search_users(
    q: str = Query(default="", max_length=64),
    exclude: str | None = Query(default=None),
    db: aiosqlite.Connection = Depends(get_db),
) -> UserSearchResponse:
    """Users whose name starts with *q*, minus *exclude* (usually the caller)."""
    rows = await persistence.search_users_by_name_prefix(db, q, exclude_id=exclude)
    return UserSearchResponse(users=[UserResponse(**row) for row in rows])


# ---------------------------------------------------------------------------
# PUT /api/users/{user_id}/avatar
# ---------------------------------------------------------------------------


@router.put("/{user_id}/avatar", response_model=UserResponse)
async def set_avatar(
    body: AvatarRequest,
    user: dict = Depends(get_existing_user),
    db: aiosqlite.Connection = Depends(get_db),
) -> UserResponse:
    await persistence.set_avatar(db, user["id"], body.avatar_url)
    return UserResponse(**{**user, "avatar_url": body.avatar_url})
