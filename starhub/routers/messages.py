"""Message history router."""

from __future__ import annotations

import aiosqlite
from fastapi import APIRouter, Depends, Query

from starhub.config import get_settings
from starhub.dependencies import get_db, get_existing_user
from starhub.models import MessageListResponse, MessageResponse
from starhub.services import persistence

router = APIRouter()


@router.get("/{user_id}", response_model=MessageListResponse)
async def list_messages(
    user: dict = Depends(get_existing_user),
    peer: str | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1, le=1000),
    db: aiosqlite.Connection = Depends(get_db),
) -> MessageListResponse:
    """Messages sent or received by the user, oldest first; optionally one conversation."""
    rows = await persistence.list_messages_for_identity(
        db,
        user["id"],
        peer=peer,
        limit=limit or get_settings().message_history_limit,
    )
    return MessageListResponse(messages=[MessageResponse(**row) for row in rows])
