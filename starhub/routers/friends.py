"""Friends router: send and accept friend requests, list relationships.

The relationship state machine lives in the hub's ``RelationshipStore``;
this router only checks that both users exist and shapes the responses.
Online flags come from the connection registry.
"""

from __future__ import annotations

import aiosqlite
from fastapi import APIRouter, Depends

from starhub.dependencies import get_db, get_existing_user, get_hub
from starhub.exceptions import NotFoundError
from starhub.models import (
    AcceptFriendRequestBody,
    FriendRequestBody,
    FriendRequestResponse,
    FriendResponse,
    RelationshipsResponse,
    SuccessResponse,
)
from starhub.services import persistence
from starhub.services.hub import Hub

router = APIRouter()


async def _require_users(db: aiosqlite.Connection, *user_ids: str) -> None:
    for user_id in user_ids:
        if await persistence.get_user(db, user_id) is None:
            raise NotFoundError("User not found")


async def _describe(db: aiosqlite.Connection, hub: Hub, user_ids: set[str]) -> list[FriendResponse]:
    """Resolve ids to user records with online flags, sorted by username.

    Ids with no user row (identities that never registered) are skipped.
    """
    friends = []
    for user_id in user_ids:
        user = await persistence.get_user(db, user_id)
        if user is None:
            continue
        friends.append(FriendResponse(**user, is_online=hub.registry.is_online(user_id)))
    return sorted(friends, key=lambda f: f.username.lower())


# ---------------------------------------------------------------------------
# POST /api/friends/requests
# ---------------------------------------------------------------------------


@router.post("/requests", response_model=FriendRequestResponse)
async def send_friend_request(
    body: FriendRequestBody,
    db: aiosqlite.Connection = Depends(get_db),
    hub: Hub = Depends(get_hub),
) -> FriendRequestResponse:
    """Create a pending request (or accept a crossing one)."""
    await _require_users(db, body.requester_id, body.target_id)
    status = await hub.relationships.request_relationship(body.requester_id, body.target_id)
    return FriendRequestResponse(status=status)


# ---------------------------------------------------------------------------
# POST /api/friends/requests/accept
# ---------------------------------------------------------------------------


@router.post("/requests/accept", response_model=SuccessResponse)
async def accept_friend_request(
    body: AcceptFriendRequestBody,
    hub: Hub = Depends(get_hub),
) -> SuccessResponse:
    await hub.relationships.accept_relationship(body.accepter_id, body.requester_id)
    return SuccessResponse()


# ---------------------------------------------------------------------------
# GET /api/friends/{user_id}
# ---------------------------------------------------------------------------


@router.get("/{user_id}", response_model=RelationshipsResponse)
async def list_friends(
    user: dict = Depends(get_existing_user),
    db: aiosqlite.Connection = Depends(get_db),
    hub: Hub = Depends(get_hub),
) -> RelationshipsResponse:
    relationships = await hub.relationships.list_relationships(user["id"])
    return RelationshipsResponse(
        accepted=await _describe(db, hub, relationships.accepted),
        outgoing_pending=await _describe(db, hub, relationships.outgoing_pending),
        incoming_pending=await _describe(db, hub, relationships.incoming_pending),
    )
