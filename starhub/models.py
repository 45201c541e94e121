"""Pydantic request/response models for the starhub REST API.

JSON field names are camelCase (``avatarUrl``, ``requesterId`` ...) to
match the messenger client; snake_case names are accepted on input too.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(_CamelModel):
    """Body for ``POST /api/register``."""

    username: str = Field(..., min_length=1, max_length=32, pattern=r"^\S+$")
    password: str = Field(..., min_length=1, max_length=256)


class LoginRequest(_CamelModel):
    """Body for ``POST /api/login``."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AvatarRequest(_CamelModel):
    """Body for ``PUT /api/users/{user_id}/avatar``."""

    avatar_url: str | None = Field(default=None, max_length=2048)


class FriendRequestBody(_CamelModel):
    """Body for ``POST /api/friends/requests``."""

    requester_id: str = Field(..., min_length=1)
    target_id: str = Field(..., min_length=1)


class AcceptFriendRequestBody(_CamelModel):
    """Body for ``POST /api/friends/requests/accept``."""

    accepter_id: str = Field(..., min_length=1)
    requester_id: str = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(_CamelModel):
    id: str
    username: str
    avatar_url: str | None = None


class RegisterResponse(_CamelModel):
    success: bool = True
    id: str


class LoginResponse(_CamelModel):
    success: bool = True
    user: UserResponse


class UserSearchResponse(_CamelModel):
    success: bool = True
    users: list[UserResponse]


class FriendRequestResponse(_CamelModel):
    success: bool = True
    status: Literal["pending", "accepted"]


class FriendResponse(UserResponse):
    """A related user plus whether they are connected right now."""

    is_online: bool = False


class RelationshipsResponse(_CamelModel):
    success: bool = True
    accepted: list[FriendResponse]
    outgoing_pending: list[FriendResponse]
    incoming_pending: list[FriendResponse]


class MessageResponse(_CamelModel):
    id: str
    sender_id: str
    recipient_id: str
    content: str
    media_url: str | None = None
    created_at: datetime


class MessageListResponse(_CamelModel):
    messages: list[MessageResponse]


class SuccessResponse(_CamelModel):
    success: bool = True
