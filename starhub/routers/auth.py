"""Account router: registration and login.

Identity is established on the WebSocket by ``identify`` with the id
returned here; there are no session tokens.
"""

from __future__ import annotations

import logging

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException

from starhub.dependencies import get_db
from starhub.models import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    UserResponse,
)
from starhub.services import persistence

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# POST /api/register
# ---------------------------------------------------------------------------


@router.post("/register", response_model=RegisterResponse)
async def register(
    body: RegisterRequest,
    db: aiosqlite.Connection = Depends(get_db),
) -> RegisterResponse:
    """Create an account. 409 if the username is taken."""
    user = await persistence.create_user(db, body.username, body.password)
    logger.info("Registered user %s (%s)", user["username"], user["id"])
    return RegisterResponse(id=user["id"])


# ---------------------------------------------------------------------------
# POST /api/login
# ---------------------------------------------------------------------------


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    db: aiosqlite.Connection = Depends(get_db),
) -> LoginResponse:
    """Check credentials and return the user record."""
    user = await persistence.get_user_by_credentials(db, body.username, body.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid username or password")
    return LoginResponse(user=UserResponse(**user))
