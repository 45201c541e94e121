"""FastAPI application entry point.

Application wiring: lifespan, middleware stack, router mounting, exception handlers.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from starhub.config import get_settings
from starhub.database import DatabasePool
from starhub.exceptions import (
    AlreadyFriendsError,
    ConflictError,
    InvalidRequestError,
    NotFoundError,
    PersistenceError,
    RelationshipError,
    RequestAlreadySentError,
    RequestNotFoundError,
)
from starhub.routers import auth, friends, health, messages, users
from starhub.routers.websocket import router as ws_router
from starhub.services.hub import Hub

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(application: FastAPI):
    """Open the database pool and build the hub on startup; tear down on shutdown."""
    settings = get_settings()

    db_pool = DatabasePool(settings.database_path, pool_size=settings.db_pool_size)
    await db_pool.initialize()

    application.state.db_pool = db_pool
    application.state.db = db_pool.get_write_connection()
    application.state.hub = Hub(application.state.db, settings=settings)
    logger.info("Hub started on database %s", settings.database_path)

    yield

    await application.state.hub.close()
    await db_pool.close()
    logger.info("Hub stopped")


# ---------------------------------------------------------------------------
# Custom Middleware
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status_code, duration_ms for every request."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.monotonic()
        response = await call_next(request)
        duration_ms = (time.monotonic() - start_time) * 1000

        logger.info(
            "%s %s %d %.1fms",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Catch unhandled exceptions and return a standard JSON 500 response."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(
                "Unhandled exception on %s %s: %s",
                request.method,
                request.url.path,
                exc,
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content={"error": "Internal server error", "details": str(exc)},
            )


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(title="starhub", lifespan=lifespan)

# -- Middleware stack (applied in reverse order of add_middleware calls) --
# Order: CORS -> RequestLogging -> ErrorHandling

settings = get_settings()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["Content-Type"],
)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(ErrorHandlingMiddleware)


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

_RELATIONSHIP_STATUS: dict[type[RelationshipError], int] = {
    AlreadyFriendsError: 409,
    RequestAlreadySentError: 409,
    RequestNotFoundError: 404,
    InvalidRequestError: 422,
}


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"error": exc.message})


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    return JSONResponse(status_code=409, content={"error": exc.message})


@app.exception_handler(RelationshipError)
async def relationship_handler(request: Request, exc: RelationshipError):
    return JSONResponse(
        status_code=_RELATIONSHIP_STATUS.get(type(exc), 400),
        content={"error": exc.message, "reason": exc.reason},
    )


@app.exception_handler(PersistenceError)
async def persistence_handler(request: Request, exc: PersistenceError):
    return JSONResponse(status_code=503, content={"error": exc.message})


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Normalize HTTPException responses to use the standard error format."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
    )


# -- Routers --
app.include_router(auth.router, prefix="/api", tags=["auth"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(friends.router, prefix="/api/friends", tags=["friends"])
app.include_router(messages.router, prefix="/api/messages", tags=["messages"])
app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(ws_router)
