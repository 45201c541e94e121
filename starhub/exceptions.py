"""Domain exception classes for starhub.

These exceptions are raised by service-layer code. The HTTP surface
translates them into JSON error responses via handlers registered in
``main.py``; the WebSocket surface turns them into ``error`` frames.
"""

from __future__ import annotations


class NotFoundError(Exception):
    """Raised when a requested resource does not exist."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConflictError(Exception):
    """Raised when an action conflicts with current state (e.g., duplicate username)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PersistenceError(Exception):
    """Raised when the database rejects a read or write.

    Wraps the underlying ``aiosqlite.Error``; never retried automatically.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# ---------------------------------------------------------------------------
# Relationship errors
# ---------------------------------------------------------------------------


class RelationshipError(Exception):
    """Base class for friend-request failures.

    ``reason`` is a stable machine-readable string surfaced to clients.
    """

    reason: str = "relationship_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AlreadyFriendsError(RelationshipError):
    reason = "already_friends"


class RequestAlreadySentError(RelationshipError):
    reason = "request_already_sent"


class RequestNotFoundError(RelationshipError):
    reason = "request_not_found"


class InvalidRequestError(RelationshipError):
    """Raised for requests that can never succeed, e.g. befriending yourself."""

    reason = "invalid_request"
