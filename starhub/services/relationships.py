"""Friend-relationship state machine: request -> pending -> accepted.

Rows are stored per ordered pair ``(requester, target)``. A pending row
exists in one direction only; accepting it writes both directions as
accepted in a single update so the pair reads as mutual from either side.

Every read-check-write sequence for a pair runs under that pair's
``asyncio.Lock``, because each database call is an ``await`` and other
events may be dispatched in between.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import aiosqlite

from starhub.exceptions import (
    AlreadyFriendsError,
    InvalidRequestError,
    RequestAlreadySentError,
    RequestNotFoundError,
)
from starhub.services import persistence
from starhub.services.events import EventKind, RelayEvent

logger = logging.getLogger(__name__)

PENDING = "pending"
ACCEPTED = "accepted"

Notifier = Callable[[RelayEvent], Awaitable[object]]


@dataclass
class Relationships:
    """Relationship view for one identity."""

    accepted: set[str] = field(default_factory=set)
    outgoing_pending: set[str] = field(default_factory=set)
    incoming_pending: set[str] = field(default_factory=set)


class RelationshipStore:
    """Request/accept friend relationships backed by the ``relationships`` table.

    *notify* receives ``friend_request`` / ``friend_accepted`` events after a
    successful mutation; the hub wires it to ``Relay.route`` so the other
    party hears about it if they are online.
    """

    def __init__(self, db: aiosqlite.Connection, *, notify: Notifier | None = None) -> None:
        self._db = db
        self._notify = notify
        # Per-pair locks with the number of holders and waiters; an entry is
        # dropped as soon as that count reaches zero.
        self._locks: dict[frozenset[str], tuple[asyncio.Lock, int]] = {}

    @contextlib.asynccontextmanager
    async def _pair_lock(self, a: str, b: str):
        key = frozenset((a, b))
        lock, users = self._locks.get(key, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[key] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[key]
            if users == 1:
                del self._locks[key]
            else:
                self._locks[key] = (lock, users - 1)

    async def _emit(self, kind: EventKind, sender: str, target: str) -> None:
        if self._notify is not None:
            await self._notify(RelayEvent(kind=kind, sender=sender, target=target))

    async def request_relationship(self, requester: str, target: str) -> str:
        """Ask *target* to become *requester*'s friend.

        Returns the resulting status. If *target* had already asked
        *requester*, the crossing request accepts it and ``"accepted"`` is
        returned; otherwise a pending row is written and ``"pending"`` is
        returned.

        Raises AlreadyFriendsError, RequestAlreadySentError or
        InvalidRequestError (self-request).
        """
        if requester == target:
            raise InvalidRequestError("Cannot send a friend request to yourself")

        async with self._pair_lock(requester, target):
            forward = await persistence.get_relationship_row(self._db, requester, target)
            backward = await persistence.get_relationship_row(self._db, target, requester)

            if ACCEPTED in (_status(forward), _status(backward)):
                raise AlreadyFriendsError("Already friends")
            if _status(forward) == PENDING:
                raise RequestAlreadySentError("Friend request already sent")

            if _status(backward) == PENDING:
                await self._accept_locked(accepter=requester, requester=target)
                crossed = True
            else:
                inserted = await persistence.insert_relationship_row_if_absent(
                    self._db, requester, target, PENDING
                )
                if not inserted:
                    raise RequestAlreadySentError("Friend request already sent")
                crossed = False

        if crossed:
            logger.info("Crossed friend requests between %s and %s: accepted", requester, target)
            await self._emit(EventKind.FRIEND_ACCEPTED, requester, target)
            return ACCEPTED

        logger.info("Friend request %s -> %s pending", requester, target)
        await self._emit(EventKind.FRIEND_REQUEST, requester, target)
        return PENDING

    async def accept_relationship(self, accepter: str, requester: str) -> None:
        """Accept the pending request ``requester -> accepter``.

        Raises RequestNotFoundError if there is no such pending row.
        """
        async with self._pair_lock(accepter, requester):
            row = await persistence.get_relationship_row(self._db, requester, accepter)
            if _status(row) != PENDING:
                raise RequestNotFoundError("Friend request not found")
            await self._accept_locked(accepter=accepter, requester=requester)

        logger.info("Friend request %s -> %s accepted", requester, accepter)
        await self._emit(EventKind.FRIEND_ACCEPTED, accepter, requester)

    async def _accept_locked(self, *, accepter: str, requester: str) -> None:
        await persistence.upsert_relationship_rows(
            self._db,
            [(requester, accepter, ACCEPTED), (accepter, requester, ACCEPTED)],
        )

    async def list_relationships(self, identity: str) -> Relationships:
        """Accepted friends plus outgoing and incoming pending requests for *identity*."""
        result = Relationships()
        for row in await persistence.list_relationship_rows(self._db, identity):
            if row["requester_id"] == identity:
                other = row["target_id"]
                if row["status"] == ACCEPTED:
                    result.accepted.add(other)
                else:
                    result.outgoing_pending.add(other)
            else:
                other = row["requester_id"]
                if row["status"] == ACCEPTED:
                    result.accepted.add(other)
                else:
                    result.incoming_pending.add(other)
        return result

    async def are_friends(self, a: str, b: str) -> bool:
        """True iff an accepted row exists for the pair in either direction."""
        async with self._pair_lock(a, b):
            forward = await persistence.get_relationship_row(self._db, a, b)
            if _status(forward) == ACCEPTED:
                return True
            backward = await persistence.get_relationship_row(self._db, b, a)
            return _status(backward) == ACCEPTED


def _status(row: dict | None) -> str | None:
    return row["status"] if row is not None else None
