"""Connection registry: one live connection per identity.

Singleton-per-hub class created by :class:`starhub.services.hub.Hub` and
passed to the presence broadcaster and relay. Unlike a fan-out manager,
each identity maps to exactly one connection; registering again
supersedes the previous binding.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from uuid import uuid4

from starlette.websockets import WebSocket

logger = logging.getLogger(__name__)

PresenceListener = Callable[[str, bool], Awaitable[None]]


@dataclass(eq=False)
class Connection:
    """One live WebSocket plus the identity bound to it (if any).

    Compared by object identity: two handles are the same connection only if
    they are the same object.
    """

    websocket: WebSocket
    connection_id: str = field(default_factory=lambda: str(uuid4()))
    identity: str | None = None

    async def send(self, message: dict) -> bool:
        """Send *message* as JSON. Returns ``False`` if the socket is gone."""
        try:
            await self.websocket.send_json(message)
        except Exception as exc:
            logger.debug("Send to connection %s failed: %s", self.connection_id, exc)
            return False
        return True


class ConnectionRegistry:
    """Maps identities to their single active :class:`Connection`."""

    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}
        self._listeners: list[PresenceListener] = []

    def add_listener(self, listener: PresenceListener) -> None:
        """Call ``listener(identity, online)`` after every presence change."""
        self._listeners.append(listener)

    async def _emit(self, identity: str, online: bool) -> None:
        for listener in self._listeners:
            await listener(identity, online)

    async def register(self, identity: str, connection: Connection) -> Connection | None:
        """Bind *identity* to *connection*, superseding any prior binding.

        Returns the superseded connection, if there was one. Always emits
        ``online`` for *identity*.
        """
        previous = self._connections.get(identity)
        self._connections[identity] = connection
        if previous is not None and previous is not connection:
            logger.info(
                "Identity %s superseded: connection %s replaced by %s",
                identity,
                previous.connection_id,
                connection.connection_id,
            )
        await self._emit(identity, True)
        return previous if previous is not connection else None

    def lookup(self, identity: str) -> Connection | None:
        """Return the connection bound to *identity*, or ``None``."""
        return self._connections.get(identity)

    async def release(self, identity: str, connection: Connection) -> bool:
        """Remove the binding for *identity* if it still points at *connection*.

        A stale release from a superseded connection is a no-op, so it can
        never evict a newer registration. Emits ``offline`` only when a
        binding was actually removed.
        """
        if self._connections.get(identity) is not connection:
            return False
        del self._connections[identity]
        await self._emit(identity, False)
        return True

    def snapshot(self) -> set[str]:
        """Return the identities that are currently reachable."""
        return set(self._connections)

    def is_online(self, identity: str) -> bool:
        return identity in self._connections

    def connections(self) -> list[Connection]:
        """Return every registered connection (a copy, safe to iterate while sending)."""
        return list(self._connections.values())

    async def send_to_identity(self, identity: str, message: dict) -> bool:
        """Send *message* to the connection bound to *identity*.

        Returns ``False`` if nobody is bound or the send failed.
        """
        connection = self._connections.get(identity)
        if connection is None:
            return False
        return await connection.send(message)
