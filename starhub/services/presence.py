"""Broadcast presence changes to every other connected identity."""

from __future__ import annotations

import logging

from starhub.services import ws_messages
from starhub.services.registry import Connection, ConnectionRegistry

logger = logging.getLogger(__name__)


class PresenceBroadcaster:
    """Tells connected clients who is reachable.

    Subscribed to the registry's change signal by the hub, so every
    register/release yields exactly one ``user_status`` per other
    connection. Not used for targeted relay.
    """

    def __init__(self, registry: ConnectionRegistry) -> None:
        self._registry = registry

    async def broadcast_status(self, identity: str, online: bool) -> int:
        """Send ``user_status`` for *identity* to everyone but *identity* itself.

        Best-effort: a failed send is skipped. Returns the number of
        connections that accepted the message.
        """
        message = ws_messages.user_status(user_id=identity, online=online)
        delivered = 0
        for other in self._registry.snapshot():
            if other == identity:
                continue
            connection = self._registry.lookup(other)
            if connection is not None and await connection.send(message):
                delivered += 1
        logger.info(
            "User %s is now %s (notified %d)",
            identity,
            "online" if online else "offline",
            delivered,
        )
        return delivered

    async def sync(self, connection: Connection) -> None:
        """Send the full set of reachable identities (minus its own) to *connection*."""
        others = self._registry.snapshot()
        others.discard(connection.identity)
        await connection.send(ws_messages.presence_snapshot(user_ids=list(others)))
