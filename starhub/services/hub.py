"""The hub: owns the registry, presence, relationships and relay for one server.

Created in the FastAPI lifespan and stored on ``app.state.hub``; tests
build their own instances against an in-memory database.
"""

from __future__ import annotations

import logging

import aiosqlite
from starlette.websockets import WebSocket

from starhub.config import Settings, get_settings
from starhub.services import persistence
from starhub.services.events import RelayEvent, RouteResult
from starhub.services.presence import PresenceBroadcaster
from starhub.services.registry import Connection, ConnectionRegistry
from starhub.services.relationships import RelationshipStore
from starhub.services.relay import Relay
from starhub.services.session import SessionLifecycle

logger = logging.getLogger(__name__)


class Hub:
    """Wires the core components together around one database connection."""

    def __init__(self, db: aiosqlite.Connection, *, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self._db = db
        self.registry = ConnectionRegistry()
        self.broadcaster = PresenceBroadcaster(self.registry)
        self.registry.add_listener(self.broadcaster.broadcast_status)
        self.relationships = RelationshipStore(db, notify=self._notify)
        self.relay = Relay(
            self.registry,
            relationships=self.relationships,
            message_log=self._log_message,
            friends_only_chat=settings.friends_only_chat,
            friends_only_calls=settings.friends_only_calls,
        )

    async def _notify(self, event: RelayEvent) -> RouteResult:
        return await self.relay.route(event)

    async def _log_message(self, event: RelayEvent) -> dict:
        return await persistence.append_message(
            self._db,
            sender_id=event.sender,
            recipient_id=event.target,
            content=event.payload.get("text") or "",
            media_url=event.payload.get("media_url"),
        )

    def open_session(self, websocket: WebSocket) -> SessionLifecycle:
        """Start tracking a freshly accepted *websocket*."""
        return SessionLifecycle(
            Connection(websocket),
            registry=self.registry,
            broadcaster=self.broadcaster,
            relationships=self.relationships,
            relay=self.relay,
        )

    async def close(self) -> None:
        """Close every registered socket on server shutdown."""
        for connection in self.registry.connections():
            try:
                await connection.websocket.close(code=1001)
            except Exception as exc:
                logger.debug("Closing %s failed: %s", connection.connection_id, exc)
