"""Per-connection session lifecycle: unbound -> bound -> closed.

An unbound session accepts only ``identify``; anything else is dropped
silently. Once bound, chat, call signaling and friend operations are
routed. ``close()`` releases the registry binding (which broadcasts
``offline``) if the session was bound. The bound identity lives on the
:class:`Connection` so cleanup does not depend on the transport callback.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any

from starhub.exceptions import PersistenceError, RelationshipError
from starhub.services import ws_events, ws_messages
from starhub.services.events import EventKind, RelayEvent
from starhub.services.presence import PresenceBroadcaster
from starhub.services.registry import Connection, ConnectionRegistry
from starhub.services.relationships import RelationshipStore
from starhub.services.relay import Relay

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNBOUND = "unbound"
    BOUND = "bound"
    CLOSED = "closed"


class SessionLifecycle:
    """Drives one :class:`Connection` through its states and dispatches its frames."""

    def __init__(
        self,
        connection: Connection,
        *,
        registry: ConnectionRegistry,
        broadcaster: PresenceBroadcaster,
        relationships: RelationshipStore,
        relay: Relay,
    ) -> None:
        self.connection = connection
        self.state = SessionState.UNBOUND
        self._registry = registry
        self._broadcaster = broadcaster
        self._relationships = relationships
        self._relay = relay
        self._handlers = {
            ws_events.ChatMessageFrame: self._on_chat_message,
            ws_events.CallRequestFrame: self._on_call_request,
            ws_events.CallAnswerFrame: self._on_call_answer,
            ws_events.IceCandidateFrame: self._on_ice_candidate,
            ws_events.EndCallFrame: self._on_end_call,
            ws_events.FriendRequestFrame: self._on_friend_request,
            ws_events.FriendAcceptFrame: self._on_friend_accept,
        }

    @property
    def identity(self) -> str | None:
        return self.connection.identity

    # -----------------------------------------------------------------------
    # Transitions
    # -----------------------------------------------------------------------

    async def identify(self, identity: str) -> None:
        """Bind (or re-bind) this connection to *identity*."""
        if self.state is SessionState.CLOSED:
            return

        if self.state is SessionState.BOUND:
            if identity == self.identity and self._registry.lookup(identity) is self.connection:
                await self.connection.send(ws_messages.identified(user_id=identity))
                return
            if identity != self.identity:
                await self._registry.release(self.identity, self.connection)

        self.connection.identity = identity
        self.state = SessionState.BOUND
        await self._registry.register(identity, self.connection)
        logger.info("Connection %s identified as %s", self.connection.connection_id, identity)

        await self.connection.send(ws_messages.identified(user_id=identity))
        await self._broadcaster.sync(self.connection)

    async def close(self) -> None:
        """Tear the session down. Safe to call more than once."""
        if self.state is SessionState.CLOSED:
            return
        was_bound = self.state is SessionState.BOUND
        self.state = SessionState.CLOSED
        if was_bound:
            logger.info("User %s disconnected (%s)", self.identity, self.connection.connection_id)
            # Release and the offline broadcast run to completion even if the
            # endpoint task is being cancelled.
            await asyncio.shield(self._registry.release(self.identity, self.connection))
        else:
            logger.debug("Unbound connection %s closed", self.connection.connection_id)

    # -----------------------------------------------------------------------
    # Dispatch
    # -----------------------------------------------------------------------

    async def handle(self, data: Any) -> None:
        """Process one decoded client frame. Unknown or malformed frames are ignored."""
        if self.state is SessionState.CLOSED:
            return

        frame = ws_events.parse_frame(data)
        if frame is None:
            logger.debug("Ignored frame on %s: %r", self.connection.connection_id, data)
            return

        if isinstance(frame, ws_events.IdentifyFrame):
            await self.identify(frame.user_id)
            return

        if self.state is SessionState.UNBOUND:
            logger.debug("Dropped %s before identify on %s", frame.type, self.connection.connection_id)
            return

        handler = self._handlers[type(frame)]
        try:
            await handler(frame)
        except RelationshipError as exc:
            await self.connection.send(ws_messages.error(reason=exc.reason, message=exc.message))
        except PersistenceError as exc:
            await self.connection.send(
                ws_messages.error(reason="persistence_error", message=exc.message)
            )

    async def _route(self, kind: EventKind, target: str, **payload: Any) -> None:
        event = RelayEvent(
            kind=kind,
            sender=self.identity,
            target=target,
            payload=payload,
            origin=self.connection,
        )
        await self._relay.route(event)

    async def _on_chat_message(self, frame: ws_events.ChatMessageFrame) -> None:
        await self._route(
            EventKind.CHAT_MESSAGE,
            frame.to_user_id,
            text=frame.message,
            sender_name=frame.from_user_name,
            media_url=frame.media_url,
        )

    async def _on_call_request(self, frame: ws_events.CallRequestFrame) -> None:
        await self._route(
            EventKind.CALL_REQUEST,
            frame.to_user_id,
            sender_name=frame.from_user_name,
            sdp=frame.sdp,
        )

    async def _on_call_answer(self, frame: ws_events.CallAnswerFrame) -> None:
        await self._route(EventKind.CALL_ANSWER, frame.to_user_id, sdp=frame.sdp)

    async def _on_ice_candidate(self, frame: ws_events.IceCandidateFrame) -> None:
        await self._route(EventKind.ICE_CANDIDATE, frame.to_user_id, candidate=frame.candidate)

    async def _on_end_call(self, frame: ws_events.EndCallFrame) -> None:
        await self._route(EventKind.END_CALL, frame.to_user_id)

    async def _on_friend_request(self, frame: ws_events.FriendRequestFrame) -> None:
        status = await self._relationships.request_relationship(self.identity, frame.to_user_id)
        await self.connection.send(ws_messages.friend_update(user_id=frame.to_user_id, status=status))

    async def _on_friend_accept(self, frame: ws_events.FriendAcceptFrame) -> None:
        await self._relationships.accept_relationship(self.identity, frame.from_user_id)
        await self.connection.send(
            ws_messages.friend_update(user_id=frame.from_user_id, status="accepted")
        )
