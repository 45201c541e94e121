"""Relay: route one typed event to the connection bound to its target.

Provides ``Relay.route(event) -> RouteResult``:

1. If the event kind needs an accepted relationship (configurable for chat
   and for call signaling), ask the relationship store; refuse with
   ``FORBIDDEN`` otherwise.
2. Look the target up in the registry; ``TARGET_UNREACHABLE`` if absent
   (or if the send fails because the socket is mid-disconnect). An
   unreachable ``call_request`` sends ``call_failed`` back to the caller.
3. Deliver. Chat messages are also echoed to the sender and appended to
   the message log.

Signaling payloads (``sdp``/``candidate``) are passed through by reference.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from starhub.services import ws_messages
from starhub.services.events import CALL_SIGNALING_KINDS, EventKind, RelayEvent, RouteResult
from starhub.services.registry import Connection, ConnectionRegistry

if TYPE_CHECKING:
    from starhub.services.relationships import RelationshipStore

logger = logging.getLogger(__name__)

MessageLog = Callable[[RelayEvent], Awaitable[object]]


def render(event: RelayEvent) -> dict:
    """Build the outbound frame for *event*."""
    payload = event.payload
    sender = event.sender
    kind = event.kind
    if kind is EventKind.CHAT_MESSAGE:
        return ws_messages.chat_message(
            from_user_id=sender,
            to_user_id=event.target,
            from_user_name=payload.get("sender_name"),
            message=payload.get("text", ""),
            media_url=payload.get("media_url"),
        )
    if kind is EventKind.CALL_REQUEST:
        return ws_messages.call_request(
            from_user_id=sender,
            from_user_name=payload.get("sender_name"),
            sdp=payload.get("sdp"),
        )
    if kind is EventKind.CALL_ANSWER:
        return ws_messages.call_answer(from_user_id=sender, sdp=payload.get("sdp"))
    if kind is EventKind.ICE_CANDIDATE:
        return ws_messages.ice_candidate(from_user_id=sender, candidate=payload.get("candidate"))
    if kind is EventKind.END_CALL:
        return ws_messages.end_call(from_user_id=sender)
    if kind is EventKind.FRIEND_REQUEST:
        return ws_messages.friend_request_received(from_user_id=sender)
    if kind is EventKind.FRIEND_ACCEPTED:
        return ws_messages.friend_accepted(from_user_id=sender)
    if kind is EventKind.PRESENCE_UPDATE:
        return ws_messages.user_status(user_id=payload["identity"], online=payload["online"])
    raise ValueError(f"Unknown event kind: {kind!r}")


class Relay:
    """Routes :class:`RelayEvent` objects between registered connections."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        *,
        relationships: RelationshipStore | None = None,
        message_log: MessageLog | None = None,
        friends_only_chat: bool = False,
        friends_only_calls: bool = False,
    ) -> None:
        self._registry = registry
        self._relationships = relationships
        self._message_log = message_log
        self.friends_only_chat = friends_only_chat
        self.friends_only_calls = friends_only_calls

    def requires_relationship(self, kind: EventKind) -> bool:
        if kind is EventKind.CHAT_MESSAGE:
            return self.friends_only_chat
        if kind in CALL_SIGNALING_KINDS:
            return self.friends_only_calls
        return False

    async def route(self, event: RelayEvent) -> RouteResult:
        if event.target is None:
            raise ValueError("route() needs a target; use the presence broadcaster for broadcasts")

        if event.sender is not None and self.requires_relationship(event.kind):
            allowed = self._relationships is not None and await self._relationships.are_friends(
                event.sender, event.target
            )
            if not allowed:
                logger.info(
                    "Dropped %s from %s to %s: not friends",
                    event.kind.value,
                    event.sender,
                    event.target,
                )
                return RouteResult.FORBIDDEN

        message = render(event)
        target = self._registry.lookup(event.target)
        if target is None or not await target.send(message):
            logger.debug("%s to %s: target unreachable", event.kind.value, event.target)
            if event.kind is EventKind.CALL_REQUEST:
                await self._reply_to_sender(event, ws_messages.call_failed())
            return RouteResult.TARGET_UNREACHABLE

        if event.kind is EventKind.CHAT_MESSAGE:
            await self._reply_to_sender(event, message, delivered_to=target)
            if self._message_log is not None:
                await self._message_log(event)
        elif event.kind is EventKind.CALL_REQUEST:
            logger.info("Call from %s to %s", event.sender, event.target)

        return RouteResult.DELIVERED

    async def _reply_to_sender(
        self, event: RelayEvent, message: dict, *, delivered_to: Connection | None = None
    ) -> None:
        """Send *message* to the connection *event* came from.

        Falls back to the sender's current binding for events without an
        origin. Skipped if that connection already got the message.
        """
        origin = event.origin
        if origin is None and event.sender is not None:
            origin = self._registry.lookup(event.sender)
        if origin is None or origin is delivered_to:
            return
        await origin.send(message)
