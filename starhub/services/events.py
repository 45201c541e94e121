"""Relay event envelope and routing outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from starhub.services.registry import Connection


class EventKind(str, Enum):
    CHAT_MESSAGE = "chat_message"
    CALL_REQUEST = "call_request"
    CALL_ANSWER = "call_answer"
    ICE_CANDIDATE = "ice_candidate"
    END_CALL = "end_call"
    FRIEND_REQUEST = "friend_request"
    FRIEND_ACCEPTED = "friend_accepted"
    PRESENCE_UPDATE = "presence_update"


CALL_SIGNALING_KINDS = frozenset(
    {
        EventKind.CALL_REQUEST,
        EventKind.CALL_ANSWER,
        EventKind.ICE_CANDIDATE,
        EventKind.END_CALL,
    }
)


class RouteResult(str, Enum):
    DELIVERED = "delivered"
    TARGET_UNREACHABLE = "target_unreachable"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class RelayEvent:
    """A typed event travelling from *sender* to *target*.

    ``sender`` is ``None`` for system-originated events and ``target`` is
    ``None`` for broadcasts. ``payload`` is kind-specific and, for call
    signaling, opaque. ``origin`` is the connection the event arrived on;
    replies to the sender (echo, ``call_failed``) go there.
    """

    kind: EventKind
    sender: str | None
    target: str | None
    payload: dict[str, Any] = field(default_factory=dict)
    origin: Connection | None = None
