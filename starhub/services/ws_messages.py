"""WebSocket message factory functions.

Each function returns a plain dict with a ``type`` field plus data fields.
The relay, presence broadcaster and session lifecycle call these factories
and hand the result to ``Connection.send()``. Field names follow the
messenger client (``fromUserId``, ``toUserId``, ``sdp`` ...).
"""

from __future__ import annotations

from typing import Any

CALL_FAILED_USER_OFFLINE = "User offline"


def chat_message(
    *,
    from_user_id: str,
    to_user_id: str,
    from_user_name: str | None,
    message: str,
    media_url: str | None = None,
) -> dict:
    """Text (or media) message. Sent to the recipient and echoed to the sender.

    Omit ``mediaUrl`` when there is no attachment.
    """
    result: dict = {
        "type": "chat_message",
        "fromUserId": from_user_id,
        "toUserId": to_user_id,
        "fromUserName": from_user_name,
        "message": message,
    }
    if media_url:
        result["mediaUrl"] = media_url
    return result


def call_request(*, from_user_id: str, from_user_name: str | None, sdp: Any) -> dict:
    """Incoming call carrying the caller's opaque SDP offer."""
    return {
        "type": "call_request",
        "fromUserId": from_user_id,
        "fromUserName": from_user_name,
        "sdp": sdp,
    }


def call_answer(*, from_user_id: str, sdp: Any) -> dict:
    return {"type": "call_answer", "fromUserId": from_user_id, "sdp": sdp}


def ice_candidate(*, from_user_id: str, candidate: Any) -> dict:
    return {"type": "ice_candidate", "fromUserId": from_user_id, "candidate": candidate}


def end_call(*, from_user_id: str) -> dict:
    return {"type": "end_call", "fromUserId": from_user_id}


def call_failed(*, reason: str = CALL_FAILED_USER_OFFLINE) -> dict:
    """The callee could not be reached."""
    return {"type": "call_failed", "reason": reason}


def friend_request_received(*, from_user_id: str) -> dict:
    return {"type": "friend_request_received", "fromUserId": from_user_id}


def friend_accepted(*, from_user_id: str) -> dict:
    """Sent to the original requester; *from_user_id* is whoever accepted."""
    return {"type": "friend_accepted", "fromUserId": from_user_id}


def friend_update(*, user_id: str, status: str) -> dict:
    """Acknowledges a friend request or acceptance to the connection that made it."""
    return {"type": "friend_update", "userId": user_id, "status": status}


def user_status(*, user_id: str, online: bool) -> dict:
    """Presence change for one identity."""
    return {"type": "user_status", "userId": user_id, "status": online}


def presence_snapshot(*, user_ids: list[str]) -> dict:
    """Full list of reachable identities, sent right after identify."""
    return {"type": "presence_snapshot", "userIds": sorted(user_ids)}


def identified(*, user_id: str) -> dict:
    return {"type": "identified", "userId": user_id}


def error(*, reason: str, message: str) -> dict:
    """Structured failure for the connection that triggered it."""
    return {"type": "error", "reason": reason, "message": message}


def ping() -> dict:
    return {"type": "ping"}
