"""Tests for outbound WebSocket message factories.

Each test checks the ``type`` field and the exact set of keys.
"""

from __future__ import annotations

from starhub.services import ws_messages


class TestChatMessage:
    def test_without_media(self):
        msg = ws_messages.chat_message(
            from_user_id="a", to_user_id="b", from_user_name="Alice", message="hi"
        )
        assert msg == {
            "type": "chat_message",
            "fromUserId": "a",
            "toUserId": "b",
            "fromUserName": "Alice",
            "message": "hi",
        }

    def test_media_url_included_when_set(self):
        msg = ws_messages.chat_message(
            from_user_id="a", to_user_id="b", from_user_name=None, message="", media_url="/m.png"
        )
        assert msg["mediaUrl"] == "/m.png"


class TestSignaling:
    def test_call_request(self):
        assert ws_messages.call_request(from_user_id="a", from_user_name="A", sdp="x") == {
            "type": "call_request",
            "fromUserId": "a",
            "fromUserName": "A",
            "sdp": "x",
        }

    def test_call_failed_default_reason(self):
        assert ws_messages.call_failed() == {"type": "call_failed", "reason": "User offline"}

    def test_end_call(self):
        assert ws_messages.end_call(from_user_id="a") == {"type": "end_call", "fromUserId": "a"}


class TestPresence:
    def test_user_status(self):
        assert ws_messages.user_status(user_id="a", online=False) == {
            "type": "user_status",
            "userId": "a",
            "status": False,
        }

    def test_presence_snapshot_sorted(self):
        assert ws_messages.presence_snapshot(user_ids=["c", "a", "b"])["userIds"] == ["a", "b", "c"]


class TestFriendAndControl:
    def test_friend_request_received(self):
        assert ws_messages.friend_request_received(from_user_id="a") == {
            "type": "friend_request_received",
            "fromUserId": "a",
        }

    def test_error(self):
        assert ws_messages.error(reason="r", message="m") == {
            "type": "error",
            "reason": "r",
            "message": "m",
        }

    def test_ping(self):
        assert ws_messages.ping() == {"type": "ping"}
