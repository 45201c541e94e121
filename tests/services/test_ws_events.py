"""Tests for inbound frame parsing."""

from __future__ import annotations

import pytest

from starhub.services import ws_events


class TestParseFrame:
    def test_identify_with_user_id(self):
        frame = ws_events.parse_frame({"type": "identify", "userId": "alice"})
        assert isinstance(frame, ws_events.IdentifyFrame)
        assert frame.user_id == "alice"

    def test_identify_with_identity_alias_and_number(self):
        frame = ws_events.parse_frame({"type": "identify", "identity": 7})
        assert frame.user_id == "7"

    @pytest.mark.parametrize("value", ["", "   ", None, True, 1.5, {"id": 1}])
    def test_identify_rejects_bad_identities(self, value):
        assert ws_events.parse_frame({"type": "identify", "userId": value}) is None

    def test_chat_message_client_field_names(self):
        frame = ws_events.parse_frame(
            {"type": "chat_message", "toUserId": 5, "message": "hi", "fromUserName": "Alice"}
        )
        assert isinstance(frame, ws_events.ChatMessageFrame)
        assert (frame.to_user_id, frame.message, frame.from_user_name) == ("5", "hi", "Alice")

    def test_chat_message_descriptive_aliases(self):
        frame = ws_events.parse_frame(
            {"type": "chat_message", "target": "bob", "text": "hi", "senderDisplayName": "A"}
        )
        assert (frame.to_user_id, frame.message, frame.from_user_name) == ("bob", "hi", "A")

    def test_chat_message_media_only(self):
        frame = ws_events.parse_frame(
            {"type": "chat_message", "toUserId": "bob", "mediaUrl": "/uploads/a.jpg"}
        )
        assert frame.media_url == "/uploads/a.jpg"
        assert frame.message == ""

    def test_call_request_keeps_sdp_object(self):
        offer = {"type": "offer", "sdp": "v=0"}
        frame = ws_events.parse_frame({"type": "call_request", "toUserId": "bob", "sdp": offer})
        assert frame.sdp == offer

    def test_call_answer_alias(self):
        frame = ws_events.parse_frame({"type": "call_answer", "target": "bob", "sdpAnswer": "a"})
        assert frame.sdp == "a"

    def test_friend_accept(self):
        frame = ws_events.parse_frame({"type": "friend_accept", "fromUserId": "alice"})
        assert isinstance(frame, ws_events.FriendAcceptFrame)
        assert frame.from_user_id == "alice"

    def test_extra_fields_ignored(self):
        frame = ws_events.parse_frame({"type": "end_call", "toUserId": "bob", "extra": 1})
        assert isinstance(frame, ws_events.EndCallFrame)

    @pytest.mark.parametrize(
        "data",
        [None, [], "identify", {"type": None}, {"type": "ping"}, {"type": "end_call"}],
    )
    def test_unparseable_returns_none(self, data):
        assert ws_events.parse_frame(data) is None
