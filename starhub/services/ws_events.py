"""Inbound WebSocket frame models.

Every client frame is a JSON object with a ``type`` field. ``parse_frame``
validates it against the matching pydantic model and returns ``None`` for
anything unknown or malformed, so the session can drop it without raising.
Field names follow the messenger client; the longer descriptive names are
accepted as aliases.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    model_validator,
)


def _coerce_identity(value: Any) -> str:
    """Identities arrive as strings or numbers; normalise to a non-empty str."""
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError("identity must be a string or an integer")
    text = str(value).strip()
    if not text:
        raise ValueError("identity must not be empty")
    return text


Identity = Annotated[str, BeforeValidator(_coerce_identity)]


class _Frame(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str


class _TargetedFrame(_Frame):
    to_user_id: Identity = Field(validation_alias=AliasChoices("toUserId", "target"))


class IdentifyFrame(_Frame):
    user_id: Identity = Field(validation_alias=AliasChoices("userId", "identity"))


class ChatMessageFrame(_TargetedFrame):
    message: str = Field(default="", validation_alias=AliasChoices("message", "text"))
    from_user_name: str | None = Field(
        default=None, validation_alias=AliasChoices("fromUserName", "senderDisplayName")
    )
    media_url: str | None = Field(default=None, validation_alias=AliasChoices("mediaUrl", "media"))

    @model_validator(mode="after")
    def _has_content(self) -> ChatMessageFrame:
        if not self.message and not self.media_url:
            raise ValueError("chat_message needs a message or a mediaUrl")
        return self


class CallRequestFrame(_TargetedFrame):
    from_user_name: str | None = Field(
        default=None, validation_alias=AliasChoices("fromUserName", "senderDisplayName")
    )
    sdp: Any = Field(default=None, validation_alias=AliasChoices("sdp", "sdpOffer"))


class CallAnswerFrame(_TargetedFrame):
    sdp: Any = Field(default=None, validation_alias=AliasChoices("sdp", "sdpAnswer"))


class IceCandidateFrame(_TargetedFrame):
    candidate: Any = None


class EndCallFrame(_TargetedFrame):
    pass


class FriendRequestFrame(_TargetedFrame):
    pass


class FriendAcceptFrame(_Frame):
    from_user_id: Identity = Field(validation_alias=AliasChoices("fromUserId", "requester"))


FRAME_MODELS: dict[str, type[_Frame]] = {
    "identify": IdentifyFrame,
    "chat_message": ChatMessageFrame,
    "call_request": CallRequestFrame,
    "call_answer": CallAnswerFrame,
    "ice_candidate": IceCandidateFrame,
    "end_call": EndCallFrame,
    "friend_request": FriendRequestFrame,
    "friend_accept": FriendAcceptFrame,
}


def parse_frame(data: Any) -> _Frame | None:
    """Return the validated frame model for *data*, or ``None`` if it should be ignored."""
    if not isinstance(data, dict):
        return None
    kind = data.get("type")
    if not isinstance(kind, str):
        return None
    model = FRAME_MODELS.get(kind)
    if model is None:
        return None
    try:
        return model.model_validate(data)
    except ValidationError:
        return None
