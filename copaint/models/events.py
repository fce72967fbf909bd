# copaint/models/events.py
"""
Outbound events produced by the session core.

Every event is a pydantic model tagged by a literal ``type``; ``OutboundEvent``
is the closed union of all of them and ``parse_event`` decodes a wire frame back
into the matching model. Subscribers key their handlers by :class:`EventName`.
"""
from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Tuple, Union

from pydantic import BaseModel, Field, TypeAdapter

from copaint.models.actions import Action, CursorPosition, DrawSegment
from copaint.models.room import Member


class EventName(str, Enum):
    CONNECTED = "connected"
    ROOM_JOINED = "room_joined"
    MEMBER_JOINED = "member_joined"
    MEMBER_LEFT = "member_left"
    MEMBERSHIP_UPDATED = "membership_updated"
    GAME_STARTED = "game_started"
    HISTORY_ACTION = "history_action"
    HISTORY_SYNC = "history_sync"
    DRAW_SEGMENT = "draw_segment"
    CURSOR_MOVED = "cursor_moved"
    CHAT_MESSAGE = "chat_message"
    KICKED = "kicked"
    ERROR = "error"


class ErrorCode(str, Enum):
    ROOM_NOT_FOUND = "room_not_found"
    INVALID_MESSAGE = "invalid_message"
    UNKNOWN_ACTION = "unknown_action"


class Connected(BaseModel):
    type: Literal["connected"] = "connected"
    user_id: str


class RoomJoined(BaseModel):
    type: Literal["room_joined"] = "room_joined"
    room_id: str
    members: List[Member]


class MemberJoined(BaseModel):
    type: Literal["member_joined"] = "member_joined"
    member: Member


class MemberLeft(BaseModel):
    type: Literal["member_left"] = "member_left"
    user_id: str


class MembershipUpdated(BaseModel):
    type: Literal["membership_updated"] = "membership_updated"
    members: List[Member]


class GameStarted(BaseModel):
    type: Literal["game_started"] = "game_started"
    room_id: str


class HistoryActionEvent(BaseModel):
    type: Literal["history_action"] = "history_action"
    action: Action


class HistorySync(BaseModel):
    type: Literal["history_sync"] = "history_sync"
    history: List[Action]


class DrawSegmentEvent(BaseModel):
    type: Literal["draw_segment"] = "draw_segment"
    segment: DrawSegment


class CursorMoved(BaseModel):
    type: Literal["cursor_moved"] = "cursor_moved"
    position: CursorPosition


class ChatMessageEvent(BaseModel):
    type: Literal["chat_message"] = "chat_message"
    message: Dict[str, Any]


class Kicked(BaseModel):
    type: Literal["kicked"] = "kicked"
    room_id: str


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    code: ErrorCode
    message: str


OutboundEvent = Annotated[
    Union[
        Connected,
        RoomJoined,
        MemberJoined,
        MemberLeft,
        MembershipUpdated,
        GameStarted,
        HistoryActionEvent,
        HistorySync,
        DrawSegmentEvent,
        CursorMoved,
        ChatMessageEvent,
        Kicked,
        ErrorEvent,
    ],
    Field(discriminator="type"),
]

_event_adapter = TypeAdapter(OutboundEvent)


def parse_event(raw: str | bytes | dict) -> BaseModel:
    """Decode a JSON frame (or an already-decoded dict) into its event model."""
    if isinstance(raw, dict):
        return _event_adapter.validate_python(raw)
    return _event_adapter.validate_json(raw)


class Delivery(BaseModel):
    """
    One outbound event plus the member ids that must receive it.

    Recipients are resolved while the room lock is held, so a delivery always
    reflects membership at the moment the mutation happened.
    """

    recipients: Tuple[str, ...]
    event: OutboundEvent
