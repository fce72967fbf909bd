# copaint/models/intents.py
"""
Inbound intents accepted from clients.

Frames are JSON objects tagged by ``action``. Room ids are normalized on the
way in so every later lookup is case-insensitive.
"""
from __future__ import annotations

from typing import Annotated, Any, Dict, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator, model_validator

from copaint.models.actions import Action, CursorPosition, DrawSegment
from copaint.models.room import normalize_room_id


class _RoomIntent(BaseModel):
    room_id: str

    @field_validator("room_id")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_room_id(value)


class CreateRoom(BaseModel):
    action: Literal["create_room"] = "create_room"
    username: str


class JoinRoom(_RoomIntent):
    action: Literal["join_room"] = "join_room"
    username: str


class LeaveRoom(_RoomIntent):
    action: Literal["leave_room"] = "leave_room"


class KickUser(_RoomIntent):
    action: Literal["kick_user"] = "kick_user"
    user_id: str


class StartGame(_RoomIntent):
    action: Literal["start_game"] = "start_game"


class SubmitDrawSegment(_RoomIntent):
    action: Literal["draw_segment"] = "draw_segment"
    data: DrawSegment


# Durable submissions carry the action under "payload" because "action" is
# the frame tag.
class SubmitStroke(_RoomIntent):
    action: Literal["draw_stroke"] = "draw_stroke"
    payload: Action

    @model_validator(mode="after")
    def _check_kind(self):
        if self.payload.type != "stroke":
            raise ValueError("draw_stroke requires a stroke action")
        return self


class SubmitShape(_RoomIntent):
    action: Literal["draw_shape"] = "draw_shape"
    payload: Action

    @model_validator(mode="after")
    def _check_kind(self):
        if self.payload.type != "shape":
            raise ValueError("draw_shape requires a shape action")
        return self


class SubmitFill(_RoomIntent):
    action: Literal["fill_canvas"] = "fill_canvas"
    payload: Action

    @model_validator(mode="after")
    def _check_kind(self):
        if self.payload.type != "fill":
            raise ValueError("fill_canvas requires a fill action")
        return self


class SubmitClear(_RoomIntent):
    action: Literal["clear_canvas"] = "clear_canvas"
    payload: Action

    @model_validator(mode="after")
    def _check_kind(self):
        if self.payload.type != "clear":
            raise ValueError("clear_canvas requires a clear action")
        return self


class Undo(_RoomIntent):
    action: Literal["undo"] = "undo"


class Redo(_RoomIntent):
    action: Literal["redo"] = "redo"


class SubmitCursor(_RoomIntent):
    action: Literal["cursor_move"] = "cursor_move"
    data: CursorPosition


class SubmitChatMessage(_RoomIntent):
    action: Literal["chat_message"] = "chat_message"
    message: Dict[str, Any]


Intent = Annotated[
    Union[
        CreateRoom,
        JoinRoom,
        LeaveRoom,
        KickUser,
        StartGame,
        SubmitDrawSegment,
        SubmitStroke,
        SubmitShape,
        SubmitFill,
        SubmitClear,
        Undo,
        Redo,
        SubmitCursor,
        SubmitChatMessage,
    ],
    Field(discriminator="action"),
]

DurableIntent = (SubmitStroke, SubmitShape, SubmitFill, SubmitClear)

INTENT_ACTIONS = frozenset(
    model.model_fields["action"].default
    for model in (
        CreateRoom, JoinRoom, LeaveRoom, KickUser, StartGame, SubmitDrawSegment,
        SubmitStroke, SubmitShape, SubmitFill, SubmitClear, Undo, Redo,
        SubmitCursor, SubmitChatMessage,
    )
)

_intent_adapter = TypeAdapter(Intent)


def parse_intent(raw: str | bytes | dict) -> BaseModel:
    """Decode a client frame into its intent model; raises ``ValidationError``."""
    if isinstance(raw, dict):
        return _intent_adapter.validate_python(raw)
    return _intent_adapter.validate_json(raw)
