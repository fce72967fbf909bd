# copaint/core/errors.py

from __future__ import annotations


class SessionError(Exception):
    """Base class for every error raised by the session core."""


class RoomNotFound(SessionError):
    """Raised when a room id does not resolve to a live room."""

    def __init__(self, room_id: str) -> None:
        super().__init__(f"Room not found: {room_id}")
        self.room_id = room_id


class NotAMember(SessionError):
    """Raised when a connection acts on a room it has not joined."""

    def __init__(self, room_id: str, member_id: str) -> None:
        super().__init__(f"{member_id} is not a member of {room_id}")
        self.room_id = room_id
        self.member_id = member_id


class Unauthorized(SessionError):
    """Raised when a non-host attempts a host-only operation."""

    def __init__(self, room_id: str, member_id: str, operation: str) -> None:
        super().__init__(f"{member_id} may not {operation} in {room_id}")
        self.room_id = room_id
        self.member_id = member_id
        self.operation = operation


class EmptyUndo(SessionError):
    """Undo requested with nothing left in History."""


class EmptyRedo(SessionError):
    """Redo requested with an empty RedoStack."""
