# copaint/models/room.py
from __future__ import annotations

from typing import List

from pydantic import BaseModel

from copaint.models.actions import Action

USER_COLORS = [
    "#f87171", "#fb923c", "#fbbf24", "#a3e635", "#34d399",
    "#22d3ee", "#818cf8", "#c084fc", "#f472b6",
]


def normalize_room_id(room_id: str) -> str:
    """Room codes compare case-insensitively; store and look them up upper-cased."""
    return room_id.strip().upper()


class Member(BaseModel):
    id: str
    username: str
    is_host: bool = False
    color: str = USER_COLORS[0]


class Room(BaseModel):
    id: str
    members: List[Member] = []
    started: bool = False
    created_at: str

    @property
    def host(self) -> Member | None:
        return next((m for m in self.members if m.is_host), None)

    def find_member(self, member_id: str) -> Member | None:
        return next((m for m in self.members if m.id == member_id), None)


class RoomSummary(BaseModel):
    """Read-only view served by the HTTP routes."""

    id: str
    members: List[Member]
    started: bool
    created_at: str
    history_length: int
    redo_length: int


class RoomHistory(BaseModel):
    room_id: str
    history: List[Action]
