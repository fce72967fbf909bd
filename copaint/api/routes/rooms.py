# copaint/api/routes/rooms.py

from typing import List

from fastapi import APIRouter, HTTPException

from copaint.core import state
from copaint.models.room import Room, RoomHistory, RoomSummary

router = APIRouter()

# ============================================================================
# ROOM READ ENDPOINTS
# ============================================================================
# Rooms are created and joined over the WebSocket only; membership is tied to
# a live connection.


def _require_room(room_id: str) -> Room:
    room = state.registry.get_room(room_id)
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")
    return room


def _summary(room: Room) -> RoomSummary:
    history = state.registry.history
    return RoomSummary(
        id=room.id,
        members=room.members,
        started=room.started,
        created_at=room.created_at,
        history_length=len(history.history(room.id)),
        redo_length=len(history.redo_stack(room.id)),
    )


@router.get("/rooms", response_model=List[RoomSummary])
async def list_rooms():
    """
    List all live rooms.

    Returns:
        List[RoomSummary]: Members, started flag and timeline sizes per room
    """
    return [_summary(room) for room in state.registry.list_rooms()]


@router.get("/rooms/{room_id}", response_model=RoomSummary)
async def get_room(room_id: str):
    """
    Get details of a specific room. Room codes are case-insensitive.

    Raises:
        HTTPException: 404 if room not found
    """
    return _summary(_require_room(room_id))


@router.get("/rooms/{room_id}/history", response_model=RoomHistory)
async def get_room_history(room_id: str):
    """
    Current History of a room, oldest action first.

    Raises:
        HTTPException: 404 if room not found
    """
    room = _require_room(room_id)
    return RoomHistory(room_id=room.id, history=state.registry.history.history(room.id))
