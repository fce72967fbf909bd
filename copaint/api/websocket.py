# copaint/api/websocket.py

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from copaint.core import state
from copaint.models.events import ErrorCode, ErrorEvent
from copaint.models.intents import INTENT_ACTIONS, parse_intent

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(code: ErrorCode, message: str) -> dict:
    return ErrorEvent(code=code, message=message).model_dump(mode="json")


# ============================================================================
# WEBSOCKET ENDPOINT
# ============================================================================

@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    Server-authoritative relay for one client connection.

    Protocol:
    =========

    On connect the server sends:
        {"type": "connected", "user_id": "<member id>"}

    Client -> Server intents (tagged by "action"):
    ----------------------------------------------
        {"action": "create_room", "username": "alice"}
        {"action": "join_room", "room_id": "K3F9QZ", "username": "bob"}
        {"action": "leave_room", "room_id": "K3F9QZ"}
        {"action": "kick_user", "room_id": "K3F9QZ", "user_id": "<member id>"}
        {"action": "start_game", "room_id": "K3F9QZ"}
        {"action": "draw_stroke" | "draw_shape" | "fill_canvas" | "clear_canvas",
         "room_id": "K3F9QZ", "payload": {<Action>}}
        {"action": "undo" | "redo", "room_id": "K3F9QZ"}
        {"action": "draw_segment", "room_id": "K3F9QZ", "data": {<DrawSegment>}}
        {"action": "cursor_move", "room_id": "K3F9QZ", "data": {<CursorPosition>}}
        {"action": "chat_message", "room_id": "K3F9QZ", "message": {...}}

    Server -> Client events (tagged by "type"):
    -------------------------------------------
        room_joined, member_joined, member_left, membership_updated,
        game_started, history_action, history_sync, draw_segment,
        cursor_moved, chat_message, kicked, error

    Lifecycle:
    ==========
    1. Client connects, receives its member id
    2. Client creates or joins a room
    3. Every intent runs through the session hub, which fans events out
    4. On disconnect the member leaves every room it was in

    Error Handling:
        - Invalid JSON or a malformed intent: error "invalid_message"
        - Unknown action: error "unknown_action"
        - Connection errors: cleanup and log
    """
    member_id = await state.connection_manager.connect(websocket)

    try:
        while True:
            data = await websocket.receive_text()

            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await websocket.send_json(_error(ErrorCode.INVALID_MESSAGE, "Invalid JSON"))
                continue

            action = message.get("action") if isinstance(message, dict) else None
            logger.debug("Websocket input from %s: action=%s", member_id, action)

            if action not in INTENT_ACTIONS:
                await websocket.send_json(_error(ErrorCode.UNKNOWN_ACTION, f"Unknown action: {action}"))
                continue

            try:
                intent = parse_intent(message)
            except ValidationError as e:
                logger.info("Rejected %s from %s: %d validation errors", action, member_id, e.error_count())
                await websocket.send_json(_error(ErrorCode.INVALID_MESSAGE, f"Invalid {action} message"))
                continue

            await state.hub.handle(member_id, intent)

    except WebSocketDisconnect:
        await state.connection_manager.disconnect(member_id)
    except Exception as e:
        logger.error("WebSocket error: %s", e)
        await state.connection_manager.disconnect(member_id)
