# copaint/transport/base.py

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel

from copaint.core.config import settings
from copaint.models.actions import Action, CursorPosition, DrawSegment
from copaint.models.events import EventName
from copaint.models.intents import (
    CreateRoom,
    JoinRoom,
    KickUser,
    LeaveRoom,
    Redo,
    StartGame,
    SubmitChatMessage,
    SubmitClear,
    SubmitCursor,
    SubmitDrawSegment,
    SubmitFill,
    SubmitShape,
    SubmitStroke,
    Undo,
)

logger = logging.getLogger(__name__)

EventHandler = Callable[[BaseModel], Any]


class Throttle:
    """
    Minimum-interval gate for ephemeral emits.

    Calls that arrive inside the interval are refused outright: nothing is
    queued and the caller is not told to slow down. The next call after the
    interval goes through with whatever value it carries.
    """

    def __init__(self, interval_ms: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.interval = interval_ms / 1000.0
        self._clock = clock
        self._last: Optional[float] = None

    def ready(self) -> bool:
        now = self._clock()
        if self._last is not None and now - self._last < self.interval:
            return False
        self._last = now
        return True


# ============================================================================
# TRANSPORT CONTRACT
# ============================================================================

class Transport(ABC):
    """
    The one surface the canvas application talks to.

    Subclasses only decide how an intent reaches the session hub (``_send``)
    and how they come online; the intent vocabulary, event subscription and
    ephemeral throttling are shared here. A transport is chosen once at
    startup (see ``open_transport``) and never switches mode afterwards.

    Events are delivered as the pydantic models from
    ``copaint.models.events``; subscribe with ``on(EventName.X, handler)``.
    """

    def __init__(
        self,
        cursor_interval_ms: float = settings.CURSOR_THROTTLE_MS,
        segment_interval_ms: float = settings.SEGMENT_THROTTLE_MS,
    ) -> None:
        self.current_user_id: str = ""
        self._listeners: Dict[EventName, List[EventHandler]] = {}
        self._cursor_throttle = Throttle(cursor_interval_ms)
        self._segment_throttle = Throttle(segment_interval_ms)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    @abstractmethod
    def connected(self) -> bool:
        ...

    @abstractmethod
    async def connect(self) -> None:
        """Come online; emits ``connected`` once the member id is known."""

    @abstractmethod
    async def disconnect(self) -> None:
        ...

    @abstractmethod
    async def _send(self, intent: BaseModel) -> None:
        ...

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def on(self, event: EventName | str, handler: EventHandler) -> None:
        self._listeners.setdefault(EventName(event), []).append(handler)

    def off(self, event: EventName | str, handler: EventHandler) -> None:
        handlers = self._listeners.get(EventName(event))
        if handlers and handler in handlers:
            handlers.remove(handler)

    def _trigger(self, event: BaseModel) -> None:
        name = EventName(event.type)
        if name is EventName.CONNECTED:
            self.current_user_id = event.user_id
        for handler in list(self._listeners.get(name, ())):
            try:
                handler(event)
            except Exception:
                logger.exception("Handler for %s failed", name.value)

    # ------------------------------------------------------------------
    # Room lifecycle
    # ------------------------------------------------------------------

    async def create_room(self, username: str) -> None:
        await self._send(CreateRoom(username=username))

    async def join_room(self, room_id: str, username: str) -> None:
        await self._send(JoinRoom(room_id=room_id, username=username))

    async def leave_room(self, room_id: str) -> None:
        await self._send(LeaveRoom(room_id=room_id))

    async def kick_user(self, room_id: str, user_id: str) -> None:
        await self._send(KickUser(room_id=room_id, user_id=user_id))

    async def start_game(self, room_id: str) -> None:
        await self._send(StartGame(room_id=room_id))

    # ------------------------------------------------------------------
    # Durable actions
    # ------------------------------------------------------------------

    async def submit_stroke(self, room_id: str, action: Action) -> None:
        await self._send(SubmitStroke(room_id=room_id, payload=action))

    async def submit_shape(self, room_id: str, action: Action) -> None:
        await self._send(SubmitShape(room_id=room_id, payload=action))

    async def submit_fill(self, room_id: str, action: Action) -> None:
        await self._send(SubmitFill(room_id=room_id, payload=action))

    async def submit_clear(self, room_id: str, action: Action) -> None:
        await self._send(SubmitClear(room_id=room_id, payload=action))

    async def undo(self, room_id: str) -> None:
        await self._send(Undo(room_id=room_id))

    async def redo(self, room_id: str) -> None:
        await self._send(Redo(room_id=room_id))

    # ------------------------------------------------------------------
    # Ephemeral events and chat
    # ------------------------------------------------------------------

    async def submit_draw_segment(self, room_id: str, segment: DrawSegment) -> bool:
        """Returns False when the segment was dropped by the throttle."""
        if not self._segment_throttle.ready():
            return False
        await self._send(SubmitDrawSegment(room_id=room_id, data=segment))
        return True

    async def submit_cursor(self, room_id: str, position: CursorPosition) -> bool:
        """Returns False when the position was dropped by the throttle."""
        if not self._cursor_throttle.ready():
            return False
        await self._send(SubmitCursor(room_id=room_id, data=position))
        return True

    async def submit_chat_message(self, room_id: str, message: dict) -> None:
        await self._send(SubmitChatMessage(room_id=room_id, message=message))
