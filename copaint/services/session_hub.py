# copaint/services/session_hub.py

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

from pydantic import BaseModel

from copaint.core.errors import (
    EmptyRedo,
    EmptyUndo,
    NotAMember,
    RoomNotFound,
    Unauthorized,
)
from copaint.models.events import (
    ChatMessageEvent,
    CursorMoved,
    Delivery,
    DrawSegmentEvent,
    ErrorCode,
    ErrorEvent,
    GameStarted,
    HistoryActionEvent,
    HistorySync,
    Kicked,
    MemberJoined,
    MemberLeft,
    MembershipUpdated,
    RoomJoined,
)
from copaint.models.intents import (
    CreateRoom,
    DurableIntent,
    JoinRoom,
    KickUser,
    LeaveRoom,
    Redo,
    StartGame,
    SubmitChatMessage,
    SubmitCursor,
    SubmitDrawSegment,
    Undo,
)
from copaint.models.room import Member, Room
from copaint.services.session_registry import Departure, SessionRegistry

logger = logging.getLogger(__name__)

DeliverySink = Callable[[Delivery], Awaitable[None]]


def _ids(members: Iterable[Member], exclude: Optional[str] = None) -> tuple:
    return tuple(m.id for m in members if m.id != exclude)


def _snapshot(members: Iterable[Member]) -> List[Member]:
    return [m.model_copy() for m in members]


async def _discard(delivery: Delivery) -> None:
    return None


# ============================================================================
# SESSION HUB
# ============================================================================

class SessionHub:
    """
    Single arbitration point between transports and the session core.

    Every intent addressed to a room runs under that room's lock, and the
    resulting deliveries are handed to ``sink`` before the lock is released.
    Two intents for the same room therefore never interleave, and every
    member observes their events in the order the hub accepted them. Rooms do
    not share locks and proceed independently.

    Rejections follow a fail-quiet policy: non-host kicks/starts, intents for
    rooms the caller is not in, and empty undo/redo are logged and produce no
    events. Only a failed join is reported back, to the caller alone.
    """

    def __init__(self, registry: SessionRegistry, sink: DeliverySink = _discard) -> None:
        self.registry = registry
        self.sink = sink
        self._locks: Dict[str, asyncio.Lock] = {}

        # Metrics
        self.actions_appended: int = 0
        self.events_delivered: int = 0

    def _lock(self, room_id: str) -> asyncio.Lock:
        return self._locks.setdefault(room_id, asyncio.Lock())

    def _forget_lock(self, room_id: str) -> None:
        lock = self._locks.get(room_id)
        if lock is not None and not lock.locked() and self.registry.get_room(room_id) is None:
            del self._locks[room_id]

    async def _emit(self, deliveries: List[Delivery]) -> List[Delivery]:
        for delivery in deliveries:
            if delivery.recipients:
                await self.sink(delivery)
                self.events_delivered += len(delivery.recipients)
        return deliveries

    async def handle(self, member_id: str, intent: BaseModel) -> List[Delivery]:
        """
        Apply one client intent and fan out its events.

        Args:
            member_id: connection id of the caller
            intent: any model from ``copaint.models.intents``

        Returns:
            The deliveries that were handed to the sink (empty for no-ops).
        """
        if isinstance(intent, CreateRoom):
            room_id, member = self.registry.create_room(member_id, intent.username)
            async with self._lock(room_id):
                return await self._emit([
                    Delivery(recipients=(member_id,), event=RoomJoined(room_id=room_id, members=[member.model_copy()])),
                ])

        room_id = intent.room_id
        try:
            async with self._lock(room_id):
                try:
                    deliveries = self._dispatch(member_id, intent)
                except RoomNotFound:
                    if not isinstance(intent, JoinRoom):
                        logger.debug("Ignored %s for unknown room %s", intent.action, room_id)
                        return []
                    deliveries = [Delivery(
                        recipients=(member_id,),
                        event=ErrorEvent(code=ErrorCode.ROOM_NOT_FOUND, message="Room not found"),
                    )]
                except (NotAMember, Unauthorized, EmptyUndo, EmptyRedo) as exc:
                    logger.debug("Ignored %s from %s: %r", intent.action, member_id, exc)
                    return []
                return await self._emit(deliveries)
        finally:
            self._forget_lock(room_id)

    async def disconnect(self, member_id: str) -> List[Delivery]:
        """Run the leave path for every room the connection still belongs to."""
        deliveries: List[Delivery] = []
        for room_id in self.registry.rooms_of(member_id):
            try:
                async with self._lock(room_id):
                    departure = self.registry.leave_room(room_id, member_id)
                    if departure is not None:
                        deliveries += await self._emit(self._departure_events(departure))
            finally:
                self._forget_lock(room_id)
        return deliveries

    # ------------------------------------------------------------------
    # Dispatch (runs with the room lock held)
    # ------------------------------------------------------------------

    def _dispatch(self, member_id: str, intent: BaseModel) -> List[Delivery]:
        registry = self.registry

        if isinstance(intent, JoinRoom):
            joined = registry.join_room(intent.room_id, member_id, intent.username)
            room = joined.room
            deliveries = []
            if not joined.rejoined:
                deliveries.append(Delivery(
                    recipients=_ids(room.members, exclude=member_id),
                    event=MemberJoined(member=joined.member.model_copy()),
                ))
            deliveries += [
                Delivery(recipients=(member_id,), event=RoomJoined(room_id=room.id, members=_snapshot(room.members))),
                Delivery(recipients=(member_id,), event=HistorySync(history=joined.history)),
            ]
            return deliveries

        if isinstance(intent, LeaveRoom):
            departure = registry.leave_room(intent.room_id, member_id)
            return self._departure_events(departure) if departure else []

        if isinstance(intent, KickUser):
            departure = registry.kick_user(intent.room_id, member_id, intent.user_id)
            kicked = Delivery(recipients=(intent.user_id,), event=Kicked(room_id=departure.room_id))
            return [kicked] + self._departure_events(departure)

        if isinstance(intent, StartGame):
            room = registry.start_game(intent.room_id, member_id)
            return [Delivery(recipients=_ids(room.members), event=GameStarted(room_id=room.id))]

        room = registry.require_member(intent.room_id, member_id)

        if isinstance(intent, DurableIntent):
            action = registry.history.append(room.id, intent.payload)
            self.actions_appended += 1
            return [Delivery(recipients=_ids(room.members), event=HistoryActionEvent(action=action))]

        if isinstance(intent, Undo):
            return self._resync(room, registry.history.undo(room.id))

        if isinstance(intent, Redo):
            return self._resync(room, registry.history.redo(room.id))

        if isinstance(intent, SubmitDrawSegment):
            return [Delivery(recipients=_ids(room.members, exclude=member_id), event=DrawSegmentEvent(segment=intent.data))]

        if isinstance(intent, SubmitCursor):
            return [Delivery(recipients=_ids(room.members, exclude=member_id), event=CursorMoved(position=intent.data))]

        if isinstance(intent, SubmitChatMessage):
            return [Delivery(recipients=_ids(room.members), event=ChatMessageEvent(message=intent.message))]

        raise TypeError(f"Unsupported intent: {type(intent).__name__}")

    @staticmethod
    def _resync(room: Room, history) -> List[Delivery]:
        return [Delivery(recipients=_ids(room.members), event=HistorySync(history=history))]

    @staticmethod
    def _departure_events(departure: Departure) -> List[Delivery]:
        if departure.room_closed:
            return []
        recipients = _ids(departure.remaining)
        deliveries = []
        if departure.new_host is not None:
            deliveries.append(Delivery(
                recipients=recipients,
                event=MembershipUpdated(members=_snapshot(departure.remaining)),
            ))
        deliveries.append(Delivery(recipients=recipients, event=MemberLeft(user_id=departure.member.id)))
        return deliveries
