# copaint/services/session_registry.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional
import logging
import random
import string

from copaint.core.errors import NotAMember, RoomNotFound, Unauthorized
from copaint.models.actions import Action
from copaint.models.room import USER_COLORS, Member, Room, normalize_room_id
from copaint.services.history_manager import HistoryManager

logger = logging.getLogger(__name__)

ROOM_ID_ALPHABET = string.ascii_uppercase + string.digits
ROOM_ID_LENGTH = 6


def generate_room_id() -> str:
    return "".join(random.choices(ROOM_ID_ALPHABET, k=ROOM_ID_LENGTH))


def pick_member_color() -> str:
    return random.choice(USER_COLORS)


@dataclass
class Joined:
    room: Room
    member: Member
    history: List[Action]
    rejoined: bool = False


@dataclass
class Departure:
    """Outcome of a member leaving, being kicked or disconnecting."""

    room_id: str
    member: Member
    remaining: List[Member]
    new_host: Optional[Member] = None

    @property
    def room_closed(self) -> bool:
        return not self.remaining


# ============================================================================
# SESSION REGISTRY
# ============================================================================

class SessionRegistry:
    """
    Owns room lifecycle, membership and host authority.

    Durable drawing bookkeeping is delegated to the ``HistoryManager``; the
    registry only opens a timeline when a room is created and discards it when
    the last member leaves.

    Data Structures:
        rooms: Maps room_id -> Room (members kept in join order)
               Example: {"K3F9QZ": Room(id="K3F9QZ", members=[alice, bob])}

    Invariants:
        - a non-empty room has exactly one host
        - an empty room does not exist

    The registry itself is synchronous and does no locking; callers serialize
    access per room (see ``SessionHub``).
    """

    def __init__(
        self,
        history: HistoryManager,
        id_factory: Callable[[], str] = generate_room_id,
        color_picker: Callable[[], str] = pick_member_color,
    ) -> None:
        self.history = history
        self.rooms: Dict[str, Room] = {}
        self._id_factory = id_factory
        self._color_picker = color_picker

    def get_room(self, room_id: str) -> Optional[Room]:
        return self.rooms.get(normalize_room_id(room_id))

    def list_rooms(self) -> List[Room]:
        return list(self.rooms.values())

    def rooms_of(self, member_id: str) -> List[str]:
        """Ids of every room the given connection currently belongs to."""
        return [
            room_id for room_id, room in self.rooms.items()
            if room.find_member(member_id) is not None
        ]

    def require_member(self, room_id: str, member_id: str) -> Room:
        """
        Resolve a room the caller belongs to.

        Raises:
            RoomNotFound: unknown room id
            NotAMember: the caller has not joined this room
        """
        room = self.get_room(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        if room.find_member(member_id) is None:
            raise NotAMember(room.id, member_id)
        return room

    def _new_room_id(self) -> str:
        room_id = normalize_room_id(self._id_factory())
        while room_id in self.rooms:
            logger.warning("Room id collision on %s, regenerating", room_id)
            room_id = normalize_room_id(self._id_factory())
        return room_id

    def create_room(self, member_id: str, username: str) -> tuple[str, Member]:
        """
        Create a room with the caller as its only member and host.

        Returns:
            (room_id, Member) for the creator
        """
        room_id = self._new_room_id()
        member = Member(id=member_id, username=username, is_host=True, color=self._color_picker())
        self.rooms[room_id] = Room(
            id=room_id,
            members=[member],
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        self.history.open(room_id)
        logger.info("✓ %s created room %s", username, room_id)
        return room_id, member

    def join_room(self, room_id: str, member_id: str, username: str) -> Joined:
        """
        Add the caller to an existing room.

        Joining a room the connection already belongs to returns the current
        snapshot without adding a second entry.

        Raises:
            RoomNotFound: unknown room id
        """
        room = self.get_room(room_id)
        if room is None:
            raise RoomNotFound(room_id)

        existing = room.find_member(member_id)
        if existing is not None:
            return Joined(room=room, member=existing, history=self.history.history(room.id), rejoined=True)

        member = Member(id=member_id, username=username, is_host=False, color=self._color_picker())
        room.members.append(member)
        logger.info("→ %s joined %s (%d members)", username, room.id, len(room.members))
        return Joined(room=room, member=member, history=self.history.history(room.id))

    def leave_room(self, room_id: str, member_id: str) -> Optional[Departure]:
        """
        Remove a member; voluntary leave, kick and disconnect all end here.

        If the departing member held host authority, it passes to the member
        now first in join order. An emptied room is destroyed together with
        its History and RedoStack.

        Returns:
            Departure describing what changed, or None if the member was not in
            the room (nothing to do).
        """
        room = self.get_room(room_id)
        if room is None:
            return None
        member = room.find_member(member_id)
        if member is None:
            return None

        room.members.remove(member)
        departure = Departure(room_id=room.id, member=member, remaining=list(room.members))

        if not room.members:
            del self.rooms[room.id]
            self.history.discard(room.id)
            logger.info("✗ Room %s closed (last member %s left)", room.id, member.username)
            return departure

        if member.is_host:
            new_host = room.members[0]
            new_host.is_host = True
            departure.new_host = new_host
            logger.info("Host of %s migrated from %s to %s", room.id, member.username, new_host.username)

        logger.info("← %s left %s (%d members)", member.username, room.id, len(room.members))
        return departure

    def _require_host(self, room_id: str, requester_id: str, operation: str) -> Room:
        room = self.get_room(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        requester = room.find_member(requester_id)
        if requester is None or not requester.is_host:
            raise Unauthorized(room.id, requester_id, operation)
        return room

    def kick_user(self, room_id: str, requester_id: str, target_id: str) -> Departure:
        """
        Force a member out of the room. Host only.

        Raises:
            RoomNotFound: unknown room id
            Unauthorized: requester is not the current host
            NotAMember: target is not in the room
        """
        room = self._require_host(room_id, requester_id, "kick")
        if room.find_member(target_id) is None:
            raise NotAMember(room.id, target_id)
        logger.info("✗ %s kicked from %s by %s", target_id, room.id, requester_id)
        return self.leave_room(room.id, target_id)

    def start_game(self, room_id: str, requester_id: str) -> Room:
        """
        Mark the room as started. Host only.

        Raises:
            RoomNotFound: unknown room id
            Unauthorized: requester is not the current host
        """
        room = self._require_host(room_id, requester_id, "start")
        room.started = True
        logger.info("▶ Room %s started", room.id)
        return room
