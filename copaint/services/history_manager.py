# copaint/services/history_manager.py

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List
import logging

from copaint.core.errors import EmptyRedo, EmptyUndo, RoomNotFound
from copaint.models.actions import Action

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 500


@dataclass
class Timeline:
    """History (oldest first) and RedoStack (top is the last element) of one room."""

    history: Deque[Action]
    redo_stack: List[Action] = field(default_factory=list)


# ============================================================================
# ACTION HISTORY MANAGER
# ============================================================================

class HistoryManager:
    """
    Owns the durable drawing timeline of every live room.

    Each room gets an append-only History bounded by ``capacity`` and a LIFO
    RedoStack. Undo and redo hand back the *entire* History so that every
    client rebuilds its raster from scratch: a flood fill records nothing
    about the pixels it replaced, so there is no inverse operation to apply.

    Data Structures:
        timelines: Maps room_id -> Timeline
                   Example: {"K3F9QZ": Timeline(history=deque([...]), redo_stack=[])}

    Retention:
        Once History holds ``capacity`` entries, every append drops the oldest
        one. Dropped actions are gone for good and can no longer be undone.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("History capacity must be at least 1")
        self.capacity = capacity
        self.timelines: Dict[str, Timeline] = {}

    def open(self, room_id: str) -> Timeline:
        """Install an empty timeline for a freshly created room."""
        timeline = Timeline(history=deque(maxlen=self.capacity))
        self.timelines[room_id] = timeline
        return timeline

    def discard(self, room_id: str) -> None:
        """Drop a room's timeline once the room itself is gone."""
        if self.timelines.pop(room_id, None) is not None:
            logger.info("✗ Discarded history for room %s", room_id)

    def _timeline(self, room_id: str) -> Timeline:
        try:
            return self.timelines[room_id]
        except KeyError:
            raise RoomNotFound(room_id) from None

    def append(self, room_id: str, action: Action) -> Action:
        """
        Record a new durable action.

        Any pending redo entries are invalidated, and the oldest entry is
        evicted when History is already at capacity.

        Returns:
            The same action, ready to be fanned out to every member of the
            room including its author.
        """
        timeline = self._timeline(room_id)
        if len(timeline.history) == self.capacity:
            evicted = timeline.history[0]
            logger.info(
                "History cap %d reached in room %s, evicting action %s",
                self.capacity, room_id, evicted.id,
            )
        timeline.history.append(action)
        timeline.redo_stack.clear()
        return action

    def undo(self, room_id: str) -> List[Action]:
        """
        Move the newest action onto the RedoStack.

        Returns:
            The full remaining History for a resync broadcast.

        Raises:
            EmptyUndo: History is empty; nothing changes.
        """
        timeline = self._timeline(room_id)
        if not timeline.history:
            raise EmptyUndo(room_id)
        timeline.redo_stack.append(timeline.history.pop())
        return list(timeline.history)

    def redo(self, room_id: str) -> List[Action]:
        """
        Move the top of the RedoStack back onto History.

        Returns:
            The full History for a resync broadcast.

        Raises:
            EmptyRedo: RedoStack is empty; nothing changes.
        """
        timeline = self._timeline(room_id)
        if not timeline.redo_stack:
            raise EmptyRedo(room_id)
        timeline.history.append(timeline.redo_stack.pop())
        return list(timeline.history)

    def history(self, room_id: str) -> List[Action]:
        return list(self._timeline(room_id).history)

    def redo_stack(self, room_id: str) -> List[Action]:
        return list(self._timeline(room_id).redo_stack)
