# copaint/client/replica.py

from __future__ import annotations

import logging
from typing import List

from copaint.core.config import settings
from copaint.models.actions import Action
from copaint.models.events import DrawSegmentEvent, EventName, HistoryActionEvent, HistorySync
from copaint.raster.canvas import Raster
from copaint.raster.reconstruction import replay
from copaint.transport.base import Transport

logger = logging.getLogger(__name__)


class CanvasReplica:
    """
    A client's local view of the shared canvas.

    ``history_action`` paints one action on top of the current raster, which
    is safe for the author's own echo because painting is idempotent.
    ``history_sync`` (undo, redo, late join) and ``resize`` rebuild the raster
    from scratch. Live ``draw_segment`` events are painted straight onto the
    raster and disappear on the next rebuild.
    """

    def __init__(
        self,
        transport: Transport,
        width: int = settings.DEFAULT_CANVAS_WIDTH,
        height: int = settings.DEFAULT_CANVAS_HEIGHT,
    ) -> None:
        self.transport = transport
        self.history: List[Action] = []
        self.raster = Raster(width, height)

        transport.on(EventName.HISTORY_ACTION, self._on_history_action)
        transport.on(EventName.HISTORY_SYNC, self._on_history_sync)
        transport.on(EventName.DRAW_SEGMENT, self._on_draw_segment)

    def close(self) -> None:
        self.transport.off(EventName.HISTORY_ACTION, self._on_history_action)
        self.transport.off(EventName.HISTORY_SYNC, self._on_history_sync)
        self.transport.off(EventName.DRAW_SEGMENT, self._on_draw_segment)

    def pixels(self):
        return self.raster.pixels()

    def resize(self, width: int, height: int) -> None:
        if (width, height) == self.raster.size:
            return
        self.raster = replay(self.history, (width, height))

    def _on_history_action(self, event: HistoryActionEvent) -> None:
        self.history.append(event.action)
        self.raster.apply(event.action)

    def _on_history_sync(self, event: HistorySync) -> None:
        self.history = list(event.history)
        self.raster = replay(self.history, self.raster.size)
        logger.debug("Resynced %d actions", len(self.history))

    def _on_draw_segment(self, event: DrawSegmentEvent) -> None:
        self.raster.draw_segment(event.segment)
