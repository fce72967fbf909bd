# copaint/services/connection_manager.py

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import TYPE_CHECKING, Dict, Optional

from fastapi import WebSocket

from copaint.models.events import Connected, Delivery

if TYPE_CHECKING:
    from copaint.services.redis_pub_sub import AsyncRedisPubSubService
    from copaint.services.session_hub import SessionHub

logger = logging.getLogger(__name__)

# ============================================================================
# WEBSOCKET CONNECTION MANAGER
# ============================================================================

class ConnectionManager:
    """
    Tracks live WebSocket connections and delivers hub events to them.

    Each accepted socket gets a connection id that doubles as the member id in
    every room it joins. Room membership itself lives in the session registry;
    a ``Delivery`` already names its recipients, so this class only maps ids
    to sockets.

    Data Structures:
        connections: Maps member_id -> WebSocket
                     Example: {"3f1c...": websocket1}

    Fan-out:
        - memory: deliveries are sent straight to the local sockets
        - redis: deliveries are published to one shared channel and the
          Redis listener calls ``deliver_local`` on every instance

    Error Handling:
        A socket whose send fails is dropped and its member runs through the
        normal leave path, scheduled after the current room lock is released.
    """

    def __init__(self) -> None:
        # Map: member_id -> WebSocket
        self.connections: Dict[str, WebSocket] = {}
        self.hub: Optional["SessionHub"] = None
        self.redis_service: Optional["AsyncRedisPubSubService"] = None

    def bind(self, hub: "SessionHub") -> None:
        """Attach the hub whose deliveries this manager sends."""
        self.hub = hub
        hub.sink = self.deliver

    async def connect(self, websocket: WebSocket) -> str:
        """
        Accept a new WebSocket connection and greet it with its member id.

        Returns:
            The connection id used as member id.

        Note:
            The connection is not in any room yet; it must send create_room
            or join_room first.
        """
        await websocket.accept()
        member_id = uuid.uuid4().hex
        self.connections[member_id] = websocket
        await websocket.send_json(Connected(user_id=member_id).model_dump(mode="json"))
        logger.info("✓ Connection %s opened. Total: %d", member_id, len(self.connections))
        return member_id

    async def disconnect(self, member_id: str) -> None:
        """
        Forget a connection and remove it from every room it was in.

        Abrupt drops and voluntary closes take the same path, so membership is
        never left pointing at a dead socket.
        """
        if self.connections.pop(member_id, None) is not None:
            logger.info("✗ Connection %s closed. Total: %d", member_id, len(self.connections))
        if self.hub is not None:
            await self.hub.disconnect(member_id)

    async def deliver(self, delivery: Delivery) -> None:
        """Hub sink: route one delivery through the configured fan-out."""
        if self.redis_service is not None:
            await self.redis_service.publish_delivery(delivery)
        else:
            await self.deliver_local(delivery)

    async def deliver_local(self, delivery: Delivery) -> None:
        """Send a delivery to the recipients connected to this process."""
        message = delivery.event.model_dump(mode="json")
        failed = []

        for member_id in delivery.recipients:
            websocket = self.connections.get(member_id)
            if websocket is None:
                continue
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.error("Send error to %s: %s", member_id, e)
                failed.append(member_id)

        # Leave must not run while the hub still holds this room's lock
        for member_id in failed:
            self.connections.pop(member_id, None)
            asyncio.create_task(self.disconnect(member_id))

    async def send_to(self, member_id: str, message: dict) -> None:
        """Direct reply outside the hub (protocol errors)."""
        websocket = self.connections.get(member_id)
        if websocket is not None:
            await websocket.send_json(message)
