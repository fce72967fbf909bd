# copaint/transport/local_bus.py

from __future__ import annotations

import logging
import random
import string
from typing import Dict

from pydantic import BaseModel

from copaint.core.config import settings
from copaint.models.events import Connected, Delivery
from copaint.services.history_manager import HistoryManager
from copaint.services.session_hub import SessionHub
from copaint.services.session_registry import SessionRegistry
from copaint.transport.base import Transport

logger = logging.getLogger(__name__)


class LocalChannel:
    """
    Same-device broadcast channel.

    Every ``LocalBusTransport`` opened with the same channel name inside this
    process shares one channel, and the channel runs its own session hub, so
    local participants get exactly the relay's semantics. Participants on
    other devices or in other processes can never see it.
    """

    _channels: Dict[str, "LocalChannel"] = {}

    def __init__(self, name: str, capacity: int = settings.HISTORY_CAPACITY) -> None:
        self.name = name
        self.subscribers: Dict[str, "LocalBusTransport"] = {}
        self.hub = SessionHub(SessionRegistry(HistoryManager(capacity)), sink=self._deliver)

    @classmethod
    def get(cls, name: str) -> "LocalChannel":
        channel = cls._channels.get(name)
        if channel is None:
            channel = cls._channels[name] = LocalChannel(name)
            logger.info("Opened local channel %r", name)
        return channel

    @classmethod
    def close_all(cls) -> None:
        cls._channels.clear()

    async def _deliver(self, delivery: Delivery) -> None:
        for member_id in delivery.recipients:
            transport = self.subscribers.get(member_id)
            if transport is not None:
                transport._trigger(delivery.event)


def _local_member_id() -> str:
    return "user_" + "".join(random.choices(string.ascii_lowercase + string.digits, k=9))


class LocalBusTransport(Transport):
    """
    Fallback transport used when no relay is reachable.

    Documented constraint: it only connects participants sharing this process
    (one device / browser profile equivalent); it does not try to reach
    anyone else.
    """

    def __init__(self, channel_name: str = settings.LOCAL_CHANNEL_NAME, **kwargs) -> None:
        super().__init__(**kwargs)
        self.channel_name = channel_name
        self.channel: LocalChannel | None = None

    @property
    def connected(self) -> bool:
        return self.channel is not None

    async def connect(self) -> None:
        if self.channel is not None:
            return
        self.channel = LocalChannel.get(self.channel_name)
        member_id = _local_member_id()
        self.channel.subscribers[member_id] = self
        logger.info("Local bus member %s attached to %r", member_id, self.channel_name)
        self._trigger(Connected(user_id=member_id))

    async def disconnect(self) -> None:
        if self.channel is None:
            return
        channel, self.channel = self.channel, None
        await channel.hub.disconnect(self.current_user_id)
        channel.subscribers.pop(self.current_user_id, None)

    async def _send(self, intent: BaseModel) -> None:
        if self.channel is None:
            raise RuntimeError("Local bus transport is not connected")
        await self.channel.hub.handle(self.current_user_id, intent)
