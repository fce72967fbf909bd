# copaint/services/redis_pub_sub.py
import json
import logging

import redis.asyncio as redis

from copaint.core.config import settings
from copaint.models.events import Delivery

logger = logging.getLogger(__name__)

DELIVERY_CHANNEL = "copaint:deliveries"

class AsyncRedisPubSubService:
    def __init__(self, host: str = "localhost", port: int = 6379):
        self.host = host
        self.port = port
        self.client = None
        self.pubsub = None
        self.access_key = settings.REDIS_ACCESS_KEY

    async def connect(self):
        """Establish async connection to Redis."""
        if self.access_key:
            url = f"rediss://:{self.access_key}@{self.host}:{self.port}"
        else:
            url = f"redis://{self.host}:{self.port}"
        self.client = redis.from_url(url, decode_responses=True)
        await self.client.ping()
        logger.info(f"✓ Connected to Redis at {self.host}:{self.port}")

    async def publish(self, channel: str, message: dict):
        """Publish message to channel."""
        await self.client.publish(channel, json.dumps(message))
        logger.debug(f"📤 Published to Redis channel '{channel}'")

    async def publish_delivery(self, delivery: Delivery):
        """
        Publish one hub delivery.

        Every delivery goes through the same channel, so subscribers see
        events in the order the hub produced them.
        """
        await self.publish(DELIVERY_CHANNEL, delivery.model_dump(mode="json"))

    async def listen(self, channel: str = DELIVERY_CHANNEL):
        """
        Listen to Redis channels and hand deliveries to the local sockets.

        Patterns are accepted too:
            await redis_service.listen("copaint:*")
        """
        from copaint.core import state

        self.pubsub = self.client.pubsub()

        # Support pattern subscriptions
        if "*" in channel:
            await self.pubsub.psubscribe(channel)
            logger.info(f"✓ Subscribed to Redis pattern '{channel}'")
        else:
            await self.pubsub.subscribe(channel)
            logger.info(f"✓ Subscribed to Redis channel '{channel}'")

        async for message in self.pubsub.listen():
            if message["type"] in ("message", "pmessage"):
                try:
                    delivery = Delivery.model_validate_json(message["data"])
                    await state.connection_manager.deliver_local(delivery)
                except Exception as e:
                    logger.error(f"Error processing Redis message: {e}")

    async def close(self):
        """Close connections."""
        if self.pubsub:
            await self.pubsub.unsubscribe()
            await self.pubsub.aclose()
        if self.client:
            await self.client.aclose()
        logger.info("Redis connection closed")
