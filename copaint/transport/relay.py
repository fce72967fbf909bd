# copaint/transport/relay.py

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import websockets
from pydantic import BaseModel, ValidationError
from websockets.exceptions import ConnectionClosed

from copaint.core.config import settings
from copaint.models.events import EventName, parse_event
from copaint.transport.base import Transport

logger = logging.getLogger(__name__)


class RelayTransport(Transport):
    """
    Client side of the server-authoritative relay.

    Every intent is a JSON frame sent to the server's ``/ws`` endpoint; the
    server's hub is the single arbitration point, so the order in which it
    accepts frames is the canonical order every member sees.
    """

    def __init__(self, url: str = settings.SERVER_URL, **kwargs) -> None:
        super().__init__(**kwargs)
        self.url = url
        self._ws = None
        self._reader: Optional[asyncio.Task] = None

    @property
    def connected(self) -> bool:
        return self._ws is not None and self._reader is not None and not self._reader.done()

    async def connect(self) -> None:
        """
        Open the socket and wait for the server's greeting.

        Raises:
            OSError / websockets.exceptions.WebSocketException: the relay is
            unreachable or refused the handshake.
        """
        self._ws = await websockets.connect(self.url)
        greeting = parse_event(await self._ws.recv())
        if EventName(greeting.type) is not EventName.CONNECTED:
            await self._ws.close()
            self._ws = None
            raise ConnectionError(f"Unexpected greeting from relay: {greeting.type}")
        self._trigger(greeting)
        self._reader = asyncio.create_task(self._read_loop())
        logger.info("✓ Connected to relay %s as %s", self.url, self.current_user_id)

    async def _read_loop(self) -> None:
        try:
            async for raw in self._ws:
                try:
                    event = parse_event(raw)
                except ValidationError as e:
                    logger.warning("Dropping malformed relay frame: %s", e)
                    continue
                self._trigger(event)
        except ConnectionClosed:
            logger.info("Relay connection %s closed", self.url)

    async def disconnect(self) -> None:
        if self._reader is not None:
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
            self._reader = None
        if self._ws is not None:
            await self._ws.close()
            self._ws = None

    async def _send(self, intent: BaseModel) -> None:
        if self._ws is None:
            raise RuntimeError("Relay transport is not connected")
        await self._ws.send(intent.model_dump_json())
