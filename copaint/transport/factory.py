# copaint/transport/factory.py

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from websockets.exceptions import WebSocketException

from copaint.core.config import settings
from copaint.transport.base import Transport
from copaint.transport.local_bus import LocalBusTransport
from copaint.transport.relay import RelayTransport

logger = logging.getLogger(__name__)


async def open_transport(
    url: Optional[str] = None,
    timeout: Optional[float] = None,
    channel_name: Optional[str] = None,
) -> Transport:
    """
    Pick the transport for this session, once.

    Tries the relay at ``url`` for at most ``timeout`` seconds. If it cannot
    be reached in time, a local bus on ``channel_name`` is opened instead;
    that mode only links participants in this process and stays that way for
    the rest of the session.
    """
    url = url or settings.SERVER_URL
    timeout = settings.FALLBACK_TIMEOUT_SECONDS if timeout is None else timeout
    channel_name = channel_name or settings.LOCAL_CHANNEL_NAME

    relay = RelayTransport(url)
    try:
        await asyncio.wait_for(relay.connect(), timeout)
        return relay
    except (asyncio.TimeoutError, OSError, WebSocketException, ConnectionError) as e:
        logger.warning(
            "Relay %s unavailable (%s); using local bus %r, same-device only",
            url, e.__class__.__name__, channel_name,
        )
        await relay.disconnect()

    local = LocalBusTransport(channel_name)
    await local.connect()
    return local
