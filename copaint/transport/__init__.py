from copaint.transport.base import Throttle, Transport
from copaint.transport.factory import open_transport
from copaint.transport.local_bus import LocalBusTransport, LocalChannel
from copaint.transport.relay import RelayTransport

__all__ = [
    "LocalBusTransport",
    "LocalChannel",
    "RelayTransport",
    "Throttle",
    "Transport",
    "open_transport",
]
