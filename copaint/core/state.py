# copaint/core/state.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from copaint.core.config import settings
from copaint.services.connection_manager import ConnectionManager
from copaint.services.history_manager import HistoryManager
from copaint.services.redis_pub_sub import AsyncRedisPubSubService
from copaint.services.session_hub import SessionHub
from copaint.services.session_registry import SessionRegistry

# Global singletons for app state
history_manager = HistoryManager(capacity=settings.HISTORY_CAPACITY)
registry = SessionRegistry(history=history_manager)
hub = SessionHub(registry)
connection_manager = ConnectionManager()
connection_manager.bind(hub)

redis_service: Optional[AsyncRedisPubSubService] = None

# Metrics
app_start_time: datetime = datetime.now(timezone.utc)
