# copaint/api/routes/metrics.py
from fastapi import APIRouter
from datetime import datetime, timezone

from copaint.core import state

router = APIRouter()

@router.get("/metrics")
async def get_metrics():
    """
    Usage metrics endpoint.

    Returns:
        dict: Activity counters and current capacity, e.g.

        {
            "uptime_hours": 1.5,
            "actions_appended": 1200,
            "actions_per_second": 0.22,
            "events_delivered": 5400,
            "concurrent_connections": 12,
            "active_rooms": 3,
            "members_in_rooms": 11,
            "history_entries": 830,
            "history_capacity": 500
        }
    """
    uptime_seconds = (datetime.now(timezone.utc) - state.app_start_time).total_seconds()
    hub = state.hub

    if uptime_seconds > 0:
        actions_per_second = hub.actions_appended / uptime_seconds
    else:
        actions_per_second = 0

    rooms = state.registry.list_rooms()
    history = state.registry.history

    return {
        # Statistics
        "uptime_hours": round(uptime_seconds / 3600, 2) if uptime_seconds > 0 else 0,
        "actions_appended": hub.actions_appended,
        "actions_per_second": round(actions_per_second, 2),
        "events_delivered": hub.events_delivered,

        # Capacity
        "concurrent_connections": len(state.connection_manager.connections),
        "active_rooms": len(rooms),
        "members_in_rooms": sum(len(room.members) for room in rooms),
        "history_entries": sum(len(t.history) for t in history.timelines.values()),
        "history_capacity": history.capacity,
    }
