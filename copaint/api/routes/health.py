# copaint/api/routes/health.py

from fastapi import APIRouter

from copaint.core import state

router = APIRouter()

@router.get("/health")
async def health():
    """
    Health check endpoint.

    Returns current system status, connection counts, and room counts.
    Used by container health probes and monitoring.

    Returns:
        dict: Status, connection count, room count
    """
    return {
        "status": "healthy",
        "connections": len(state.connection_manager.connections),
        "rooms": len(state.registry.rooms),
    }
