# copaint/api/routes/root.py

from fastapi import APIRouter

router = APIRouter()


@router.get("/")
async def root():
    """
    Root endpoint - API information.

    Returns basic info about the API and its features.
    """
    return {
        "message": "CoPaint - shared canvas sync",
        "version": "2.0",
        "architecture": "single arbitration point per room + full-resync undo",
        "features": ["rooms", "host_authority", "undo_redo", "flood_fill", "local_fallback"],
        "endpoints": {
            "websocket": "/ws",
            "rooms": "/rooms",
            "health": "/health",
            "metrics": "/metrics",
        },
    }
