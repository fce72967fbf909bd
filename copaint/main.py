# copaint/main.py

from __future__ import annotations

import asyncio

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from copaint.core import state
from copaint.core.config import settings
from copaint.core.logging import setup_logging, get_logger
from copaint.services.redis_pub_sub import AsyncRedisPubSubService
from copaint.api.routes import root, health, metrics, rooms
from copaint.api import websocket as websocket_module

# Configure logging first
setup_logging()
logger = get_logger(__name__)

# FastAPI app
app = FastAPI(title="CoPaint - Shared Canvas Sync")

# CORS (relaxed, the canvas client may be served from anywhere)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# REST routes
app.include_router(root.router)
app.include_router(health.router)
app.include_router(metrics.router)
app.include_router(rooms.router)

# WebSocket routes
app.include_router(websocket_module.router)


@app.on_event("startup")
async def startup_event():
    logger.info(
        "🚀 Application starting - history capacity %d, fan-out %s",
        settings.HISTORY_CAPACITY, settings.PUB_SUB_SERVICE,
    )

    if settings.PUB_SUB_SERVICE == "redis":
        redis_service = AsyncRedisPubSubService(host=settings.REDIS_HOST, port=settings.REDIS_PORT)
        await redis_service.connect()

        # Store globally
        state.redis_service = redis_service
        state.connection_manager.redis_service = redis_service

        # Start subscriber in background
        asyncio.create_task(redis_service.listen())


@app.on_event("shutdown")
async def on_shutdown():
    if state.redis_service is not None:
        await state.redis_service.close()
        state.connection_manager.redis_service = None
        state.redis_service = None


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("copaint.main:app", host="0.0.0.0", port=8000)
