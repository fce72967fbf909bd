# copaint/core/config.py
import os
from typing import Literal
from dotenv import load_dotenv

class Settings:
    """
    Setup environment variables.
        - HISTORY_CAPACITY max number of durable actions kept per room
        - PUB_SUB_SERVICE the fan-out backend: "memory" or "redis"
        - SERVER_URL relay endpoint clients try first
        - FALLBACK_TIMEOUT_SECONDS how long clients wait for the relay before
          switching to the local bus
    """

    # Load environment variables from the .env file
    load_dotenv()

    HISTORY_CAPACITY: int = int(os.getenv("HISTORY_CAPACITY", "500"))

    PUB_SUB_SERVICE: Literal["memory", "redis"] = os.getenv("PUB_SUB_SERVICE", "memory")

    REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_ACCESS_KEY: str = os.getenv("REDIS_ACCESS_KEY", "")

    SERVER_URL: str = os.getenv("SERVER_URL", "ws://localhost:8000/ws")
    FALLBACK_TIMEOUT_SECONDS: float = float(os.getenv("FALLBACK_TIMEOUT_SECONDS", "0.8"))
    LOCAL_CHANNEL_NAME: str = os.getenv("LOCAL_CHANNEL_NAME", "copaint_demo_channel")

    # Sender-side throttles for ephemeral events
    CURSOR_THROTTLE_MS: int = int(os.getenv("CURSOR_THROTTLE_MS", "30"))
    SEGMENT_THROTTLE_MS: int = int(os.getenv("SEGMENT_THROTTLE_MS", "16"))

    DEFAULT_CANVAS_WIDTH: int = int(os.getenv("DEFAULT_CANVAS_WIDTH", "800"))
    DEFAULT_CANVAS_HEIGHT: int = int(os.getenv("DEFAULT_CANVAS_HEIGHT", "600"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

settings = Settings()
