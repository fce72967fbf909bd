# copaint/core/logging.py

import logging
import sys

from copaint.core.config import settings

DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Third-party loggers and the level they are capped at
NOISY_LOGGERS = {
    "redis": logging.WARNING,
    "websockets": logging.WARNING,
    "PIL": logging.WARNING,
    "uvicorn": logging.INFO,
    "uvicorn.error": logging.INFO,
    "uvicorn.access": logging.WARNING,
}


def setup_logging(level_name: str | None = None) -> None:
    """
    Configure logging for the relay and for embedded clients.

    - Root level comes from ``level_name`` or ``settings.LOG_LEVEL`` (INFO
      unless overridden); unknown names fall back to INFO
    - One stdout handler, so the container runtime collects the output
    - Library loggers in ``NOISY_LOGGERS`` are capped so per-frame chatter
      from redis, websockets and Pillow stays out of the room lifecycle log

    Safe to call more than once: if a handler is already installed (e.g. by
    Uvicorn) only the level is updated.
    """
    level = getattr(logging, (level_name or settings.LOG_LEVEL).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if root_logger.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
    root_logger.addHandler(handler)

    for name, cap in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(cap)


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Logger lookup for modules that want the app's configuration applied.

    Usage:
        from copaint.core.logging import get_logger

        logger = get_logger(__name__)
        logger.info("Room %s created", room_id)
    """
    return logging.getLogger(name)
