"""Observability layer: one console format for the API, uvicorn and the resolution sessions."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO", *, access_log: bool = True) -> None:
    """Route uvicorn loggers through the root handler.

    Watch screens poll session state every few seconds, so ``access_log=False``
    raises ``uvicorn.access`` to WARNING and keeps session transitions readable.
    """
    normalized = level.upper()
    logging.basicConfig(level=normalized, format=LOG_FORMAT, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.setLevel(normalized)
        logger.propagate = True
    if not access_log:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
