"""Utilities shared by the pdfjoin library and service."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str, level: int | str | None = None) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(LOG_FORMAT)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.propagate = False
    if level is not None:
        logger.setLevel(level)
    return logger


def configure_logging(level: int | str = logging.INFO) -> logging.Logger:
    """Attach the shared handler to the ``pdfjoin`` logger tree."""

    return get_logger("pdfjoin", level)


__all__ = ["get_logger", "configure_logging", "LOG_FORMAT"]
