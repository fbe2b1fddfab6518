"""Logging setup built on loguru."""

from __future__ import annotations

import sys
from typing import Optional

from loguru import logger

LOG_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{function} - {message}"

_configured_level: Optional[str] = None


def configure_logging(level: str = "INFO") -> None:
    """Install a single stderr sink at ``level``.

    Streamlit re-executes the app script on every interaction, so repeated
    calls with the same level are no-ops.
    """
    global _configured_level
    level = level.upper()
    if _configured_level == level:
        return
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT, backtrace=False, diagnose=False)
    _configured_level = level
    logger.debug("Logging configured at level {}", level)


__all__ = ["configure_logging", "logger"]
