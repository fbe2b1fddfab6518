"""
Utility helpers for formatting counts, percentages and timestamps.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional


def format_number(value: Optional[float], decimals: int = 0) -> str:
    if value is None or value != value:
        return "–"
    try:
        return f"{value:,.{decimals}f}"
    except (TypeError, ValueError):
        return "–"


def format_percent(value: Optional[float], decimals: int = 1) -> str:
    """Format a ratio (0.25) as a percentage string (25.0%)."""
    if value is None or value != value:
        return "–"
    try:
        return f"{value * 100:.{decimals}f}%"
    except (TypeError, ValueError):
        return "–"


def format_timestamp(epoch_seconds: Optional[float]) -> str:
    if epoch_seconds is None:
        return "not fetched yet"
    return dt.datetime.fromtimestamp(epoch_seconds).strftime("%Y-%m-%d %H:%M:%S")


def format_age(epoch_seconds: Optional[float], now: Optional[float] = None) -> str:
    if epoch_seconds is None:
        return "–"
    now = now if now is not None else dt.datetime.now().timestamp()
    minutes = max(0, int((now - epoch_seconds) // 60))
    if minutes < 60:
        return f"{minutes} min ago"
    hours, minutes = divmod(minutes, 60)
    return f"{hours} h {minutes} min ago"
