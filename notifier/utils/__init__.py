"""Utility helpers for reusable functionality."""

from .datetime import (
    ensure_utc,
    is_known_timezone,
    local_time_of_day,
    now_utc,
    now_utc_naive,
    resolve_timezone,
    to_naive_utc,
)
from .logs import configure_logging

__all__ = [
    "configure_logging",
    "ensure_utc",
    "is_known_timezone",
    "local_time_of_day",
    "now_utc",
    "now_utc_naive",
    "resolve_timezone",
    "to_naive_utc",
]
