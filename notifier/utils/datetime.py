"""Helpers for working with timezone-aware datetimes."""

from __future__ import annotations

import re
from datetime import datetime, time, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Final

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_DEFAULT_TIMEZONE: Final[str] = "UTC"
_OFFSET_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?:UTC|GMT)(?P<sign>[+-])(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?$",
    re.IGNORECASE,
)


def now_utc() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(tz=timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Normalize ``value`` to an aware UTC datetime.

    Naive values are read back from the database, where every timestamp is
    stored as naive UTC.
    """

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Return ``value`` in UTC without ``tzinfo`` for storage.

    SQLite and SQL Server ``DATETIME`` columns do not keep the offset, so
    the domain layer works with aware values and the repositories store
    the naive UTC representation.
    """

    normalized = ensure_utc(value)
    if normalized is None:
        return None
    return normalized.replace(tzinfo=None)


@lru_cache(maxsize=128)
def resolve_timezone(tz_name: str | None) -> tzinfo:
    """Resolve ``tz_name`` into a ``tzinfo`` instance.

    Accepts IANA names (``America/Bogota``) and fixed offsets written as
    ``UTC-05:00``. Anything else falls back to UTC.
    """

    name = (tz_name or "").strip() or _DEFAULT_TIMEZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        match = _OFFSET_PATTERN.match(name)
        if match:
            sign = -1 if match.group("sign") == "-" else 1
            hours = int(match.group("hours"))
            minutes = int(match.group("minutes") or 0)
            offset = timedelta(hours=hours, minutes=minutes)
            return timezone(sign * offset)
    return timezone.utc


def local_time_of_day(moment: datetime, tz_name: str | None) -> time:
    """Return the wall-clock time of ``moment`` in ``tz_name``."""

    aware = ensure_utc(moment)
    return aware.astimezone(resolve_timezone(tz_name)).time()


def now_utc_naive() -> datetime:
    """Return the current UTC time without ``tzinfo`` for column defaults."""

    return now_utc().replace(tzinfo=None)


def is_known_timezone(tz_name: str | None) -> bool:
    """Return ``True`` when ``tz_name`` resolves to a real zone or offset."""

    name = (tz_name or "").strip()
    if not name:
        return False
    if name.upper() == _DEFAULT_TIMEZONE or _OFFSET_PATTERN.match(name):
        return True
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True
