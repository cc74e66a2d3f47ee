from __future__ import annotations

from datetime import datetime, time
from typing import Optional


def parse_clock(value: Optional[str], fallback: time) -> time:
    """Parse an "HH:MM" (or "HH:MM:SS") school clock value.

    Empty values fall back to the default; garbage raises ValueError so a broken
    settings row is noticed instead of silently replaced.
    """
    if value is None or not str(value).strip():
        return fallback
    parts = str(value).strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid clock value: {value!r}")
    hours = int(parts[0])
    minutes = int(parts[1])
    seconds = int(parts[2]) if len(parts) >= 3 and parts[2] else 0
    return time(hour=hours, minute=minutes, second=seconds)


def to_minute(value: datetime) -> datetime:
    """Drop seconds: attendance is classified on the wall clock's HH:MM."""
    return value.replace(second=0, microsecond=0)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()
