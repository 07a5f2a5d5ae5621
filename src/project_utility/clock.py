"""
UTC clock helpers for the agent service.

Transcript timestamps double as sort keys, so every runtime timestamp is rendered through this
module as a fixed-width ISO-8601 string (millisecond precision, `Z` suffix). Fixed width keeps
lexicographic order identical to chronological order inside the document store.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current aware datetime in UTC."""

    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Convert any datetime into UTC, treating naive values as UTC."""

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_iso(dt: Optional[datetime] = None) -> str:
    """Render `YYYY-MM-DDTHH:MM:SS.mmmZ` for the given (or current) instant."""

    target = ensure_utc(dt or utc_now())
    return target.strftime("%Y-%m-%dT%H:%M:%S.") + f"{target.microsecond // 1000:03d}Z"


def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 string (with `Z` or explicit offset) into an aware UTC datetime."""

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))


def add_seconds(dt: datetime, seconds: float) -> datetime:
    return dt + timedelta(seconds=seconds)


__all__ = [
    "Clock",
    "add_seconds",
    "ensure_utc",
    "parse_iso",
    "utc_iso",
    "utc_now",
]
