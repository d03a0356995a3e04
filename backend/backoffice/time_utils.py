# Overview: UTC clock and ISO-8601 helpers. Datetimes are stored naive and always mean UTC.

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse ISO-8601 into a naive UTC datetime.

    Blank input gives None. Naive input is taken as UTC; a trailing "Z" or an
    explicit offset is converted. Raises ValueError on anything unparseable.
    """
    text = (value or "").strip()
    if not text:
        return None
    if text[-1] in "zZ":
        text = text[:-1] + "+00:00"

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def is_date_only(value: Optional[str]) -> bool:
    """True for a bare calendar date such as "2026-03-31"."""
    if not value:
        return False
    try:
        date.fromisoformat(value.strip())
    except ValueError:
        return False
    return True


def end_of_day_exclusive(value: str) -> datetime:
    """Midnight following a bare calendar date (exclusive upper bound)."""
    return datetime.combine(date.fromisoformat(value.strip()), datetime.min.time()) + timedelta(days=1)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Render as "2026-03-31T12:00:00Z" (seconds precision); naive input is UTC."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.replace(microsecond=0).isoformat() + "Z"
