"""Timestamp helpers.

Entries carry ISO-8601 strings; analysis works on millisecond epoch integers.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_MS = timedelta(milliseconds=1)


def parse_iso_dt(s: str) -> datetime | None:
    """Parse ISO8601 datetime. If tz is missing, assume UTC."""
    try:
        dt = datetime.fromisoformat(s.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_epoch_ms(value: str) -> int | None:
    """Return the millisecond epoch for an ISO timestamp, or None if unparseable."""
    dt = parse_iso_dt(value)
    if dt is None:
        return None
    return (dt - EPOCH) // _ONE_MS


def format_iso(dt: datetime) -> str:
    """Render a datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def epoch_ms_to_iso(ms: int | float) -> str:
    """Render a millisecond epoch as an ISO string (raises OverflowError when out of range)."""
    return format_iso(EPOCH + timedelta(milliseconds=ms))


def utc_now() -> datetime:
    return datetime.now(UTC)
