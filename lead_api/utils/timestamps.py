"""ISO-8601 helpers for record timestamps.

Records keep ``createdAt`` as text so rows imported from older formats with
odd or broken timestamps survive a round trip; parsing happens only where
time actually matters (windows, ranges, sorting).
"""

from __future__ import annotations

from datetime import datetime, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """Render an aware datetime as UTC with millisecond precision and ``Z``.

    Raises:
        ValueError: If ``dt`` is naive.
    """

    if dt.tzinfo is None or dt.utcoffset() is None:
        raise ValueError("timestamp must be timezone-aware")
    text = dt.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 string into an aware UTC datetime.

    Naive values are interpreted as UTC. Returns ``None`` for anything that
    does not parse, so callers decide how to treat broken timestamps.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        try:
            dt = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    try:
        return dt.astimezone(timezone.utc)
    except OverflowError:
        # offset pushes the instant past datetime.min or datetime.max
        return None


def from_unix(seconds: float) -> datetime:
    """Convert a UNIX timestamp (as returned by ``time.time``) to aware UTC."""

    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
