"""Time utilities for stored timestamps.

Timestamps are persisted as ISO-8601 strings in UTC so that any store
backend can hold them as plain text values.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


def to_stored(value: datetime) -> str:
    """Serialize a datetime for storage (naive values are assumed UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def from_stored(raw: str | None) -> datetime | None:
    """Parse a stored timestamp.

    Accepts ISO-8601 strings and epoch milliseconds (the format written by
    earlier deployments of the relay). Returns None for missing or
    unparsable values.
    """
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return None
    if raw.isdigit():
        return datetime.fromtimestamp(int(raw) / 1000, tz=timezone.utc)
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
