"""Shared utilities for the crypto tracker."""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def parse_ms_timestamp(ts_ms: float) -> datetime:
    """Convert a Unix timestamp in milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc)


def to_ms_timestamp(value: datetime) -> int:
    """Convert a datetime back to Unix milliseconds (naive values are taken as UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(round(value.timestamp() * 1000))
