"""Time helpers shared by models and services."""

from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return the current timestamp in UTC.

    All persisted timestamps are server-side UTC values; clients never supply
    them.
    """
    return datetime.now(timezone.utc)


def from_epoch(value: float | int | None) -> datetime | None:
    """Convert an epoch timestamp (seconds or milliseconds) to aware UTC."""
    if value is None:
        return None
    seconds = float(value)
    if seconds > 10_000_000_000:
        seconds = seconds / 1000.0
    return datetime.fromtimestamp(seconds, tz=timezone.utc)
