"""UTC timestamp helpers for the task store.

Every timestamp is written in one fixed-width format so SQLite can compare
them as plain strings (``claim_expires_at < ?``).
"""

from __future__ import annotations

from datetime import UTC, datetime

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_db_timestamp(dt: datetime) -> str:
    return ensure_utc(dt).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse a stored timestamp (or pass a datetime through) as aware UTC."""
    if isinstance(value, datetime):
        return ensure_utc(value)
    return ensure_utc(datetime.fromisoformat(value))
