"""Time utility helpers."""

from __future__ import annotations

from datetime import UTC, datetime

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def now_utc() -> datetime:
    """Return current timezone-aware UTC datetime."""
    return datetime.now(tz=UTC)


def now_iso() -> str:
    """Return the current UTC time as an ISO 8601 string for row payloads."""
    return now_utc().isoformat()


def parse_timestamp(value: str | datetime | None) -> datetime:
    """Parse a stored timestamp into an aware datetime.

    Missing values sort as the epoch so ordering never fails on legacy rows.
    """
    if not value:
        return EPOCH

    if isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        parsed = value

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
