"""Time utility helpers."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta


def now_utc() -> datetime:
    """Return current timezone-aware UTC datetime."""
    return datetime.now(tz=UTC)


def unix_now() -> int:
    """Return current unix time in whole seconds."""
    return int(now_utc().timestamp())


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse a Postgres/ISO timestamp into an aware UTC datetime."""
    if isinstance(value, str):
        normalized = value.replace("Z", "+00:00")
        parsed = datetime.fromisoformat(normalized)
    else:
        parsed = value

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def minutes_before(moment: datetime, minutes: int) -> datetime:
    """Return ``moment`` shifted back by ``minutes``."""
    return moment - timedelta(minutes=minutes)
