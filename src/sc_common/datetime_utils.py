"""UTC datetime utilities."""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def seconds_ago(seconds: int) -> datetime:
    return utc_now() - timedelta(seconds=seconds)
