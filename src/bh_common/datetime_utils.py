"""UTC datetime utilities."""

from datetime import UTC, date, datetime


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(UTC)


def utc_today() -> date:
    """Current calendar day in UTC: the unit of the daily coin claim."""
    return utc_now().date()
