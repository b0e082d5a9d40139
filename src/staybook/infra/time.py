"""Time utilities for consistent date handling."""

from datetime import date, datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Return the current UTC calendar date."""
    return utc_now().date()


def months_before(day: date, months: int) -> date:
    """Return the same day-of-month `months` calendar months earlier.

    Days past the end of the target month roll forward into the following
    month, so 2026-03-31 minus one month is 2026-03-03.
    """
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    return date(year, month + 1, 1) + timedelta(days=day.day - 1)
