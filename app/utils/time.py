"""Time and calendar utilities."""

from datetime import date, datetime, time, timezone

from dateutil.relativedelta import relativedelta


def utc_now() -> datetime:
    """Get current UTC datetime.

    Returns:
        Current datetime in UTC timezone
    """
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Get the current calendar date in UTC."""
    return utc_now().date()


def add_months(start: date, months: int) -> date:
    """Return the same day ``months`` calendar months after ``start``.

    Days past the end of the target month clamp to its last day,
    so 31 August + 3 months is 30 November.
    """
    return start + relativedelta(months=months)


def format_long_date(value: date) -> str:
    """Format a date as e.g. ``January 5, 2027`` for correspondence."""
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def format_slot_time(value: time) -> str:
    """Format a time-of-day as ``HH:MM``."""
    return value.strftime("%H:%M")
