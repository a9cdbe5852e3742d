"""Date parsing and calendar utilities."""

from datetime import date, datetime, time, timedelta, UTC
from typing import Optional

from dateutil import parser as date_parser
from dateutil import tz
from dateutil.relativedelta import relativedelta

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime.

    SQLite drops tzinfo on DateTime columns, so every timestamp pennywise
    stores or compares is naive UTC.
    """
    return datetime.now(UTC).replace(tzinfo=None)


def to_local_time(moment: datetime, timezone_name: str) -> datetime:
    """Convert a naive UTC datetime to naive wall-clock time in ``timezone_name``.

    Raises:
        ValueError: If the timezone is unknown
    """
    zone = tz.gettz(timezone_name) if timezone_name else None
    if zone is None:
        raise ValueError(f"Unknown timezone '{timezone_name}'")
    return moment.replace(tzinfo=tz.UTC).astimezone(zone).replace(tzinfo=None)


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2025-01-15", "January 15, 2025") and relative
    ones: "today", "yesterday", "tomorrow", "last/this/next week|month|year"
    and "last <weekday>".

    Args:
        date_str: Date string in various formats
        today: Reference date for relative expressions (defaults to today)

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    today = today or date.today()

    fixed = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if text in fixed:
        return fixed[text]

    direction, _, period = text.partition(" ")
    if direction in ("last", "this", "next") and period:
        if period in WEEKDAYS and direction == "last":
            days_ago = (today.weekday() - WEEKDAYS.index(period)) % 7 or 7
            return today - timedelta(days=days_ago)

        offset = {"last": -1, "this": 0, "next": 1}[direction]
        if period == "week":
            monday = today - timedelta(days=today.weekday())
            return monday + timedelta(weeks=offset)
        if period == "month":
            return today.replace(day=1) + relativedelta(months=offset)
        if period == "year":
            return today.replace(month=1, day=1) + relativedelta(years=offset)

    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_clock_time(value: str) -> time:
    """Parse an "HH:MM" string.

    Raises:
        ValueError: If the value is not a valid 24-hour clock time
    """
    try:
        hours, minutes = value.strip().split(":")
        return time(int(hours), int(minutes))
    except (ValueError, AttributeError):
        raise ValueError(f"Invalid time '{value}', expected HH:MM")


def month_bounds(day: date) -> tuple[date, date]:
    """Return the first and last day of the month containing ``day``."""
    start = day.replace(day=1)
    end = start + relativedelta(months=1) - timedelta(days=1)
    return start, end


def get_date_range(period: str, today: Optional[date] = None) -> tuple[date, date]:
    """Get start and end dates for a named period.

    Args:
        period: One of this-month, this-year, this-week, last-month,
            last-year, last-week
        today: Reference date (defaults to today)

    Returns:
        Tuple of (start_date, end_date)

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = today or date.today()

    if period == "this-month":
        return today.replace(day=1), today
    if period == "this-year":
        return today.replace(month=1, day=1), today
    if period == "this-week":
        return today - timedelta(days=today.weekday()), today
    if period == "last-month":
        return month_bounds(today.replace(day=1) - timedelta(days=1))
    if period == "last-year":
        start = today.replace(month=1, day=1) - relativedelta(years=1)
        return start, today.replace(month=1, day=1) - timedelta(days=1)
    if period == "last-week":
        start = today - timedelta(days=today.weekday() + 7)
        return start, start + timedelta(days=6)

    raise ValueError(
        f"Unknown period: '{period}'. Supported periods: this-month, this-year, "
        "this-week, last-month, last-year, last-week"
    )
