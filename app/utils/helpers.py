"""
Helper utility functions for the business clock and date handling.

All timestamps stored by the CRM are naive local times in the configured
TIMEZONE, so every "now" and "today" goes through these helpers.
"""

import calendar
from datetime import datetime, date, time, timedelta
from zoneinfo import ZoneInfo

from config import get_config

DATETIME_FORMAT = '%Y-%m-%d %H:%M:%S'
MINUTE_FORMAT = '%Y-%m-%d %H:%M'
DATE_FORMAT = '%Y-%m-%d'


def local_zone():
    return ZoneInfo(get_config().TIMEZONE)


def now():
    """Current naive local time in the configured timezone."""
    return datetime.now(local_zone()).replace(tzinfo=None)


def day_range(day):
    """
    Get the [start, end) datetimes covering a calendar day.

    Args:
        day: date or datetime

    Returns:
        Tuple of (start, end)
    """
    if isinstance(day, datetime):
        day = day.date()
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def today_range():
    return day_range(now())


def add_months(value, months):
    """
    Shift a datetime by whole calendar months.

    A day that does not exist in the target month is clamped to its last day
    (Jan 31 + 1 month -> Feb 28/29).
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def parse_datetime(value):
    """
    Parse a request value into a naive local datetime.

    Accepts datetime/date objects, 'YYYY-MM-DD', 'YYYY-MM-DD HH:MM[:SS]' and
    ISO 8601 strings with an optional offset or trailing 'Z'. Aware values
    are converted to the local timezone.

    Raises:
        ValueError: if the value cannot be parsed
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Unsupported datetime value: {value!r}")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(local_zone()).replace(tzinfo=None)
    return parsed


def format_datetime(value, fmt=DATETIME_FORMAT):
    """Format a datetime, returning an empty string for None."""
    return value.strftime(fmt) if value else ''


def isoformat(value):
    return value.isoformat() if value else None
