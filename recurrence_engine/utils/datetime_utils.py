"""
Timezone-aware date utilities.
"""

import calendar
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

# UTC timezone constant
UTC = timezone.utc


def get_user_today(user_timezone: str) -> date:
    """
    Get today's date in the given timezone.

    Args:
        user_timezone: IANA timezone name (e.g., "Asia/Tokyo", "America/New_York")

    Returns:
        date: Today's date in that timezone

    Example:
        >>> get_user_today("Asia/Tokyo")  # When UTC is 2024-01-19 23:00
        date(2024, 1, 20)  # JST is 2024-01-20 08:00
    """
    tz = ZoneInfo(user_timezone)
    return datetime.now(UTC).astimezone(tz).date()


def start_of_week(value: date) -> date:
    """Monday of the week containing the date."""
    return value - timedelta(days=value.weekday())


def month_index(value: date) -> int:
    """Months since year 0, for month arithmetic."""
    return value.year * 12 + value.month - 1


def clamped_date(index: int, day_of_month: int) -> date:
    """Date for a month index, clamping the day to the month length."""
    year, month = divmod(index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day_of_month, last_day))


def start_of_day(value: date) -> datetime:
    """Naive midnight datetime for a date."""
    return datetime.combine(value, datetime.min.time())
