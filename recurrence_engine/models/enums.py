"""
Enum definitions for the recurrence engine.

These enums are used across models and provide type-safe frequency/weekday values.
"""

from datetime import date
from enum import Enum


class Frequency(str, Enum):
    """Base unit of a recurrence rule."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"  # on specific days of the week
    MONTHLY = "MONTHLY"  # on a specific day of the month


class DayOfWeek(str, Enum):
    """Day of the week, declared in calendar order (Monday first)."""

    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @property
    def weekday(self) -> int:
        """0=Monday ... 6=Sunday, matching date.weekday()."""
        return _WEEKDAY_INDEX[self]

    @classmethod
    def from_date(cls, value: date) -> "DayOfWeek":
        return _WEEKDAYS[value.weekday()]


_WEEKDAYS = list(DayOfWeek)
_WEEKDAY_INDEX = {day: index for index, day in enumerate(_WEEKDAYS)}


class Priority(str, Enum):
    """Task priority."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class PatternState(str, Enum):
    """
    Lifecycle state of a recurrence pattern.

    ACTIVE = still generating instances
    COMPLETE = occurrence cap or end date reached (terminal)
    """

    ACTIVE = "ACTIVE"
    COMPLETE = "COMPLETE"
