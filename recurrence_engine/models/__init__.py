"""Pydantic models (schemas) for the recurrence engine."""

from recurrence_engine.models.enums import DayOfWeek, Frequency, PatternState, Priority
from recurrence_engine.models.recurrence_pattern import (
    RecurrencePattern,
    RecurrencePatternCreate,
    RecurrencePatternRead,
    RecurrencePatternUpdate,
    RecurrenceRule,
    WeekdaySet,
)
from recurrence_engine.models.task import Task, TaskCreate
from recurrence_engine.models.user import User

__all__ = [
    # Enums
    "DayOfWeek",
    "Frequency",
    "PatternState",
    "Priority",
    # Recurrence
    "RecurrencePattern",
    "RecurrencePatternCreate",
    "RecurrencePatternRead",
    "RecurrencePatternUpdate",
    "RecurrenceRule",
    "WeekdaySet",
    # Task
    "Task",
    "TaskCreate",
    # User
    "User",
]
