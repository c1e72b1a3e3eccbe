"""Builders shared across test modules."""

from datetime import date, datetime
from uuid import uuid4

from recurrence_engine.models.enums import Frequency
from recurrence_engine.models.recurrence_pattern import RecurrencePattern


def make_pattern(
    frequency: Frequency = Frequency.DAILY,
    start_date: date = date(2024, 1, 1),
    **overrides,
) -> RecurrencePattern:
    """In-memory pattern for calculator / evaluator / coordinator tests."""
    now = datetime(2024, 1, 1, 9, 0, 0)
    values = {
        "id": uuid4(),
        "task_id": uuid4(),
        "user_id": "test_user",
        "frequency": frequency,
        "interval_value": 1,
        "start_date": start_date,
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return RecurrencePattern(**values)
