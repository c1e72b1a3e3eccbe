"""
Recurrence pattern models.

A pattern governs one template task and produces task instances on the
dates its rule describes. Rule fields are user-editable; progress fields
(generated_count, last_generated_date) are written only by the coordinator.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from recurrence_engine.models.enums import DayOfWeek, Frequency, PatternState

WeekdaySet = frozenset[DayOfWeek]


def ordered_weekdays(days: Iterable[DayOfWeek]) -> list[DayOfWeek]:
    """Weekdays in calendar order (Monday first)."""
    return sorted(set(days), key=lambda day: day.weekday)


def parse_weekdays(value: Any) -> WeekdaySet:
    """Build a weekday set from a comma-joined string or an iterable of names."""
    if value is None:
        return frozenset()
    if isinstance(value, str):
        value = [part for part in value.split(",") if part.strip()]
    return frozenset(
        item if isinstance(item, DayOfWeek) else DayOfWeek(str(item).strip().upper())
        for item in value
    )


def format_weekdays(days: Iterable[DayOfWeek]) -> str | None:
    """Comma-joined storage form, or None for an empty set."""
    ordered = ordered_weekdays(days)
    if not ordered:
        return None
    return ",".join(day.value for day in ordered)


class RecurrenceRule(BaseModel):
    """Rule fields shared by create, stored and read models."""

    frequency: Frequency
    interval_value: int = Field(1, description="Multiplier of the base unit")
    start_date: date
    end_date: Optional[date] = None
    days_of_week: WeekdaySet = Field(
        default_factory=frozenset, description="Required for WEEKLY only"
    )
    day_of_month: Optional[int] = Field(None, description="1-31, required for MONTHLY only")
    max_occurrences: Optional[int] = Field(None, description="Hard cap on generated instances")

    @field_validator("days_of_week", mode="before")
    @classmethod
    def _coerce_days_of_week(cls, value: Any) -> WeekdaySet:
        return parse_weekdays(value)

    @field_serializer("days_of_week")
    def _serialize_days_of_week(self, value: WeekdaySet) -> list[str]:
        return [day.value for day in ordered_weekdays(value)]


class RecurrencePatternCreate(RecurrenceRule):
    """Attach a recurrence rule to a task."""

    pass


class RecurrencePatternUpdate(BaseModel):
    """Edit rule fields. start_date is fixed once the pattern exists."""

    frequency: Optional[Frequency] = None
    interval_value: Optional[int] = None
    end_date: Optional[date] = None
    days_of_week: Optional[WeekdaySet] = None
    day_of_month: Optional[int] = None
    max_occurrences: Optional[int] = None

    @field_validator("days_of_week", mode="before")
    @classmethod
    def _coerce_days_of_week(cls, value: Any) -> Optional[WeekdaySet]:
        if value is None:
            return None
        return parse_weekdays(value)


class RecurrencePattern(RecurrenceRule):
    """Recurrence pattern with progress and metadata."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    task_id: UUID
    user_id: str
    generated_count: int = 0
    last_generated_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime


class RecurrencePatternRead(RecurrencePattern):
    """Pattern as returned to API callers."""

    completed: bool = False
    state: PatternState = PatternState.ACTIVE
