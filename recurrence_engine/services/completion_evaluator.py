"""
Completion evaluator and recurrence rule validation.

is_complete decides whether a pattern has used up its generation budget.
validate_recurrence_rule is the one validation path for every create and
update of a rule.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from recurrence_engine.core.exceptions import ValidationError
from recurrence_engine.models.enums import Frequency, PatternState
from recurrence_engine.models.recurrence_pattern import RecurrencePattern, RecurrenceRule


def is_complete(pattern: RecurrencePattern) -> bool:
    """True once the occurrence cap or the end date has been reached."""
    if (
        pattern.max_occurrences is not None
        and pattern.generated_count >= pattern.max_occurrences
    ):
        return True
    if (
        pattern.end_date is not None
        and pattern.last_generated_date is not None
        and pattern.last_generated_date >= pattern.end_date
    ):
        return True
    return False


def pattern_state(pattern: RecurrencePattern) -> PatternState:
    return PatternState.COMPLETE if is_complete(pattern) else PatternState.ACTIVE


def exceeds_end_date(pattern: RecurrenceRule, occurrence: date) -> bool:
    """True if an occurrence falls after the pattern's end date."""
    return pattern.end_date is not None and occurrence > pattern.end_date


def validate_recurrence_rule(rule: RecurrenceRule, generated_count: int = 0) -> None:
    """
    Validate a recurrence rule.

    Args:
        rule: Rule to validate (a create payload or an update merged onto a pattern)
        generated_count: Instances already generated, for updates

    Raises:
        ValidationError: With every violated constraint listed in ``details``
    """
    errors: list[str] = []

    if rule.frequency is None:
        errors.append("frequency is required")
    if rule.start_date is None:
        errors.append("start_date is required")
    if rule.interval_value is None or rule.interval_value < 1:
        errors.append("interval_value must be at least 1")

    if rule.frequency == Frequency.WEEKLY:
        if not rule.days_of_week:
            errors.append("days_of_week is required for WEEKLY recurrence")
    elif rule.days_of_week:
        errors.append("days_of_week is only allowed for WEEKLY recurrence")

    if rule.frequency == Frequency.MONTHLY:
        if rule.day_of_month is None:
            errors.append("day_of_month is required for MONTHLY recurrence")
        elif not 1 <= rule.day_of_month <= 31:
            errors.append("day_of_month must be between 1 and 31")
    elif rule.day_of_month is not None:
        errors.append("day_of_month is only allowed for MONTHLY recurrence")

    if (
        rule.end_date is not None
        and rule.start_date is not None
        and rule.end_date < rule.start_date
    ):
        errors.append("end_date must not precede start_date")

    max_occurrences: Optional[int] = rule.max_occurrences
    if max_occurrences is not None:
        if max_occurrences < 1:
            errors.append("max_occurrences must be at least 1")
        elif max_occurrences < generated_count:
            errors.append(
                f"max_occurrences must not be below the {generated_count} instances already generated"
            )

    if errors:
        raise ValidationError("Invalid recurrence rule: " + "; ".join(errors), details=errors)
