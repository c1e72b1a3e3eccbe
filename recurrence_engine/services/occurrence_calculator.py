"""
Occurrence calculator.

Pure date arithmetic for recurrence rules. Nothing here touches storage.

Weeks are Monday-based and counted from the week containing start_date;
a week is eligible when its offset is a multiple of interval_value.
Monthly rules clamp day_of_month to the length of the target month.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterator, Optional

from recurrence_engine.core.exceptions import MalformedPatternError
from recurrence_engine.models.enums import Frequency
from recurrence_engine.models.recurrence_pattern import RecurrenceRule, ordered_weekdays
from recurrence_engine.utils.datetime_utils import clamped_date, month_index, start_of_week


def first_occurrence(rule: RecurrenceRule) -> date:
    """The first date a rule produces: start_date itself when it matches the rule."""
    _check_rule(rule)
    freq = rule.frequency

    if freq == Frequency.DAILY:
        return rule.start_date

    if freq == Frequency.WEEKLY:
        return _next_weekly(rule, rule.start_date, inclusive=True)

    # MONTHLY: roll forward month by month until on or after start_date
    index = month_index(rule.start_date)
    candidate = clamped_date(index, rule.day_of_month)
    while candidate < rule.start_date:
        index += 1
        candidate = clamped_date(index, rule.day_of_month)
    return candidate


def next_occurrence(rule: RecurrenceRule, reference_date: Optional[date] = None) -> date:
    """
    Next occurrence of a rule.

    Args:
        rule: Pattern or bare rule
        reference_date: Last generated date. Defaults to the pattern's
            last_generated_date; when neither is set the first occurrence
            is returned.

    Raises:
        MalformedPatternError: If the rule cannot produce a forward-moving date
    """
    if reference_date is None:
        reference_date = getattr(rule, "last_generated_date", None)
    if reference_date is None or reference_date < rule.start_date:
        return first_occurrence(rule)

    _check_rule(rule)
    freq = rule.frequency

    if freq == Frequency.DAILY:
        result = reference_date + timedelta(days=rule.interval_value)
    elif freq == Frequency.WEEKLY:
        result = _next_weekly(rule, reference_date, inclusive=False)
    else:
        result = clamped_date(
            month_index(reference_date) + rule.interval_value, rule.day_of_month
        )

    if result <= reference_date:
        raise MalformedPatternError(
            _pattern_id(rule),
            f"next occurrence {result} does not move past {reference_date}",
        )
    return result


def upcoming_occurrences(rule: RecurrenceRule, count: int) -> Iterator[date]:
    """
    Yield up to ``count`` future occurrences, honouring max_occurrences and end_date.

    Progress fields of a stored pattern are taken into account, so the first
    date yielded is the one the coordinator would generate next.
    """
    generated = getattr(rule, "generated_count", 0) or 0
    last = getattr(rule, "last_generated_date", None)

    for _ in range(count):
        if rule.max_occurrences is not None and generated >= rule.max_occurrences:
            return
        if rule.end_date is not None and last is not None and last >= rule.end_date:
            return
        candidate = next_occurrence(rule, last) if last else first_occurrence(rule)
        if rule.end_date is not None and candidate > rule.end_date:
            return
        yield candidate
        generated += 1
        last = candidate


def _next_weekly(rule: RecurrenceRule, after: date, inclusive: bool) -> date:
    """Earliest matching weekday in an eligible week, after (or on) the given date."""
    interval = rule.interval_value
    anchor = start_of_week(rule.start_date)
    weekdays = [day.weekday for day in ordered_weekdays(rule.days_of_week)]

    earliest = after if inclusive else after + timedelta(days=1)
    earliest = max(earliest, rule.start_date)
    week = start_of_week(earliest)
    offset = (week - anchor).days // 7

    if offset % interval == 0:
        for weekday in weekdays:
            candidate = week + timedelta(days=weekday)
            if candidate >= earliest:
                return candidate
        offset += interval
    else:
        offset += interval - offset % interval

    return anchor + timedelta(weeks=offset, days=weekdays[0])


def _check_rule(rule: RecurrenceRule) -> None:
    pattern_id = _pattern_id(rule)
    if rule.interval_value is None or rule.interval_value < 1:
        raise MalformedPatternError(pattern_id, "interval_value must be at least 1")
    if rule.frequency == Frequency.WEEKLY and not rule.days_of_week:
        raise MalformedPatternError(pattern_id, "WEEKLY rule has no days_of_week")
    if rule.frequency == Frequency.MONTHLY and not (
        rule.day_of_month is not None and 1 <= rule.day_of_month <= 31
    ):
        raise MalformedPatternError(pattern_id, "MONTHLY rule has no valid day_of_month")


def _pattern_id(rule: RecurrenceRule):
    return getattr(rule, "id", None)
