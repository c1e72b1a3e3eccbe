"""
Recurrence Engine

Generates task instances from recurrence patterns attached to template tasks.

Core Concepts:

RecurrencePattern:
    A DAILY, WEEKLY or MONTHLY rule attached to one template task, with an
    optional end date and occurrence cap. It records how many instances it
    has produced and the date of the last one.

Task instance:
    A copy of the template task, due on one occurrence date and linked back
    to its pattern. Once created it lives independently of the pattern.

Relationships:
    - A task has at most one RecurrencePattern.
    - A RecurrencePattern produces at most one task instance per occurrence date.
"""
