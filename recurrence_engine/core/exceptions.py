"""
Custom exceptions for the recurrence engine.
"""

from typing import Any, Optional


class RecurrenceEngineError(Exception):
    """Base exception for the recurrence engine."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(RecurrenceEngineError):
    """Resource not found."""

    pass


class DuplicateError(RecurrenceEngineError):
    """Duplicate resource detected."""

    pass


class ValidationError(RecurrenceEngineError):
    """Recurrence rule failed validation at create/update time."""

    pass


class ConcurrencyConflictError(RecurrenceEngineError):
    """Another worker advanced the pattern first."""

    def __init__(self, pattern_id: Any, expected_last_generated_date: Any):
        super().__init__(
            f"RecurrencePattern {pattern_id} was advanced concurrently",
            details={"expected_last_generated_date": expected_last_generated_date},
        )
        self.pattern_id = pattern_id


class InfrastructureError(RecurrenceEngineError):
    """Infrastructure-related error (DB, external services, etc.)."""

    pass


class DownstreamFailureError(InfrastructureError):
    """Pattern store or task factory call failed or timed out."""

    pass


class MalformedPatternError(RecurrenceEngineError):
    """Occurrence calculation cannot produce a forward-moving date."""

    def __init__(self, pattern_id: Any, reason: str):
        super().__init__(
            f"RecurrencePattern {pattern_id} is malformed: {reason}",
            details={"reason": reason},
        )
        self.pattern_id = pattern_id
        self.reason = reason
