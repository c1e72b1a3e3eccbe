"""
Recurrence pattern repository interface.

Defines the contract for pattern persistence, the due-pattern query and the
atomic progress update used by the recurrence coordinator.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from recurrence_engine.models.recurrence_pattern import (
    RecurrencePattern,
    RecurrencePatternCreate,
    RecurrencePatternUpdate,
)


class IRecurrencePatternRepository(ABC):
    """Abstract interface for recurrence pattern persistence."""

    @abstractmethod
    async def create(
        self, user_id: str, task_id: UUID, data: RecurrencePatternCreate
    ) -> RecurrencePattern:
        """
        Create a pattern for a template task.

        Raises:
            DuplicateError: If the task already has a pattern
        """
        pass

    @abstractmethod
    async def get(
        self, pattern_id: UUID, user_id: Optional[str] = None
    ) -> Optional[RecurrencePattern]:
        """Get a pattern by ID. If user_id is given, the pattern must belong to that user."""
        pass

    @abstractmethod
    async def get_by_task_id(
        self, task_id: UUID, user_id: Optional[str] = None
    ) -> Optional[RecurrencePattern]:
        """Get the pattern governing a template task."""
        pass

    @abstractmethod
    async def list(
        self,
        user_id: str,
        active_only: bool = False,
        today: Optional[date] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[RecurrencePattern]:
        """
        List a user's patterns.

        Args:
            user_id: Owner user ID
            active_only: Exclude patterns that reached their cap or end date
            today: Reference date for the end-date check (defaults to today)
            limit: Maximum number of results
            offset: Pagination offset
        """
        pass

    @abstractmethod
    async def update_rule(
        self, user_id: str, pattern_id: UUID, update: RecurrencePatternUpdate
    ) -> RecurrencePattern:
        """
        Overwrite rule fields. Progress fields are left untouched.

        Raises:
            NotFoundError: If the pattern does not exist for the user
        """
        pass

    @abstractmethod
    async def delete(self, user_id: str, pattern_id: UUID) -> bool:
        """Delete a pattern. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def find_due_patterns(self, today: date) -> list[RecurrencePattern]:
        """
        Find patterns that should generate an instance on or before today.

        A pattern is due when it is not complete, its start date has been
        reached and its next occurrence (the start date itself when nothing
        has been generated yet) is on or before today and not past its end date.
        Results are ordered by start_date, then id.
        """
        pass

    @abstractmethod
    async def compare_and_advance(
        self,
        pattern_id: UUID,
        expected_last_generated_date: Optional[date],
        new_last_generated_date: date,
    ) -> bool:
        """
        Atomically record one generated occurrence.

        Sets last_generated_date and increments generated_count only if the
        stored last_generated_date still equals the expected value and the
        occurrence cap has not been reached.

        Returns:
            True if this caller advanced the pattern, False if it lost the race
        """
        pass
