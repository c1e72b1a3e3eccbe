"""
Recurrence pattern management service.

Create, edit, remove and inspect the patterns attached to template tasks.
Every rule change goes through validate_recurrence_rule before it is stored.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional
from uuid import UUID

from recurrence_engine.core.config import get_settings
from recurrence_engine.core.exceptions import DuplicateError, NotFoundError
from recurrence_engine.core.logger import setup_logger
from recurrence_engine.interfaces.recurrence_pattern_repository import (
    IRecurrencePatternRepository,
)
from recurrence_engine.interfaces.task_repository import ITaskRepository
from recurrence_engine.models.enums import Frequency
from recurrence_engine.models.recurrence_pattern import (
    RecurrencePattern,
    RecurrencePatternCreate,
    RecurrencePatternRead,
    RecurrencePatternUpdate,
)
from recurrence_engine.services.completion_evaluator import (
    is_complete,
    pattern_state,
    validate_recurrence_rule,
)
from recurrence_engine.services.occurrence_calculator import upcoming_occurrences
from recurrence_engine.utils.datetime_utils import get_user_today

logger = setup_logger(__name__)

# Rule fields that only make sense for one frequency
_FREQUENCY_FIELDS = {
    Frequency.WEEKLY: "days_of_week",
    Frequency.MONTHLY: "day_of_month",
}


class RecurrencePatternService:
    """Service for managing recurrence patterns."""

    def __init__(
        self,
        pattern_repo: IRecurrencePatternRepository,
        task_repo: ITaskRepository,
    ):
        self.pattern_repo = pattern_repo
        self.task_repo = task_repo

    async def create_pattern(
        self, user_id: str, task_id: UUID, data: RecurrencePatternCreate
    ) -> RecurrencePattern:
        """
        Attach a recurrence pattern to a task.

        Raises:
            ValidationError: If the rule is invalid
            NotFoundError: If the task does not exist for this user
            DuplicateError: If the task already has a pattern
        """
        validate_recurrence_rule(data)

        task = await self.task_repo.get(task_id, user_id)
        if not task:
            raise NotFoundError(f"Task {task_id} not found")

        if await self.pattern_repo.get_by_task_id(task_id):
            raise DuplicateError(f"Task {task_id} already has a recurrence pattern")

        pattern = await self.pattern_repo.create(user_id, task_id, data)
        logger.info(
            f"Created {pattern.frequency.value} recurrence pattern {pattern.id} for task {task_id}"
        )
        return pattern

    async def update_pattern(
        self, user_id: str, pattern_id: UUID, update: RecurrencePatternUpdate
    ) -> RecurrencePattern:
        """
        Edit rule fields of a pattern.

        Switching frequency clears the fields of the previous frequency
        unless the same request sets them. Progress fields are untouched.
        """
        existing = await self.get_pattern(user_id, pattern_id)

        changes: dict[str, Any] = {
            field: getattr(update, field) for field in update.model_fields_set
        }
        # frequency cannot be cleared
        if changes.get("frequency", existing.frequency) is None:
            del changes["frequency"]

        new_frequency = changes.get("frequency", existing.frequency)
        if new_frequency != existing.frequency:
            for frequency, field in _FREQUENCY_FIELDS.items():
                if frequency != new_frequency and field not in changes:
                    changes[field] = None

        merged = existing.model_copy(update=changes)
        if merged.days_of_week is None:
            merged.days_of_week = frozenset()
        validate_recurrence_rule(merged, generated_count=existing.generated_count)

        updated = await self.pattern_repo.update_rule(
            user_id, pattern_id, RecurrencePatternUpdate(**changes)
        )
        logger.info(f"Updated recurrence pattern {pattern_id}: {sorted(changes)}")
        return updated

    async def delete_pattern(self, user_id: str, pattern_id: UUID) -> None:
        """Remove a pattern. Instances it already generated are kept."""
        deleted = await self.pattern_repo.delete(user_id, pattern_id)
        if not deleted:
            raise NotFoundError(f"RecurrencePattern {pattern_id} not found")
        logger.info(f"Deleted recurrence pattern {pattern_id}")

    async def get_pattern(self, user_id: str, pattern_id: UUID) -> RecurrencePattern:
        pattern = await self.pattern_repo.get(pattern_id, user_id)
        if not pattern:
            raise NotFoundError(f"RecurrencePattern {pattern_id} not found")
        return pattern

    async def get_by_task_id(self, user_id: str, task_id: UUID) -> RecurrencePattern:
        pattern = await self.pattern_repo.get_by_task_id(task_id, user_id)
        if not pattern:
            raise NotFoundError(f"No recurrence pattern for task {task_id}")
        return pattern

    async def list_patterns(
        self,
        user_id: str,
        active_only: bool = False,
        today: Optional[date] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[RecurrencePattern]:
        """List a user's patterns, optionally only those still generating."""
        if active_only and today is None:
            today = get_user_today(get_settings().RECURRENCE_TIMEZONE)
        return await self.pattern_repo.list(
            user_id, active_only=active_only, today=today, limit=limit, offset=offset
        )

    async def preview(self, user_id: str, pattern_id: UUID, count: int = 5) -> list[date]:
        """Dates the pattern would generate next, in order."""
        pattern = await self.get_pattern(user_id, pattern_id)
        return list(upcoming_occurrences(pattern, count))

    @staticmethod
    def to_read(pattern: RecurrencePattern) -> RecurrencePatternRead:
        """Attach completion state for API responses."""
        return RecurrencePatternRead.model_validate(
            {
                **pattern.model_dump(),
                "completed": is_complete(pattern),
                "state": pattern_state(pattern),
            }
        )
