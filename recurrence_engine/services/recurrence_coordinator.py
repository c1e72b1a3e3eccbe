"""
Recurrence coordinator.

One tick: find due patterns, then for each pattern advance its progress and
create the next task instance inside a single unit of work.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from recurrence_engine.core.config import get_settings
from recurrence_engine.core.exceptions import (
    ConcurrencyConflictError,
    DownstreamFailureError,
    MalformedPatternError,
    RecurrenceEngineError,
)
from recurrence_engine.core.logger import setup_logger
from recurrence_engine.interfaces.recurrence_pattern_repository import (
    IRecurrencePatternRepository,
)
from recurrence_engine.interfaces.unit_of_work import IRecurrenceUnitOfWork
from recurrence_engine.models.recurrence_pattern import RecurrencePattern
from recurrence_engine.services.completion_evaluator import exceeds_end_date, is_complete
from recurrence_engine.services.occurrence_calculator import next_occurrence
from recurrence_engine.utils.datetime_utils import get_user_today

logger = setup_logger(__name__)

UnitOfWorkFactory = Callable[[], IRecurrenceUnitOfWork]


@dataclass
class TickSummary:
    """Per-tick counters, logged once at the end of a tick."""

    due: int = 0
    generated: int = 0
    skipped: int = 0
    conflicts: int = 0
    failed: int = 0
    malformed: int = 0

    def __str__(self) -> str:
        return (
            f"{self.due} due, {self.generated} generated, {self.skipped} skipped, "
            f"{self.conflicts} conflicts, {self.failed} failed, {self.malformed} malformed"
        )


class RecurrenceCoordinator:
    """Generates at most one task instance per due pattern per tick."""

    GENERATED = "generated"
    SKIPPED = "skipped"
    CONFLICT = "conflict"

    def __init__(
        self,
        pattern_repo: IRecurrencePatternRepository,
        unit_of_work_factory: UnitOfWorkFactory,
        today_provider: Optional[Callable[[], date]] = None,
        pattern_timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.pattern_repo = pattern_repo
        self.unit_of_work_factory = unit_of_work_factory
        self.today_provider = today_provider or (
            lambda: get_user_today(settings.RECURRENCE_TIMEZONE)
        )
        self.pattern_timeout = (
            pattern_timeout
            if pattern_timeout is not None
            else settings.RECURRENCE_PATTERN_TIMEOUT_SECONDS
        )

    async def process_pending_recurrences(self, today: Optional[date] = None) -> int:
        """
        Run one tick.

        Args:
            today: Date to evaluate against. Defaults to today in the
                configured recurrence timezone.

        Returns:
            Number of task instances generated
        """
        today = today or self.today_provider()
        summary = TickSummary()

        try:
            patterns = await self.pattern_repo.find_due_patterns(today)
        except Exception as e:
            logger.exception(f"Failed to load due recurrence patterns for {today}: {e}")
            return 0

        summary.due = len(patterns)
        logger.debug(f"Processing {summary.due} due recurrence patterns for {today}")

        for pattern in patterns:
            try:
                outcome = await asyncio.wait_for(
                    self._process_pattern(pattern, today),
                    timeout=self.pattern_timeout,
                )
            except MalformedPatternError as e:
                summary.malformed += 1
                logger.error(f"Malformed recurrence pattern {pattern.id}: {e.reason}")
                continue
            except asyncio.TimeoutError:
                summary.failed += 1
                logger.error(
                    f"Recurrence pattern {pattern.id} timed out after "
                    f"{self.pattern_timeout}s; will retry next tick"
                )
                continue
            except RecurrenceEngineError as e:
                summary.failed += 1
                logger.error(
                    f"Failed to generate task for recurrence pattern {pattern.id}: {e.message}"
                )
                continue
            except Exception as e:
                summary.failed += 1
                logger.exception(
                    f"Unexpected error processing recurrence pattern {pattern.id}: {e}"
                )
                continue

            if outcome == self.GENERATED:
                summary.generated += 1
            elif outcome == self.CONFLICT:
                summary.conflicts += 1
            else:
                summary.skipped += 1

        logger.info(f"Recurrence tick for {today} completed: {summary}")
        return summary.generated

    async def _process_pattern(self, pattern: RecurrencePattern, today: date) -> str:
        """Advance one pattern and create its instance; commits or rolls back as a unit."""
        try:
            async with self.unit_of_work_factory() as uow:
                current = await uow.patterns.get(pattern.id)
                if current is None or is_complete(current):
                    logger.debug(f"Recurrence pattern {pattern.id} is gone or complete")
                    return self.SKIPPED

                upcoming = next_occurrence(current)
                if upcoming > today or exceeds_end_date(current, upcoming):
                    logger.debug(
                        f"Recurrence pattern {pattern.id} not due (next occurrence {upcoming})"
                    )
                    return self.SKIPPED

                advanced = await uow.patterns.compare_and_advance(
                    current.id, current.last_generated_date, upcoming
                )
                if not advanced:
                    raise ConcurrencyConflictError(current.id, current.last_generated_date)

                try:
                    task_id = await uow.tasks.create_instance(
                        current.task_id, upcoming, current.id
                    )
                except RecurrenceEngineError:
                    raise
                except Exception as e:
                    raise DownstreamFailureError(
                        f"Task creation failed for recurrence pattern {current.id}",
                        details={"error": str(e)},
                    ) from e
        except ConcurrencyConflictError:
            logger.debug(f"Recurrence pattern {pattern.id} was advanced by another worker")
            return self.CONFLICT

        logger.info(
            f"Generated task {task_id} for recurrence pattern {pattern.id} due {upcoming}"
        )
        return self.GENERATED
