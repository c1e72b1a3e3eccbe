"""
SQLite implementation of recurrence pattern repository.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import IntegrityError

from recurrence_engine.core.exceptions import DuplicateError, MalformedPatternError, NotFoundError
from recurrence_engine.infrastructure.local.database import (
    RecurrencePatternORM,
    get_session_factory,
)
from recurrence_engine.interfaces.recurrence_pattern_repository import (
    IRecurrencePatternRepository,
)
from recurrence_engine.models.recurrence_pattern import (
    RecurrencePattern,
    RecurrencePatternCreate,
    RecurrencePatternUpdate,
    format_weekdays,
)
from recurrence_engine.services.completion_evaluator import exceeds_end_date
from recurrence_engine.services.occurrence_calculator import next_occurrence


class SqliteRecurrencePatternRepository(IRecurrencePatternRepository):
    """SQLite implementation of recurrence pattern repository."""

    def __init__(self, session_factory=None, autocommit: bool = True):
        """
        Initialize repository.

        Args:
            session_factory: Optional session factory (for testing)
            autocommit: Commit after each write. A unit of work passes False
                and commits the whole transaction itself.
        """
        self._session_factory = session_factory or get_session_factory()
        self._autocommit = autocommit

    async def _commit(self, session) -> None:
        if self._autocommit:
            await session.commit()
        else:
            await session.flush()

    def _orm_to_model(self, orm: RecurrencePatternORM) -> RecurrencePattern:
        """Convert ORM object to Pydantic model."""
        return RecurrencePattern.model_validate(orm, from_attributes=True)

    @staticmethod
    def _active_conditions():
        return [
            or_(
                RecurrencePatternORM.max_occurrences.is_(None),
                RecurrencePatternORM.generated_count < RecurrencePatternORM.max_occurrences,
            ),
            or_(
                RecurrencePatternORM.end_date.is_(None),
                RecurrencePatternORM.last_generated_date.is_(None),
                RecurrencePatternORM.last_generated_date < RecurrencePatternORM.end_date,
            ),
        ]

    async def create(
        self, user_id: str, task_id: UUID, data: RecurrencePatternCreate
    ) -> RecurrencePattern:
        """Create a pattern for a template task."""
        if await self.get_by_task_id(task_id):
            raise DuplicateError(f"Task {task_id} already has a recurrence pattern")

        async with self._session_factory() as session:
            orm = RecurrencePatternORM(
                id=str(uuid4()),
                task_id=str(task_id),
                user_id=user_id,
                frequency=data.frequency.value,
                interval_value=data.interval_value,
                start_date=data.start_date,
                end_date=data.end_date,
                days_of_week=format_weekdays(data.days_of_week),
                day_of_month=data.day_of_month,
                max_occurrences=data.max_occurrences,
                generated_count=0,
                last_generated_date=None,
            )
            session.add(orm)
            try:
                await self._commit(session)
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateError(
                    f"Task {task_id} already has a recurrence pattern"
                ) from exc
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get(
        self, pattern_id: UUID, user_id: Optional[str] = None
    ) -> Optional[RecurrencePattern]:
        """Get a pattern by ID."""
        async with self._session_factory() as session:
            conditions = [RecurrencePatternORM.id == str(pattern_id)]
            if user_id is not None:
                conditions.append(RecurrencePatternORM.user_id == user_id)
            result = await session.execute(
                select(RecurrencePatternORM).where(and_(*conditions))
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def get_by_task_id(
        self, task_id: UUID, user_id: Optional[str] = None
    ) -> Optional[RecurrencePattern]:
        """Get the pattern governing a template task."""
        async with self._session_factory() as session:
            conditions = [RecurrencePatternORM.task_id == str(task_id)]
            if user_id is not None:
                conditions.append(RecurrencePatternORM.user_id == user_id)
            result = await session.execute(
                select(RecurrencePatternORM).where(and_(*conditions))
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def list(
        self,
        user_id: str,
        active_only: bool = False,
        today: Optional[date] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[RecurrencePattern]:
        """List a user's patterns."""
        async with self._session_factory() as session:
            conditions = [RecurrencePatternORM.user_id == user_id]
            if active_only:
                today = today or date.today()
                conditions.extend(self._active_conditions())
                conditions.append(
                    or_(
                        RecurrencePatternORM.end_date.is_(None),
                        RecurrencePatternORM.end_date >= today,
                    )
                )

            query = select(RecurrencePatternORM).where(and_(*conditions))
            query = (
                query.order_by(RecurrencePatternORM.created_at.desc())
                .limit(limit)
                .offset(offset)
            )
            result = await session.execute(query)
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def update_rule(
        self, user_id: str, pattern_id: UUID, update: RecurrencePatternUpdate
    ) -> RecurrencePattern:
        """Overwrite rule fields. Fields explicitly set to None are cleared."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(RecurrencePatternORM).where(
                    and_(
                        RecurrencePatternORM.id == str(pattern_id),
                        RecurrencePatternORM.user_id == user_id,
                    )
                )
            )
            orm = result.scalar_one_or_none()
            if not orm:
                raise NotFoundError(f"RecurrencePattern {pattern_id} not found")

            for field in update.model_fields_set:
                value = getattr(update, field)
                if field == "frequency" and value is not None:
                    value = value.value
                elif field == "days_of_week":
                    value = format_weekdays(value or ())
                setattr(orm, field, value)

            orm.updated_at = datetime.utcnow()
            await self._commit(session)
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def delete(self, user_id: str, pattern_id: UUID) -> bool:
        """Delete a pattern."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(RecurrencePatternORM).where(
                    and_(
                        RecurrencePatternORM.id == str(pattern_id),
                        RecurrencePatternORM.user_id == user_id,
                    )
                )
            )
            orm = result.scalar_one_or_none()
            if not orm:
                return False

            await session.delete(orm)
            await self._commit(session)
            return True

    async def find_due_patterns(self, today: date) -> list[RecurrencePattern]:
        """
        Find due patterns.

        The query narrows candidates in SQL (not complete, started, nothing
        generated today or later); weekly and monthly next dates are then
        checked in Python. Patterns whose next date cannot be computed are
        returned so the coordinator can report them.
        """
        async with self._session_factory() as session:
            conditions = [
                RecurrencePatternORM.start_date <= today,
                or_(
                    RecurrencePatternORM.last_generated_date.is_(None),
                    RecurrencePatternORM.last_generated_date < today,
                ),
                *self._active_conditions(),
            ]
            query = (
                select(RecurrencePatternORM)
                .where(and_(*conditions))
                .order_by(RecurrencePatternORM.start_date.asc(), RecurrencePatternORM.id.asc())
            )
            result = await session.execute(query)
            candidates = [self._orm_to_model(orm) for orm in result.scalars().all()]

        due: list[RecurrencePattern] = []
        for pattern in candidates:
            try:
                upcoming = next_occurrence(pattern)
            except MalformedPatternError:
                due.append(pattern)
                continue
            if upcoming <= today and not exceeds_end_date(pattern, upcoming):
                due.append(pattern)
        return due

    async def compare_and_advance(
        self,
        pattern_id: UUID,
        expected_last_generated_date: Optional[date],
        new_last_generated_date: date,
    ) -> bool:
        """Conditional UPDATE; the row count tells whether this caller won."""
        if expected_last_generated_date is None:
            expected_clause = RecurrencePatternORM.last_generated_date.is_(None)
        else:
            expected_clause = (
                RecurrencePatternORM.last_generated_date == expected_last_generated_date
            )

        stmt = (
            update(RecurrencePatternORM)
            .where(
                and_(
                    RecurrencePatternORM.id == str(pattern_id),
                    expected_clause,
                    or_(
                        RecurrencePatternORM.max_occurrences.is_(None),
                        RecurrencePatternORM.generated_count
                        < RecurrencePatternORM.max_occurrences,
                    ),
                )
            )
            .values(
                last_generated_date=new_last_generated_date,
                generated_count=RecurrencePatternORM.generated_count + 1,
                updated_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            await self._commit(session)
            return result.rowcount == 1
