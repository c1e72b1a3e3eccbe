"""
SQLite implementation of Task repository and task factory.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, delete, select

from recurrence_engine.core.exceptions import NotFoundError
from recurrence_engine.infrastructure.local.database import (
    RecurrencePatternORM,
    TaskORM,
    get_session_factory,
)
from recurrence_engine.interfaces.task_repository import ITaskFactory, ITaskRepository
from recurrence_engine.models.enums import Priority
from recurrence_engine.models.task import Task, TaskCreate
from recurrence_engine.utils.datetime_utils import start_of_day


class SqliteTaskRepository(ITaskRepository, ITaskFactory):
    """SQLite implementation of task repository."""

    def __init__(self, session_factory=None, autocommit: bool = True):
        """
        Initialize repository.

        Args:
            session_factory: Optional session factory (for testing)
            autocommit: Commit after each write (False inside a unit of work)
        """
        self._session_factory = session_factory or get_session_factory()
        self._autocommit = autocommit

    async def _commit(self, session) -> None:
        if self._autocommit:
            await session.commit()
        else:
            await session.flush()

    def _orm_to_model(self, orm: TaskORM) -> Task:
        """Convert ORM object to Pydantic model."""
        return Task(
            id=UUID(orm.id),
            user_id=orm.user_id,
            description=orm.description,
            priority=Priority(orm.priority),
            category_id=UUID(orm.category_id) if orm.category_id else None,
            is_completed=bool(orm.is_completed),
            due_date=orm.due_date,
            recurrence_pattern_id=(
                UUID(orm.recurrence_pattern_id) if orm.recurrence_pattern_id else None
            ),
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )

    async def create(self, user_id: str, task: TaskCreate) -> Task:
        """Create a new task."""
        async with self._session_factory() as session:
            orm = TaskORM(
                id=str(uuid4()),
                user_id=user_id,
                description=task.description,
                priority=task.priority.value,
                category_id=str(task.category_id) if task.category_id else None,
                is_completed=False,
                due_date=task.due_date,
                recurrence_pattern_id=(
                    str(task.recurrence_pattern_id) if task.recurrence_pattern_id else None
                ),
            )
            session.add(orm)
            await self._commit(session)
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get(self, task_id: UUID, user_id: Optional[str] = None) -> Optional[Task]:
        """Get a task by ID."""
        async with self._session_factory() as session:
            conditions = [TaskORM.id == str(task_id)]
            if user_id is not None:
                conditions.append(TaskORM.user_id == user_id)
            result = await session.execute(select(TaskORM).where(and_(*conditions)))
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def list_by_recurrence_pattern(
        self, recurrence_pattern_id: UUID, user_id: Optional[str] = None
    ) -> list[Task]:
        """List task instances generated from a recurrence pattern."""
        async with self._session_factory() as session:
            conditions = [TaskORM.recurrence_pattern_id == str(recurrence_pattern_id)]
            if user_id is not None:
                conditions.append(TaskORM.user_id == user_id)
            result = await session.execute(
                select(TaskORM).where(and_(*conditions)).order_by(TaskORM.due_date.asc())
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def delete(self, user_id: str, task_id: UUID) -> bool:
        """Delete a task and cascade to the recurrence pattern it governs."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskORM).where(
                    and_(TaskORM.id == str(task_id), TaskORM.user_id == user_id)
                )
            )
            orm = result.scalar_one_or_none()
            if not orm:
                return False

            await session.execute(
                delete(RecurrencePatternORM).where(
                    RecurrencePatternORM.task_id == str(task_id)
                )
            )
            await session.delete(orm)
            await self._commit(session)
            return True

    async def create_instance(
        self,
        template_task_id: UUID,
        due_date: date,
        recurrence_pattern_id: UUID,
    ) -> UUID:
        """Copy a template task into a new, open instance due on the occurrence date."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskORM).where(TaskORM.id == str(template_task_id))
            )
            template = result.scalar_one_or_none()
            if not template:
                raise NotFoundError(f"Template task {template_task_id} not found")

            now = datetime.utcnow()
            orm = TaskORM(
                id=str(uuid4()),
                user_id=template.user_id,
                description=template.description,
                priority=template.priority,
                category_id=template.category_id,
                is_completed=False,
                due_date=start_of_day(due_date),
                recurrence_pattern_id=str(recurrence_pattern_id),
                created_at=now,
                updated_at=now,
            )
            session.add(orm)
            await self._commit(session)
            return UUID(orm.id)
