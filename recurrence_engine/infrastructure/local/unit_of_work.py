"""
SQLite unit of work.

Repositories inside the unit of work share one session and only flush;
the unit of work commits or rolls back the whole transaction.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession

from recurrence_engine.infrastructure.local.database import get_session_factory
from recurrence_engine.infrastructure.local.recurrence_pattern_repository import (
    SqliteRecurrencePatternRepository,
)
from recurrence_engine.infrastructure.local.task_repository import SqliteTaskRepository
from recurrence_engine.interfaces.unit_of_work import IRecurrenceUnitOfWork


def _bind(session: AsyncSession):
    """Session factory that hands out the same session without closing it."""

    @asynccontextmanager
    async def factory():
        yield session

    return factory


class SqliteRecurrenceUnitOfWork(IRecurrenceUnitOfWork):
    """Transaction spanning pattern progress and task instance creation."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()
        self._session: AsyncSession | None = None

    async def __aenter__(self) -> "SqliteRecurrenceUnitOfWork":
        self._session = self._session_factory()
        bound = _bind(self._session)
        self.patterns = SqliteRecurrencePatternRepository(bound, autocommit=False)
        self.tasks = SqliteTaskRepository(bound, autocommit=False)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        try:
            if exc_type is None:
                await self._session.commit()
            else:
                await self._session.rollback()
        finally:
            await self._session.close()
            self._session = None
