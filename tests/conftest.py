"""
Shared pytest fixtures.

Each test gets its own in-memory SQLite database.
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from recurrence_engine.infrastructure.local.database import Base
from recurrence_engine.infrastructure.local.recurrence_pattern_repository import (
    SqliteRecurrencePatternRepository,
)
from recurrence_engine.infrastructure.local.task_repository import SqliteTaskRepository
from recurrence_engine.infrastructure.local.unit_of_work import SqliteRecurrenceUnitOfWork


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def pattern_repo(session_factory):
    return SqliteRecurrencePatternRepository(session_factory=session_factory)


@pytest.fixture
def task_repo(session_factory):
    return SqliteTaskRepository(session_factory=session_factory)


@pytest.fixture
def uow_factory(session_factory):
    return lambda: SqliteRecurrenceUnitOfWork(session_factory)


@pytest.fixture
def user_id():
    return "test_user"
