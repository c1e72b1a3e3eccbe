"""
Dependency injection for API endpoints.

This module provides FastAPI dependencies that inject the SQLite
infrastructure implementations.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from recurrence_engine.interfaces.recurrence_pattern_repository import (
    IRecurrencePatternRepository,
)
from recurrence_engine.interfaces.task_repository import ITaskRepository
from recurrence_engine.models.user import User
from recurrence_engine.services.recurrence_coordinator import RecurrenceCoordinator
from recurrence_engine.services.recurrence_pattern_service import RecurrencePatternService


# ===========================================
# Repository Dependencies
# ===========================================


@lru_cache()
def get_task_repository() -> ITaskRepository:
    """Get task repository instance."""
    from recurrence_engine.infrastructure.local.task_repository import SqliteTaskRepository

    return SqliteTaskRepository()


@lru_cache()
def get_recurrence_pattern_repository() -> IRecurrencePatternRepository:
    """Get recurrence pattern repository instance."""
    from recurrence_engine.infrastructure.local.recurrence_pattern_repository import (
        SqliteRecurrencePatternRepository,
    )

    return SqliteRecurrencePatternRepository()


# ===========================================
# Service Dependencies
# ===========================================


def get_recurrence_pattern_service(
    pattern_repo: IRecurrencePatternRepository = Depends(get_recurrence_pattern_repository),
    task_repo: ITaskRepository = Depends(get_task_repository),
) -> RecurrencePatternService:
    """Get recurrence pattern service."""
    return RecurrencePatternService(pattern_repo=pattern_repo, task_repo=task_repo)


@lru_cache()
def get_recurrence_coordinator() -> RecurrenceCoordinator:
    """Get the recurrence coordinator shared by the scheduler and the admin trigger."""
    from recurrence_engine.infrastructure.local.database import get_session_factory
    from recurrence_engine.infrastructure.local.unit_of_work import (
        SqliteRecurrenceUnitOfWork,
    )

    session_factory = get_session_factory()
    return RecurrenceCoordinator(
        pattern_repo=get_recurrence_pattern_repository(),
        unit_of_work_factory=lambda: SqliteRecurrenceUnitOfWork(session_factory),
    )


# ===========================================
# User Authentication
# ===========================================


async def get_current_user() -> User:
    """
    Get current user.

    Authentication is not wired in; every request runs as the development user.
    """
    return User(id="dev_user", email="dev@example.com", display_name="Developer")


# ===========================================
# Type Aliases for Dependency Injection
# ===========================================

RecurrencePatternSvc = Annotated[
    RecurrencePatternService, Depends(get_recurrence_pattern_service)
]
Coordinator = Annotated[RecurrenceCoordinator, Depends(get_recurrence_coordinator)]
CurrentUser = Annotated[User, Depends(get_current_user)]
