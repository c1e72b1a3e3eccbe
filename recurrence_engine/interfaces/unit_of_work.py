"""
Unit of work interface.

Binds the pattern store and the task factory to one transaction so that
advancing a pattern and creating its task instance commit together.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from recurrence_engine.interfaces.recurrence_pattern_repository import (
    IRecurrencePatternRepository,
)
from recurrence_engine.interfaces.task_repository import ITaskFactory


class IRecurrenceUnitOfWork(ABC):
    """
    Async context manager over a single transaction.

    Commits on clean exit and rolls back when the block raises.
    """

    patterns: IRecurrencePatternRepository
    tasks: ITaskFactory

    @abstractmethod
    async def __aenter__(self) -> "IRecurrenceUnitOfWork":
        pass

    @abstractmethod
    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        pass
