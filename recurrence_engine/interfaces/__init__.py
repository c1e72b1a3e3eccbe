"""Abstract interfaces for infrastructure abstraction."""

from recurrence_engine.interfaces.recurrence_pattern_repository import (
    IRecurrencePatternRepository,
)
from recurrence_engine.interfaces.task_repository import ITaskFactory, ITaskRepository
from recurrence_engine.interfaces.unit_of_work import IRecurrenceUnitOfWork

__all__ = [
    "IRecurrencePatternRepository",
    "IRecurrenceUnitOfWork",
    "ITaskFactory",
    "ITaskRepository",
]
