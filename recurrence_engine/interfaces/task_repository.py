"""
Task repository and task factory interfaces.

The task repository covers template tasks; the factory produces task
instances for recurrence patterns.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from recurrence_engine.models.task import Task, TaskCreate


class ITaskRepository(ABC):
    """Abstract interface for task persistence."""

    @abstractmethod
    async def create(self, user_id: str, task: TaskCreate) -> Task:
        """
        Create a new task.

        Args:
            user_id: Owner user ID
            task: Task creation data

        Returns:
            Created task with generated ID and timestamps
        """
        pass

    @abstractmethod
    async def get(self, task_id: UUID, user_id: Optional[str] = None) -> Optional[Task]:
        """
        Get a task by ID.

        Args:
            task_id: Task ID
            user_id: Owner user ID (None skips the ownership check)

        Returns:
            Task if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_by_recurrence_pattern(
        self, recurrence_pattern_id: UUID, user_id: Optional[str] = None
    ) -> list[Task]:
        """
        List task instances generated from a recurrence pattern.

        Returns:
            Tasks ordered by due_date ascending
        """
        pass

    @abstractmethod
    async def delete(self, user_id: str, task_id: UUID) -> bool:
        """
        Delete a task together with the recurrence pattern it governs.

        Returns:
            True if deleted, False if not found
        """
        pass


class ITaskFactory(ABC):
    """Abstract interface for creating task instances from a template."""

    @abstractmethod
    async def create_instance(
        self,
        template_task_id: UUID,
        due_date: date,
        recurrence_pattern_id: UUID,
    ) -> UUID:
        """
        Create a task instance from a template task.

        Args:
            template_task_id: Task the pattern governs
            due_date: Occurrence date of the new instance
            recurrence_pattern_id: Pattern the instance is linked back to

        Returns:
            ID of the created task

        Raises:
            NotFoundError: If the template task no longer exists
        """
        pass
