"""
Task model definitions.

Only the fields the recurrence engine reads from a template task or writes
onto a generated instance are modelled here.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from recurrence_engine.models.enums import Priority


class TaskBase(BaseModel):
    """Base task fields shared across create/read."""

    description: str = Field(..., min_length=1, description="Task description")
    priority: Priority = Field(Priority.MEDIUM, description="Priority (HIGH/MEDIUM/LOW)")
    category_id: Optional[UUID] = Field(None, description="Category the task belongs to")
    due_date: Optional[datetime] = Field(None, description="Due date")

    @field_validator("description")
    @classmethod
    def _description_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Description cannot be empty")
        return value


class TaskCreate(TaskBase):
    """Create a new task."""

    recurrence_pattern_id: Optional[UUID] = Field(
        None, description="Originating pattern (set on generated instances)"
    )


class Task(TaskBase):
    """Task with metadata."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: str
    is_completed: bool = False
    recurrence_pattern_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime
