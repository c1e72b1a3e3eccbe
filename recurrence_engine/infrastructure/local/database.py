"""
SQLite database configuration and ORM models.

This module defines the SQLAlchemy ORM models and database initialization.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from recurrence_engine.core.config import get_settings


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


# ===========================================
# ORM Models
# ===========================================


class TaskORM(Base):
    """Task ORM model."""

    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=False)
    priority = Column(String(10), default="MEDIUM", nullable=False)
    category_id = Column(String(36), nullable=True)
    is_completed = Column(Boolean, default=False, nullable=False, index=True)
    due_date = Column(DateTime, nullable=True, index=True)
    recurrence_pattern_id = Column(String(36), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class RecurrencePatternORM(Base):
    """Recurrence pattern ORM model."""

    __tablename__ = "recurrence_patterns"
    __table_args__ = (
        Index("idx_recurrence_patterns_due", "start_date", "last_generated_date"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    task_id = Column(String(36), nullable=False, unique=True)
    user_id = Column(String(255), nullable=False, index=True)
    frequency = Column(String(20), nullable=False, index=True)
    interval_value = Column(Integer, nullable=False, default=1)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    days_of_week = Column(String(70), nullable=True)  # "MONDAY,WEDNESDAY"
    day_of_month = Column(Integer, nullable=True)
    max_occurrences = Column(Integer, nullable=True)
    generated_count = Column(Integer, nullable=False, default=0)
    last_generated_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# ===========================================
# Database Session Management
# ===========================================


def get_engine():
    """Get async engine instance."""
    settings = get_settings()
    return create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG)


def get_session_factory():
    """Get async session factory."""
    engine = get_engine()
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db():
    """Initialize database tables."""
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
