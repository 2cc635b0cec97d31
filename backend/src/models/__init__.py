"""
SQLAlchemy models for the CollabCal application.

This module provides the declarative base class and imports all models
to ensure they are registered with SQLAlchemy's metadata.
"""

from sqlalchemy.orm import declarative_base

# All models inherit from this Base class
Base = declarative_base()


# Import all models here so they are registered with Base.metadata
# This is required for Alembic autogenerate to detect models
from backend.src.models.types import ApprovalStatus, ParticipationKind
from backend.src.models.event import Event, EventType
from backend.src.models.participation import Participation
from backend.src.models.schedule_entry import ScheduleEntry
from backend.src.models.task_request import TaskRequest

__all__ = [
    "Base",
    "ApprovalStatus",
    "ParticipationKind",
    "Event",
    "EventType",
    "Participation",
    "ScheduleEntry",
    "TaskRequest",
]
