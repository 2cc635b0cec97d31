"""
Event model for shared organization events.

Events are scheduled occurrences owned by their creator. Participants are
attached through Participation rows, and approved participants get a
derived ScheduleEntry in their personal schedule.

Design Rationale:
- A single calendar date plus an optional time-of-day window
- Location is either an opaque reference into the external location
  registry or free text (or both)
- Hard delete: removing an event cascades to participations and
  schedule entries (ORM cascade plus ON DELETE CASCADE)
"""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Column, Integer, String, DateTime, Date, Time, Text, Index
)
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin, AuditMixin


class EventType(enum.Enum):
    """Event type enumeration."""
    OFFICIAL = "OFFICIAL"  # organized by the municipality
    TEAM = "TEAM"
    OTHER = "OTHER"


class Event(Base, GuidMixin, AuditMixin):
    """
    Shared event model.

    Attributes:
        id: Primary key (internal, never exposed)
        uuid: UUIDv7 for external identification (inherited from GuidMixin)
        guid: GUID string property (evt_xxx, inherited from GuidMixin)
        name: Event name
        event_type: OFFICIAL, TEAM or OTHER
        event_date: Calendar date of the event
        start_time: Optional start time-of-day
        end_time: Optional end time-of-day (must be after start_time)
        location_ref: Optional reference into the location registry
        location_text: Optional free-text location
        description: Optional description
        capacity: Optional maximum number of attending participants
        project_ref: Optional reference to a project
        created_by / updated_by: User attribution (inherited from AuditMixin)
        created_at / updated_at: Timestamps

    Relationships:
        participations: Invitations to this event (CASCADE on delete)
        schedule_entries: Derived personal schedule rows (CASCADE on delete)
    """

    __tablename__ = "events"

    GUID_PREFIX = "evt"

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String(255), nullable=False)
    event_type = Column(String(20), nullable=False, index=True)

    event_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)

    location_ref = Column(String(64), nullable=True)
    location_text = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    capacity = Column(Integer, nullable=True)
    project_ref = Column(String(64), nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    participations = relationship(
        "Participation",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    schedule_entries = relationship(
        "ScheduleEntry",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_events_type_date", "event_type", "event_date"),
    )

    @property
    def type(self) -> EventType:
        return EventType(self.event_type)

    @property
    def display_location(self) -> Optional[str]:
        """Free-text location, falling back to the registry reference."""
        return self.location_text or self.location_ref

    def __repr__(self) -> str:
        return (
            f"<Event("
            f"id={self.id}, "
            f"name='{self.name}', "
            f"date={self.event_date}, "
            f"type={self.event_type}"
            f")>"
        )

    def __str__(self) -> str:
        return f"{self.name} - {self.event_date}"
