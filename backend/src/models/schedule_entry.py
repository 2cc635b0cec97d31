"""
ScheduleEntry model for personal schedules.

A ScheduleEntry is never authored directly: it mirrors the date and time
window of an event for a user whose participation is APPROVED, and is
maintained exclusively by the schedule synchronizer.
"""

from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, DateTime, Date, Time,
    ForeignKey, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin


class ScheduleEntry(Base, GuidMixin):
    """
    Derived personal schedule entry.

    Attributes:
        id: Primary key
        uuid / guid: External identifier (sch_xxx)
        user_id: Owning user identity
        event_id: FK to the source event (CASCADE on delete)
        entry_date, start_time, end_time: Mirrored event window
        title: Mirrored event name
        location_text: Mirrored event location
        created_at / updated_at: Timestamps

    Constraints:
        - Unique (user_id, event_id): one entry per approved participation
    """

    __tablename__ = "schedule_entries"

    GUID_PREFIX = "sch"

    id = Column(Integer, primary_key=True, autoincrement=True)

    user_id = Column(String(64), nullable=False)
    event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    entry_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    title = Column(String(255), nullable=False)
    location_text = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    event = relationship("Event", back_populates="schedule_entries")

    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "event_id",
            name="uq_schedule_entry_user_event"
        ),
        Index("idx_schedule_entries_user_date", "user_id", "entry_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<ScheduleEntry("
            f"user_id={self.user_id}, "
            f"event_id={self.event_id}, "
            f"date={self.entry_date}"
            f")>"
        )
