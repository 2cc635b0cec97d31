"""
Participation model for event invitations.

Junction between events and users carrying the participant's kind and the
invitee's response status.

Design Rationale:
- At most one row per (event, user): enforced by a unique constraint so
  concurrent invitations serialize to a single row
- Status follows the shared approval machine (PENDING -> APPROVED | REJECTED)
- CASCADE on event delete
"""

from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, DateTime, Text,
    ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin
from backend.src.models.types import ApprovalStatus, ParticipationKind


class Participation(Base, GuidMixin):
    """
    Event participation model.

    Attributes:
        id: Primary key
        uuid / guid: External identifier (par_xxx)
        event_id: FK to events (CASCADE on delete)
        user_id: Invited user identity
        kind: PARTICIPATION or PREPARATION
        status: PENDING, APPROVED or REJECTED
        invited_by: Identity of the inviting user
        response_note: Optional note attached when the invitee responded
        responded_at: When the invitee responded
        created_at / updated_at: Timestamps

    Constraints:
        - Unique (event_id, user_id)
    """

    __tablename__ = "participations"

    GUID_PREFIX = "par"

    id = Column(Integer, primary_key=True, autoincrement=True)

    event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id = Column(String(64), nullable=False, index=True)

    kind = Column(String(20), nullable=False)
    status = Column(String(20), default=ApprovalStatus.PENDING.value, nullable=False, index=True)

    invited_by = Column(String(64), nullable=False)
    response_note = Column(Text, nullable=True)
    responded_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    event = relationship("Event", back_populates="participations")

    __table_args__ = (
        UniqueConstraint(
            "event_id",
            "user_id",
            name="uq_participation_event_user"
        ),
    )

    @property
    def approval_status(self) -> ApprovalStatus:
        return ApprovalStatus(self.status)

    @property
    def participation_kind(self) -> ParticipationKind:
        return ParticipationKind(self.kind)

    @property
    def points(self) -> float:
        """Points this participation currently earns."""
        if self.approval_status is not ApprovalStatus.APPROVED:
            return 0.0
        return self.participation_kind.points

    def __repr__(self) -> str:
        return (
            f"<Participation("
            f"event_id={self.event_id}, "
            f"user_id={self.user_id}, "
            f"kind={self.kind}, "
            f"status={self.status}"
            f")>"
        )
