"""
TaskRequest model for two-party task approval.

A requester asks exactly one requestee to take on a task; the requestee
approves or rejects it. Uses the same approval states as event invitations
but has no schedule side effect.
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Date, Text

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin
from backend.src.models.types import ApprovalStatus


class TaskRequest(Base, GuidMixin):
    """
    Task request model.

    Attributes:
        id: Primary key
        uuid / guid: External identifier (tsk_xxx)
        requested_by: Requester identity
        requested_to: The single responder's identity
        title: Short title
        description: What is being asked
        deadline: Optional deadline date
        project_ref: Optional project reference
        status: PENDING, APPROVED or REJECTED
        response_note: Optional note attached on approval/rejection
        responded_at: When the requestee responded
    """

    __tablename__ = "task_requests"

    GUID_PREFIX = "tsk"

    id = Column(Integer, primary_key=True, autoincrement=True)

    requested_by = Column(String(64), nullable=False, index=True)
    requested_to = Column(String(64), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    deadline = Column(Date, nullable=True)
    project_ref = Column(String(64), nullable=True)

    status = Column(String(20), default=ApprovalStatus.PENDING.value, nullable=False, index=True)
    response_note = Column(Text, nullable=True)
    responded_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    @property
    def approval_status(self) -> ApprovalStatus:
        return ApprovalStatus(self.status)

    def __repr__(self) -> str:
        return (
            f"<TaskRequest("
            f"id={self.id}, "
            f"to={self.requested_to}, "
            f"status={self.status}"
            f")>"
        )
