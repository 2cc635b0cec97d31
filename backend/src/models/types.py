"""
Enumerations shared by several models.

Values are persisted as plain strings so the same columns work on
PostgreSQL and SQLite without native ENUM types.
"""

import enum


class ApprovalStatus(enum.Enum):
    """Response state of an invitation or task request."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    @property
    def is_terminal(self) -> bool:
        return self is not ApprovalStatus.PENDING


class ParticipationKind(enum.Enum):
    """Role a participant plays at an event."""
    PARTICIPATION = "PARTICIPATION"  # attending
    PREPARATION = "PREPARATION"      # helping prepare

    @property
    def points(self) -> float:
        """Points earned when a participation of this kind is approved."""
        return 1.0 if self is ParticipationKind.PARTICIPATION else 0.5
