"""
Audit mixin for SQLAlchemy models.

Provides user attribution columns to track who created and last modified
each record.

Design:
- created_by: Set once on creation, never modified afterward.
- updated_by: Set on creation and updated on every mutation.
- User identities are opaque strings issued by the external user directory,
  so there is no foreign key to a local users table.
"""

from sqlalchemy import Column, String


class AuditMixin:
    """
    Mixin providing user attribution columns for audit trail visibility.

    Adds:
    - created_by: identity of the user who created the record
    - updated_by: identity of the user who last modified the record

    Usage:
        class Event(Base, GuidMixin, AuditMixin):
            __tablename__ = "events"
    """

    created_by = Column(String(64), nullable=False, index=True)
    updated_by = Column(String(64), nullable=False)

    @property
    def audit(self) -> dict:
        """Audit info dict for API serialization."""
        return {
            "created_by": self.created_by,
            "updated_by": self.updated_by,
            "created_at": getattr(self, "created_at", None),
            "updated_at": getattr(self, "updated_at", None),
        }
