"""
Pydantic schemas for invitations, responses and schedule sync reports.

Provides data validation and serialization for:
- Invitation requests (batch of users, kind, toggle mode)
- Invitee responses (decision plus optional note)
- Participation responses and per-user batch results
- Schedule synchronization reports
"""

import enum
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator


# ============================================================================
# Enums
# ============================================================================


class ParticipationKindType(str, enum.Enum):
    """Participation kind."""
    PARTICIPATION = "PARTICIPATION"
    PREPARATION = "PREPARATION"


class ApprovalStatusType(str, enum.Enum):
    """Approval status."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# ============================================================================
# Request Schemas
# ============================================================================


class InviteRequest(BaseModel):
    """
    Schema for inviting users to an event.

    Fields:
        user_ids: Users to invite (at least one)
        kind: PARTICIPATION or PREPARATION
        toggle: When true (default), inviting a user again with the same
            kind removes the participation; when false it is a no-op
    """

    user_ids: List[str] = Field(..., min_length=1)
    kind: ParticipationKindType = Field(default=ParticipationKindType.PARTICIPATION)
    toggle: bool = Field(default=True)

    @field_validator("user_ids")
    @classmethod
    def validate_user_ids(cls, v: List[str]) -> List[str]:
        cleaned = [u.strip() for u in v if u and u.strip()]
        if not cleaned:
            raise ValueError("At least one user id is required")
        return cleaned

    model_config = {
        "json_schema_extra": {
            "example": {
                "user_ids": ["user-a", "user-b"],
                "kind": "PARTICIPATION",
            }
        }
    }


class RespondRequest(BaseModel):
    """
    Schema for answering an invitation or task request.

    decision is checked by the approval workflow (only APPROVED or
    REJECTED are accepted) so that a PENDING decision reports a 400 with
    the offending field.
    """

    decision: ApprovalStatusType
    note: Optional[str] = Field(default=None, max_length=2000)

    model_config = {
        "json_schema_extra": {
            "example": {
                "decision": "APPROVED",
                "note": "See you there",
            }
        }
    }


# ============================================================================
# Response Schemas
# ============================================================================


class ParticipationResponse(BaseModel):
    """Schema for participation API responses."""

    guid: str = Field(..., description="Participation GUID (par_xxx)")
    event_guid: str
    event_name: str
    event_date: date
    user_id: str
    kind: ParticipationKindType
    status: ApprovalStatusType
    points: float
    invited_by: str
    response_note: Optional[str] = None
    responded_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at", "responded_at")
    @classmethod
    def serialize_datetime_utc(cls, v: Optional[datetime]) -> Optional[str]:
        """Serialize datetime as ISO 8601 with explicit UTC timezone."""
        return v.isoformat() + "Z" if v else None

    model_config = {
        "from_attributes": True,
        "json_schema_extra": {
            "example": {
                "guid": "par_01hgw2bbg0000000000000001",
                "event_guid": "evt_01hgw2bbg0000000000000001",
                "event_name": "Town Meeting",
                "event_date": "2024-06-10",
                "user_id": "user-a",
                "kind": "PARTICIPATION",
                "status": "APPROVED",
                "points": 1.0,
                "invited_by": "staff-1",
                "responded_at": "2024-06-02T03:00:00Z",
                "created_at": "2024-06-01T01:45:00Z",
                "updated_at": "2024-06-02T03:00:00Z",
            }
        },
    }


class ParticipationListResponse(BaseModel):
    """List of participations."""

    items: List[ParticipationResponse]
    total: int


class InvitationResultItem(BaseModel):
    """Outcome of an invitation for one user."""

    user_id: str
    action: Optional[str] = Field(
        default=None,
        description="created, removed, kind_changed or unchanged; null on failure",
    )
    participation: Optional[ParticipationResponse] = None
    error: Optional[str] = None


class InvitationBatchResponse(BaseModel):
    """
    Per-user outcome of an invitation batch.

    complete is false when at least one user failed; failed_user_ids can be
    resubmitted as-is.
    """

    event_guid: str
    complete: bool
    results: List[InvitationResultItem]
    failed_user_ids: List[str] = Field(default_factory=list)


class ScheduleSyncFailure(BaseModel):
    user_id: str
    reason: str


class ScheduleSyncReport(BaseModel):
    """
    Outcome of re-deriving schedule entries for an event.

    failed lists the users whose entries could not be updated; retry them
    with POST /api/events/{guid}/schedule-sync.
    """

    event_guid: str
    complete: bool
    succeeded: List[str] = Field(default_factory=list)
    failed: List[ScheduleSyncFailure] = Field(default_factory=list)
