"""
Pydantic schemas for event API request/response validation.

Provides data validation and serialization for:
- Event creation requests (optionally inviting participants)
- Event update requests (partial)
- Event API responses (list and detail)

Design:
- GUIDs are exposed via guid property, never internal IDs
- The end > start time rule is checked here for early 422 feedback and
  again by the service against the merged values on update
"""

import enum
from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator

from backend.src.schemas.audit import AuditInfo
from backend.src.schemas.participation import ParticipationKindType, ScheduleSyncReport


# ============================================================================
# Enums
# ============================================================================


class EventTypeValue(str, enum.Enum):
    """Event type enumeration."""
    OFFICIAL = "OFFICIAL"
    TEAM = "TEAM"
    OTHER = "OTHER"


# ============================================================================
# Request Schemas
# ============================================================================


class EventCreate(BaseModel):
    """
    Schema for creating a new event.

    Required:
        name: Event name
        event_type: OFFICIAL, TEAM or OTHER
        event_date: Date of the event

    Optional:
        start_time / end_time: Time-of-day window (end after start)
        location_ref: Location registry reference
        location_text: Free-text location
        description: Event description
        capacity: Maximum number of attending participants
        project_ref: Project reference
        participants: Users invited right after creation
        participant_kind: Kind used for those invitations
    """

    name: str = Field(..., min_length=1, max_length=255)
    event_type: EventTypeValue = Field(...)
    event_date: date = Field(..., description="Date of the event")

    start_time: Optional[time] = Field(default=None)
    end_time: Optional[time] = Field(default=None)

    location_ref: Optional[str] = Field(default=None, max_length=64)
    location_text: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = Field(default=None)
    capacity: Optional[int] = Field(default=None, ge=1)
    project_ref: Optional[str] = Field(default=None, max_length=64)

    participants: List[str] = Field(default_factory=list)
    participant_kind: ParticipationKindType = Field(default=ParticipationKindType.PARTICIPATION)

    @field_validator("name")
    @classmethod
    def validate_name_not_whitespace(cls, v: str) -> str:
        """Ensure name is not just whitespace."""
        if not v.strip():
            raise ValueError("Name cannot be empty or whitespace")
        return v.strip()

    @model_validator(mode="after")
    def validate_time_window(self) -> "EventCreate":
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Town Meeting",
                "event_type": "OFFICIAL",
                "event_date": "2024-06-10",
                "start_time": "10:00",
                "end_time": "12:00",
                "location_text": "Community Hall",
                "participants": ["user-a", "user-b"],
            }
        }
    }


class EventUpdate(BaseModel):
    """
    Schema for updating an existing event.

    All fields are optional - only provided fields will be updated; an
    explicit null clears an optional field.
    """

    name: Optional[str] = Field(default=None, max_length=255)
    event_type: Optional[EventTypeValue] = Field(default=None)
    event_date: Optional[date] = Field(default=None)
    start_time: Optional[time] = Field(default=None)
    end_time: Optional[time] = Field(default=None)
    location_ref: Optional[str] = Field(default=None, max_length=64)
    location_text: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = Field(default=None)
    capacity: Optional[int] = Field(default=None, ge=1)
    project_ref: Optional[str] = Field(default=None, max_length=64)

    @field_validator("name")
    @classmethod
    def validate_name_not_whitespace(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Name cannot be empty or whitespace")
        return v.strip() if v else None

    model_config = {
        "json_schema_extra": {
            "example": {
                "event_date": "2024-06-11",
            }
        }
    }


# ============================================================================
# Response Schemas
# ============================================================================


class EventParticipationSummary(BaseModel):
    """Participation as listed on an event detail."""

    guid: str
    user_id: str
    kind: str
    status: str
    responded_at: Optional[datetime] = None

    @field_serializer("responded_at")
    @classmethod
    def serialize_datetime_utc(cls, v: Optional[datetime]) -> Optional[str]:
        return v.isoformat() + "Z" if v else None

    model_config = {"from_attributes": True}


class EventResponse(BaseModel):
    """
    Schema for event API responses (list view).

    Use EventDetailResponse for the participations.
    """

    guid: str = Field(..., description="Event GUID (evt_xxx)")
    name: str
    event_type: EventTypeValue

    event_date: date
    start_time: Optional[time]
    end_time: Optional[time]

    location_ref: Optional[str] = None
    location_text: Optional[str] = None
    description: Optional[str] = None
    capacity: Optional[int] = None
    project_ref: Optional[str] = None

    participant_count: int = Field(default=0)
    approved_count: int = Field(default=0)

    audit: AuditInfo

    model_config = {
        "from_attributes": True,
        "json_schema_extra": {
            "example": {
                "guid": "evt_01hgw2bbg0000000000000001",
                "name": "Town Meeting",
                "event_type": "OFFICIAL",
                "event_date": "2024-06-10",
                "start_time": "10:00:00",
                "end_time": "12:00:00",
                "location_text": "Community Hall",
                "participant_count": 2,
                "approved_count": 1,
                "audit": {
                    "created_at": "2024-06-01T01:45:00Z",
                    "created_by": "user-a",
                    "updated_at": "2024-06-01T01:45:00Z",
                    "updated_by": "user-a",
                },
            }
        },
    }


class EventDetailResponse(EventResponse):
    """Event response including its participations."""

    participations: List[EventParticipationSummary] = Field(default_factory=list)


class EventListResponse(BaseModel):
    """
    Schema for list of events response.

    Fields:
        items: List of events
        total: Total count
    """

    items: List[EventResponse]
    total: int


class EventCreateResponse(EventDetailResponse):
    """Created event, with the outcome of the initial invitations."""

    invitations_complete: bool = Field(default=True)
    failed_user_ids: List[str] = Field(default_factory=list)


class EventUpdateResponse(BaseModel):
    """
    Updated event with the schedule re-derivation report.

    schedule_sync is null when no field mirrored into schedules changed.
    """

    event: EventResponse
    schedule_sync: Optional[ScheduleSyncReport] = None


class ScheduleSyncRequest(BaseModel):
    """Users whose schedule entries should be re-derived (all when empty)."""

    user_ids: List[str] = Field(default_factory=list)

