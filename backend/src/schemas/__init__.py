"""
Pydantic schemas for API request/response validation.

This module exports all schema classes for use in API endpoints.
"""

from backend.src.schemas.audit import AuditInfo
from backend.src.schemas.participation import (
    ParticipationKindType,
    ApprovalStatusType,
    InviteRequest,
    RespondRequest,
    ParticipationResponse,
    ParticipationListResponse,
    InvitationResultItem,
    InvitationBatchResponse,
    ScheduleSyncFailure,
    ScheduleSyncReport,
)
from backend.src.schemas.event import (
    EventTypeValue,
    EventCreate,
    EventUpdate,
    EventResponse,
    EventDetailResponse,
    EventListResponse,
    EventCreateResponse,
    EventUpdateResponse,
    ScheduleSyncRequest,
)
from backend.src.schemas.schedule import ScheduleEntryResponse, ScheduleListResponse
from backend.src.schemas.summary import (
    ParticipationSummaryResponse,
    YearlyPointsResponse,
    ComplianceStatusResponse,
)
from backend.src.schemas.task_request import (
    TaskRequestCreate,
    TaskRequestResponse,
    TaskRequestListResponse,
)

__all__ = [
    "AuditInfo",
    # Participation
    "ParticipationKindType",
    "ApprovalStatusType",
    "InviteRequest",
    "RespondRequest",
    "ParticipationResponse",
    "ParticipationListResponse",
    "InvitationResultItem",
    "InvitationBatchResponse",
    "ScheduleSyncFailure",
    "ScheduleSyncReport",
    # Events
    "EventTypeValue",
    "EventCreate",
    "EventUpdate",
    "EventResponse",
    "EventDetailResponse",
    "EventListResponse",
    "EventCreateResponse",
    "EventUpdateResponse",
    "ScheduleSyncRequest",
    # Schedule
    "ScheduleEntryResponse",
    "ScheduleListResponse",
    # Summary
    "ParticipationSummaryResponse",
    "YearlyPointsResponse",
    "ComplianceStatusResponse",
    # Task requests
    "TaskRequestCreate",
    "TaskRequestResponse",
    "TaskRequestListResponse",
]
