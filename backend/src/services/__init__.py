"""
Service layer for business logic.

This module exports all service classes for use in API endpoints.
"""

from backend.src.services.exceptions import (
    ServiceError,
    NotFoundError,
    ConflictError,
    ValidationError,
    ForbiddenError,
    InvalidStateError,
)
from backend.src.services.approval_workflow import Actor, Action, is_permitted, transition
from backend.src.services.schedule_sync_service import ScheduleSyncService, SyncReport
from backend.src.services.event_service import EventService
from backend.src.services.participation_service import (
    ParticipationService,
    InvitationAction,
    InvitationBatchResult,
    plan_invitation,
)
from backend.src.services.summary_service import SummaryService
from backend.src.services.task_request_service import TaskRequestService

__all__ = [
    "ServiceError",
    "NotFoundError",
    "ConflictError",
    "ValidationError",
    "ForbiddenError",
    "InvalidStateError",
    # Approval workflow
    "Actor",
    "Action",
    "is_permitted",
    "transition",
    # Events and participation
    "ScheduleSyncService",
    "SyncReport",
    "EventService",
    "ParticipationService",
    "InvitationAction",
    "InvitationBatchResult",
    "plan_invitation",
    # Summaries and task requests
    "SummaryService",
    "TaskRequestService",
]
