"""
Events API endpoints.

Provides:
- Event CRUD (create optionally inviting participants)
- Invitation management on an event (invite, list, remove)
- Schedule re-derivation for an event (retry of failed users)

Design:
- Uses dependency injection for services
- Service errors propagate to the application exception handlers
  (400 validation, 403 forbidden, 404 not found, 409 state conflicts)
- Partial fan-out failures answer 207 Multi-Status with the per-user report
- All endpoints use GUID format (evt_xxx) for identifiers
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from backend.src.db.database import get_db
from backend.src.middleware.auth import require_auth
from backend.src.schemas.event import (
    EventCreate,
    EventCreateResponse,
    EventDetailResponse,
    EventListResponse,
    EventResponse,
    EventTypeValue,
    EventUpdate,
    EventUpdateResponse,
    ScheduleSyncRequest,
)
from backend.src.schemas.participation import (
    InvitationBatchResponse,
    InviteRequest,
    ParticipationListResponse,
    ParticipationResponse,
    ScheduleSyncReport,
)
from backend.src.services.approval_workflow import Actor
from backend.src.services.event_service import EventService
from backend.src.services.participation_service import ParticipationService
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(
    prefix="/events",
    tags=["Events"],
)


# ============================================================================
# Dependencies
# ============================================================================


def get_participation_service(db: Session = Depends(get_db)) -> ParticipationService:
    """Create ParticipationService instance with database session."""
    return ParticipationService(db=db)


def get_event_service(
    participation_service: ParticipationService = Depends(get_participation_service),
) -> EventService:
    """EventService sharing the participation service's session and synchronizer."""
    return participation_service.events


# ============================================================================
# Event Endpoints
# ============================================================================


@router.get(
    "",
    response_model=EventListResponse,
    summary="List events",
)
async def list_events(
    event_type: Optional[EventTypeValue] = Query(None, description="Filter by event type"),
    start_date: Optional[date] = Query(None, description="Earliest event date (inclusive)"),
    end_date: Optional[date] = Query(None, description="Latest event date (inclusive)"),
    upcoming: bool = Query(False, description="Only events dated today or later"),
    actor: Actor = Depends(require_auth),
    event_service: EventService = Depends(get_event_service),
) -> EventListResponse:
    """
    List events with optional filtering, newest date first.

    Example:
        GET /api/events?event_type=OFFICIAL&start_date=2024-06-01
    """
    events = event_service.list(
        event_type=event_type.value if event_type else None,
        start_date=start_date,
        end_date=end_date,
        upcoming=upcoming,
    )
    return EventListResponse(
        items=[EventResponse(**event_service.build_event_response(e)) for e in events],
        total=len(events),
    )


@router.post(
    "",
    response_model=EventCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create event",
    responses={207: {"description": "Event created, some invitations failed"}},
)
async def create_event(
    event_data: EventCreate,
    response: Response,
    actor: Actor = Depends(require_auth),
    participation_service: ParticipationService = Depends(get_participation_service),
) -> EventCreateResponse:
    """
    Create an event owned by the caller.

    Users listed in participants are invited right away (PENDING; the
    caller inviting themself is approved immediately). Repeated user ids
    are ignored. The event and its invitations are committed together.
    """
    event_service = participation_service.events
    fields = event_data.model_dump(exclude={"participants", "participant_kind"})
    fields["event_type"] = event_data.event_type.value

    event, batch = participation_service.create_event(
        actor,
        participants=event_data.participants,
        participant_kind=event_data.participant_kind.value,
        **fields,
    )

    failed_user_ids = batch.failed_user_ids if batch is not None else []
    if failed_user_ids:
        response.status_code = status.HTTP_207_MULTI_STATUS

    event = event_service.get_by_guid(event.guid)
    return EventCreateResponse(
        **event_service.build_event_detail_response(event),
        invitations_complete=not failed_user_ids,
        failed_user_ids=failed_user_ids,
    )


@router.get(
    "/{guid}",
    response_model=EventDetailResponse,
    summary="Get event",
)
async def get_event(
    guid: str,
    actor: Actor = Depends(require_auth),
    event_service: EventService = Depends(get_event_service),
) -> EventDetailResponse:
    """Get an event with its participations."""
    event = event_service.get_by_guid(guid)
    return EventDetailResponse(**event_service.build_event_detail_response(event))


@router.patch(
    "/{guid}",
    response_model=EventUpdateResponse,
    summary="Update event",
    responses={207: {"description": "Event updated, some schedule entries failed to sync"}},
)
async def update_event(
    guid: str,
    event_data: EventUpdate,
    response: Response,
    actor: Actor = Depends(require_auth),
    event_service: EventService = Depends(get_event_service),
) -> EventUpdateResponse:
    """
    Update an event.

    Only provided fields change. When the date, time window, name or
    location changes, every participant's schedule entry is re-derived and
    the per-user outcome is returned in schedule_sync.
    """
    updates = event_data.model_dump(exclude_unset=True)
    if updates.get("event_type") is not None:
        updates["event_type"] = updates["event_type"].value

    event, report = event_service.update(guid, actor, **updates)

    if report is not None and not report.complete:
        response.status_code = status.HTTP_207_MULTI_STATUS

    return EventUpdateResponse(
        event=EventResponse(**event_service.build_event_response(event)),
        schedule_sync=ScheduleSyncReport(**report.to_dict()) if report else None,
    )


@router.delete(
    "/{guid}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete event",
)
async def delete_event(
    guid: str,
    actor: Actor = Depends(require_auth),
    event_service: EventService = Depends(get_event_service),
) -> None:
    """Delete an event with all its participations and schedule entries."""
    event_service.delete(guid, actor)


@router.post(
    "/{guid}/schedule-sync",
    response_model=ScheduleSyncReport,
    summary="Re-derive schedule entries",
    responses={207: {"description": "Some users failed to sync"}},
)
async def sync_event_schedule(
    guid: str,
    response: Response,
    sync_request: Optional[ScheduleSyncRequest] = None,
    actor: Actor = Depends(require_auth),
    event_service: EventService = Depends(get_event_service),
) -> ScheduleSyncReport:
    """
    Re-derive schedule entries of an event.

    Pass the failed_user_ids of an earlier report to retry only those users;
    with no body every affected user is reconciled.
    """
    user_ids = sync_request.user_ids if sync_request else None
    report = event_service.sync_schedule(guid, actor, user_ids=user_ids or None)

    if not report.complete:
        response.status_code = status.HTTP_207_MULTI_STATUS
    return ScheduleSyncReport(**report.to_dict())


# ============================================================================
# Participant Endpoints
# ============================================================================


@router.get(
    "/{guid}/participants",
    response_model=ParticipationListResponse,
    summary="List event participants",
)
async def list_participants(
    guid: str,
    actor: Actor = Depends(require_auth),
    participation_service: ParticipationService = Depends(get_participation_service),
) -> ParticipationListResponse:
    participations = participation_service.list_for_event(guid)
    return ParticipationListResponse(
        items=[
            ParticipationResponse(**participation_service.build_participation_response(p))
            for p in participations
        ],
        total=len(participations),
    )


@router.post(
    "/{guid}/participants",
    response_model=InvitationBatchResponse,
    summary="Invite participants",
    responses={207: {"description": "Some invitations failed"}},
)
async def invite_participants(
    guid: str,
    invite_request: InviteRequest,
    response: Response,
    actor: Actor = Depends(require_auth),
    participation_service: ParticipationService = Depends(get_participation_service),
) -> InvitationBatchResponse:
    """
    Invite users to an event.

    Inviting a user again with the same kind removes the invitation unless
    toggle is false; a different kind changes the kind in place.

    Example:
        POST /api/events/evt_01hgw2bbg0000000000000001/participants
        {"user_ids": ["user-a", "user-b"], "kind": "PARTICIPATION"}
    """
    batch = participation_service.invite(
        guid,
        invite_request.user_ids,
        invite_request.kind.value,
        actor,
        toggle=invite_request.toggle,
    )

    if not batch.complete:
        response.status_code = status.HTTP_207_MULTI_STATUS

    return InvitationBatchResponse(**participation_service.build_batch_response(batch))


@router.delete(
    "/{guid}/participants/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove participant",
)
async def remove_participant(
    guid: str,
    user_id: str,
    actor: Actor = Depends(require_auth),
    participation_service: ParticipationService = Depends(get_participation_service),
) -> None:
    """Remove a user's participation and schedule entry (no-op if absent)."""
    removed = participation_service.remove(guid, user_id, actor)
    logger.info(
        f"Remove participant {user_id} from {guid}: {'removed' if removed else 'not present'}",
        extra={"event_guid": guid, "user_id": user_id},
    )
