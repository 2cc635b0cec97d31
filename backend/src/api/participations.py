"""
Participations API endpoints.

Provides:
- Answering an invitation (approve or reject, optional note)
- The caller's own participations (e.g. the pending-invitation inbox)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from backend.src.api.events import get_participation_service
from backend.src.middleware.auth import require_auth
from backend.src.schemas.participation import (
    ApprovalStatusType,
    ParticipationListResponse,
    ParticipationResponse,
    RespondRequest,
)
from backend.src.services.approval_workflow import Actor
from backend.src.services.participation_service import ParticipationService
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(
    prefix="/participations",
    tags=["Participations"],
)


@router.get(
    "/mine",
    response_model=ParticipationListResponse,
    summary="List my participations",
)
async def list_my_participations(
    status_filter: Optional[ApprovalStatusType] = Query(None, alias="status", description="Filter by status"),
    actor: Actor = Depends(require_auth),
    participation_service: ParticipationService = Depends(get_participation_service),
) -> ParticipationListResponse:
    """
    List the caller's participations, newest event first.

    Example:
        GET /api/participations/mine?status=PENDING
    """
    participations = participation_service.list_for_user(
        actor.user_id,
        status=status_filter.value if status_filter else None,
    )
    return ParticipationListResponse(
        items=[
            ParticipationResponse(**participation_service.build_participation_response(p))
            for p in participations
        ],
        total=len(participations),
    )


@router.post(
    "/{guid}/respond",
    response_model=ParticipationResponse,
    summary="Respond to an invitation",
)
async def respond_to_invitation(
    guid: str,
    respond_request: RespondRequest,
    actor: Actor = Depends(require_auth),
    participation_service: ParticipationService = Depends(get_participation_service),
) -> ParticipationResponse:
    """
    Approve or reject an invitation addressed to the caller.

    Approving adds the event to the caller's schedule; rejecting
    guarantees it is absent. An invitation can be answered only once.

    Raises:
        400: decision is not APPROVED or REJECTED
        403: caller is not the invited user
        409: invitation already answered
    """
    participation = participation_service.respond(
        guid,
        actor,
        respond_request.decision.value,
        note=respond_request.note,
    )
    return ParticipationResponse(**participation_service.build_participation_response(participation))
