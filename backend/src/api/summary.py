"""
Summary API endpoints.

Provides:
- Participation point summary (this month and overall)
- Yearly points against the annual target
- Weekly compliance status

Summaries default to the caller. Naming another user_id requires an event
manager or admin role (403 otherwise), since point totals and compliance are
reviewed by the staff who run the events.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from backend.src.db.database import get_db
from backend.src.middleware.auth import require_auth
from backend.src.schemas.summary import (
    ComplianceStatusResponse,
    ParticipationSummaryResponse,
    YearlyPointsResponse,
)
from backend.src.services.approval_workflow import Action, Actor, require
from backend.src.services.summary_service import SummaryService


router = APIRouter(
    prefix="/summary",
    tags=["Summary"],
)


def get_summary_service(db: Session = Depends(get_db)) -> SummaryService:
    """Create SummaryService instance with database session."""
    return SummaryService(db=db)


def resolve_subject(user_id: Optional[str], actor: Actor) -> str:
    """
    User whose summary is read: the caller unless user_id names someone else.

    Raises:
        ForbiddenError: If another user is named without a manager or admin role
    """
    subject = user_id or actor.user_id
    require(actor, subject, Action.VIEW_SUMMARY, "Only event managers can read another user's summary")
    return subject


@router.get(
    "/participation",
    response_model=ParticipationSummaryResponse,
    summary="Participation summary",
)
async def get_participation_summary(
    user_id: Optional[str] = Query(None, description="User to summarize (default: caller)"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    actor: Actor = Depends(require_auth),
    summary_service: SummaryService = Depends(get_summary_service),
) -> ParticipationSummaryResponse:
    summary = summary_service.get_participation_summary(
        resolve_subject(user_id, actor),
        start_date=start_date,
        end_date=end_date,
    )
    return ParticipationSummaryResponse(**summary)


@router.get(
    "/points/{year}",
    response_model=YearlyPointsResponse,
    summary="Yearly points",
)
async def get_yearly_points(
    year: int = Path(..., ge=1970, le=9999),
    user_id: Optional[str] = Query(None, description="User to summarize (default: caller)"),
    actor: Actor = Depends(require_auth),
    summary_service: SummaryService = Depends(get_summary_service),
) -> YearlyPointsResponse:
    return YearlyPointsResponse(**summary_service.get_yearly_points(resolve_subject(user_id, actor), year))


@router.get(
    "/compliance",
    response_model=ComplianceStatusResponse,
    summary="Weekly compliance status",
)
async def get_compliance_status(
    user_id: Optional[str] = Query(None, description="User to check (default: caller)"),
    actor: Actor = Depends(require_auth),
    summary_service: SummaryService = Depends(get_summary_service),
) -> ComplianceStatusResponse:
    """
    Whether the user has both an approved PARTICIPATION and an approved
    PREPARATION in the current weekly cycle.
    """
    return ComplianceStatusResponse(**summary_service.get_compliance_status(resolve_subject(user_id, actor)))
