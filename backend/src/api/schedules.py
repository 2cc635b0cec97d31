"""
Personal schedule API endpoint.

Schedule entries are derived from approved participations and are
read-only here.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backend.src.db.database import get_db
from backend.src.middleware.auth import require_auth
from backend.src.schemas.schedule import ScheduleEntryResponse, ScheduleListResponse
from backend.src.services.approval_workflow import Actor
from backend.src.services.schedule_sync_service import ScheduleSyncService


router = APIRouter(
    prefix="/schedule",
    tags=["Schedule"],
)


def get_schedule_service(db: Session = Depends(get_db)) -> ScheduleSyncService:
    """Create ScheduleSyncService instance with database session."""
    return ScheduleSyncService(db=db)


@router.get(
    "",
    response_model=ScheduleListResponse,
    summary="Get my schedule",
)
async def get_my_schedule(
    start_date: Optional[date] = Query(None, description="First date (inclusive)"),
    end_date: Optional[date] = Query(None, description="Last date (inclusive)"),
    actor: Actor = Depends(require_auth),
    schedule_service: ScheduleSyncService = Depends(get_schedule_service),
) -> ScheduleListResponse:
    """
    List the caller's schedule entries ordered by date and start time.

    Example:
        GET /api/schedule?start_date=2024-06-01&end_date=2024-06-30
    """
    entries = schedule_service.list_entries(actor.user_id, start_date, end_date)
    return ScheduleListResponse(
        items=[ScheduleEntryResponse(**schedule_service.build_entry_response(e)) for e in entries],
        total=len(entries),
    )
