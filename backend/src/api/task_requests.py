"""
Task requests API endpoints.

Provides CRUD plus approve/reject for two-party task requests:
- Create (requester roles only)
- List requests sent or received by the caller (all for admins)
- Respond (only the requested user)
- Delete (requester or admin)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from backend.src.db.database import get_db
from backend.src.middleware.auth import require_auth
from backend.src.schemas.participation import ApprovalStatusType, RespondRequest
from backend.src.schemas.task_request import (
    TaskRequestCreate,
    TaskRequestListResponse,
    TaskRequestResponse,
)
from backend.src.services.approval_workflow import Actor
from backend.src.services.task_request_service import TaskRequestService


router = APIRouter(
    prefix="/task-requests",
    tags=["Task Requests"],
)


def get_task_request_service(db: Session = Depends(get_db)) -> TaskRequestService:
    """Create TaskRequestService instance with database session."""
    return TaskRequestService(db=db)


@router.get(
    "",
    response_model=TaskRequestListResponse,
    summary="List task requests",
)
async def list_task_requests(
    status_filter: Optional[ApprovalStatusType] = Query(None, alias="status"),
    requested_to: Optional[str] = Query(None),
    actor: Actor = Depends(require_auth),
    task_service: TaskRequestService = Depends(get_task_request_service),
) -> TaskRequestListResponse:
    requests = task_service.list(
        actor,
        status=status_filter.value if status_filter else None,
        requested_to=requested_to,
    )
    return TaskRequestListResponse(
        items=[TaskRequestResponse(**task_service.build_task_request_response(r)) for r in requests],
        total=len(requests),
    )


@router.post(
    "",
    response_model=TaskRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create task request",
)
async def create_task_request(
    request_data: TaskRequestCreate,
    actor: Actor = Depends(require_auth),
    task_service: TaskRequestService = Depends(get_task_request_service),
) -> TaskRequestResponse:
    request = task_service.create(actor=actor, **request_data.model_dump())
    return TaskRequestResponse(**task_service.build_task_request_response(request))


@router.get(
    "/{guid}",
    response_model=TaskRequestResponse,
    summary="Get task request",
)
async def get_task_request(
    guid: str,
    actor: Actor = Depends(require_auth),
    task_service: TaskRequestService = Depends(get_task_request_service),
) -> TaskRequestResponse:
    return TaskRequestResponse(**task_service.build_task_request_response(task_service.get_by_guid(guid)))


@router.post(
    "/{guid}/respond",
    response_model=TaskRequestResponse,
    summary="Respond to task request",
)
async def respond_to_task_request(
    guid: str,
    respond_request: RespondRequest,
    actor: Actor = Depends(require_auth),
    task_service: TaskRequestService = Depends(get_task_request_service),
) -> TaskRequestResponse:
    """Approve or reject a task request addressed to the caller."""
    request = task_service.respond(
        guid,
        actor,
        respond_request.decision.value,
        note=respond_request.note,
    )
    return TaskRequestResponse(**task_service.build_task_request_response(request))


@router.delete(
    "/{guid}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete task request",
)
async def delete_task_request(
    guid: str,
    actor: Actor = Depends(require_auth),
    task_service: TaskRequestService = Depends(get_task_request_service),
) -> None:
    task_service.delete(guid, actor)
