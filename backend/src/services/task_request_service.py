"""
Task request service.

A requester asks one other user to take on a task; only that user may
approve or reject it. Shares the approval workflow engine with event
invitations but has no schedule side effect.
"""

from datetime import date, datetime
from typing import Any, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.src.config.settings import get_settings
from backend.src.models import ApprovalStatus, TaskRequest
from backend.src.services.approval_workflow import (
    Action,
    Actor,
    is_permitted,
    require,
    transition,
)
from backend.src.services.exceptions import (
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from backend.src.services.guid import GuidService
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")


class TaskRequestService:
    """
    Service for two-party task requests.

    Usage:
        >>> service = TaskRequestService(db_session)
        >>> request = service.create(Actor.of("staff-1", ["SUPPORT"]), "user-a", "Flyers", "Print 50 flyers")
        >>> service.respond(request.guid, Actor.of("user-a"), "APPROVED")
    """

    def __init__(self, db: Session):
        self.db = db

    def get_by_guid(self, guid: str) -> TaskRequest:
        """
        Get a task request by GUID.

        Raises:
            NotFoundError: If the GUID is malformed or no request matches
        """
        uuid_value = GuidService.resolve(guid, "tsk")

        request = self.db.query(TaskRequest).filter(TaskRequest.uuid == uuid_value).first()
        if not request:
            raise NotFoundError("TaskRequest", guid)
        return request

    def list(
        self,
        actor: Actor,
        status: Optional[Any] = None,
        requested_to: Optional[str] = None,
    ) -> List[TaskRequest]:
        """
        List task requests visible to the actor, newest first.

        Admins see every request; other users see requests they sent or
        received.
        """
        query = self.db.query(TaskRequest)

        if not actor.has_any_role(get_settings().admin_role_set):
            query = query.filter(
                or_(
                    TaskRequest.requested_by == actor.user_id,
                    TaskRequest.requested_to == actor.user_id,
                )
            )
        if requested_to:
            query = query.filter(TaskRequest.requested_to == requested_to)
        if status is not None:
            value = status.value if isinstance(status, ApprovalStatus) else str(status).upper()
            if value not in {s.value for s in ApprovalStatus}:
                raise ValidationError(f"Unknown approval status: {status}", field="status")
            query = query.filter(TaskRequest.status == value)

        return query.order_by(TaskRequest.created_at.desc(), TaskRequest.id.desc()).all()

    def create(
        self,
        actor: Actor,
        requested_to: str,
        title: str,
        description: str,
        deadline: Optional[date] = None,
        project_ref: Optional[str] = None,
    ) -> TaskRequest:
        """
        Create a PENDING task request addressed to one user.

        Raises:
            ForbiddenError: If the actor lacks a requester role
            ValidationError: If a field is missing or the request targets
                the requester
        """
        require(actor, None, Action.CREATE_TASK_REQUEST, "Your role cannot create task requests")

        requested_to = (requested_to or "").strip()
        if not requested_to:
            raise ValidationError("Requested user is required", field="requested_to")
        if requested_to == actor.user_id:
            raise ValidationError("Cannot request a task from yourself", field="requested_to")
        if not title or not title.strip():
            raise ValidationError("Title cannot be empty", field="title")
        if not description or not description.strip():
            raise ValidationError("Description cannot be empty", field="description")

        request = TaskRequest(
            requested_by=actor.user_id,
            requested_to=requested_to,
            title=title.strip(),
            description=description.strip(),
            deadline=deadline,
            project_ref=project_ref,
            status=ApprovalStatus.PENDING.value,
        )

        try:
            self.db.add(request)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create task request for {requested_to}: {e}")
            raise

        self.db.refresh(request)
        logger.info(
            f"Created task request: {request.guid}",
            extra={"task_guid": request.guid, "requested_by": actor.user_id, "requested_to": requested_to},
        )
        return request

    def respond(
        self,
        guid: str,
        actor: Actor,
        decision: Any,
        note: Optional[str] = None,
    ) -> TaskRequest:
        """
        Approve or reject a task request.

        Raises:
            NotFoundError: If request not found
            ValidationError: If the decision is not APPROVED or REJECTED
            ForbiddenError: If the actor is not the requested user
            InvalidStateError: If the request was already answered
        """
        request = self.get_by_guid(guid)
        change = transition(
            request.status,
            decision,
            actor,
            is_permitted(actor, request, Action.RESPOND),
            note=note,
        )

        try:
            updated = (
                self.db.query(TaskRequest)
                .filter(
                    TaskRequest.id == request.id,
                    TaskRequest.status == ApprovalStatus.PENDING.value,
                )
                .update(
                    {
                        TaskRequest.status: change.to_status.value,
                        TaskRequest.response_note: change.note,
                        TaskRequest.responded_at: datetime.utcnow(),
                        TaskRequest.updated_at: datetime.utcnow(),
                    },
                    synchronize_session="fetch",
                )
            )
            if updated == 0:
                self.db.rollback()
                raise InvalidStateError(
                    f"Task request {guid} was already answered",
                    current=request.status,
                )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to record response for {guid}: {e}")
            raise

        self.db.refresh(request)
        logger.info(
            f"Task request {request.guid} {change.to_status.value}",
            extra={"task_guid": request.guid, "responded_by": actor.user_id},
        )
        return request

    def delete(self, guid: str, actor: Actor) -> None:
        """
        Delete a task request.

        Raises:
            NotFoundError: If request not found
            ForbiddenError: If the actor is neither the requester nor an admin
        """
        request = self.get_by_guid(guid)
        require(actor, request, Action.DELETE_TASK_REQUEST, "Only the requester or an administrator can delete this request")

        try:
            self.db.delete(request)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete task request {guid}: {e}")
            raise

        logger.info(f"Deleted task request: {guid}", extra={"task_guid": guid, "deleted_by": actor.user_id})

    def build_task_request_response(self, request: TaskRequest) -> dict:
        return {
            "guid": request.guid,
            "requested_by": request.requested_by,
            "requested_to": request.requested_to,
            "title": request.title,
            "description": request.description,
            "deadline": request.deadline,
            "project_ref": request.project_ref,
            "status": request.status,
            "response_note": request.response_note,
            "responded_at": request.responded_at,
            "created_at": request.created_at,
            "updated_at": request.updated_at,
        }
