"""
Approval workflow engine shared by event invitations and task requests.

Provides:
- Actor: the authenticated caller (user identity plus directory roles)
- TRANSITIONS: the explicit PENDING -> APPROVED | REJECTED transition table
- transition(): the pure transition function
- is_permitted() / require(): the single capability predicate every
  caller consults instead of branching on role names

Design:
- PENDING is the only initial state; APPROVED and REJECTED are terminal
- A note may only accompany a transition into a terminal state
- The engine never touches the database; callers persist the result
  and run their own side effects (schedule sync for invitations)
"""

import enum
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, Optional

from backend.src.config.settings import AppSettings, get_settings
from backend.src.models import ApprovalStatus, Event, Participation, TaskRequest
from backend.src.services.exceptions import (
    ForbiddenError,
    InvalidStateError,
    ValidationError,
)


TRANSITIONS = {
    ApprovalStatus.PENDING: frozenset({ApprovalStatus.APPROVED, ApprovalStatus.REJECTED}),
    ApprovalStatus.APPROVED: frozenset(),
    ApprovalStatus.REJECTED: frozenset(),
}


@dataclass(frozen=True)
class Actor:
    """
    The user on whose behalf an operation runs.

    Attributes:
        user_id: Identity issued by the external user directory
        roles: Directory roles (upper-case), e.g. {"SUPPORT"}
    """

    user_id: str
    roles: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        if not self.user_id:
            raise ValueError("user_id is required")

    @classmethod
    def of(cls, user_id: str, roles: Iterable[str] = ()) -> "Actor":
        return cls(user_id=user_id, roles=frozenset(r.strip().upper() for r in roles if r.strip()))

    def has_any_role(self, roles: FrozenSet[str]) -> bool:
        return bool(self.roles & roles)


class Action(enum.Enum):
    """Capabilities checked by is_permitted()."""
    RESPOND = "respond"
    MANAGE_EVENT = "manage_event"
    SELF_SERVICE = "self_service"
    VIEW_SUMMARY = "view_summary"
    CREATE_TASK_REQUEST = "create_task_request"
    DELETE_TASK_REQUEST = "delete_task_request"


@dataclass(frozen=True)
class Transition:
    """Result of a successful transition."""

    from_status: ApprovalStatus
    to_status: ApprovalStatus
    actor_id: str
    note: Optional[str] = None


def responder_of(resource: Any) -> Optional[str]:
    """Identity of the only user allowed to answer the resource."""
    if isinstance(resource, Participation):
        return resource.user_id
    if isinstance(resource, TaskRequest):
        return resource.requested_to
    return None


def is_permitted(
    actor: Actor,
    resource: Any,
    action: Action,
    settings: Optional[AppSettings] = None,
) -> bool:
    """
    Decide whether an actor may perform an action on a resource.

    Args:
        actor: The acting user
        resource: Event, Participation, TaskRequest, or a user identity
            string for SELF_SERVICE and VIEW_SUMMARY; ignored for CREATE_TASK_REQUEST
        action: Capability being exercised
        settings: Settings providing role sets (defaults to get_settings())

    Returns:
        True if the action is allowed
    """
    settings = settings or get_settings()

    if action is Action.RESPOND:
        responder = responder_of(resource)
        return responder is not None and responder == actor.user_id

    if action is Action.MANAGE_EVENT:
        if not isinstance(resource, Event):
            return False
        return (
            resource.created_by == actor.user_id
            or actor.has_any_role(settings.event_manager_role_set)
        )

    if action is Action.SELF_SERVICE:
        return resource == actor.user_id

    if action is Action.VIEW_SUMMARY:
        return (
            resource == actor.user_id
            or actor.has_any_role(settings.event_manager_role_set | settings.admin_role_set)
        )

    if action is Action.CREATE_TASK_REQUEST:
        return actor.has_any_role(settings.task_requester_role_set)

    if action is Action.DELETE_TASK_REQUEST:
        if not isinstance(resource, TaskRequest):
            return False
        return (
            resource.requested_by == actor.user_id
            or actor.has_any_role(settings.admin_role_set)
        )

    return False


def require(
    actor: Actor,
    resource: Any,
    action: Action,
    message: str,
    settings: Optional[AppSettings] = None,
) -> None:
    """
    Raise ForbiddenError unless is_permitted() allows the action.

    Raises:
        ForbiddenError: If the actor lacks the capability
    """
    if not is_permitted(actor, resource, action, settings):
        raise ForbiddenError(message, actor=actor.user_id)


def _coerce_status(value: Any, field_name: str) -> ApprovalStatus:
    if isinstance(value, ApprovalStatus):
        return value
    try:
        return ApprovalStatus(str(value).upper())
    except ValueError:
        raise ValidationError(f"Unknown approval status: {value}", field=field_name)


def transition(
    current: Any,
    decision: Any,
    actor: Actor,
    is_authorized_responder: bool,
    note: Optional[str] = None,
) -> Transition:
    """
    Apply a decision to the current approval state.

    Args:
        current: Current status (ApprovalStatus or its string value)
        decision: Requested status, APPROVED or REJECTED
        actor: The acting user
        is_authorized_responder: Result of is_permitted(..., Action.RESPOND)
        note: Optional note, only allowed with a terminal decision

    Returns:
        Transition describing the state change

    Raises:
        ValidationError: If the decision is not a terminal status or a note
            accompanies a non-terminal decision
        ForbiddenError: If the actor is not the authorized responder
        InvalidStateError: If current is already terminal
    """
    current_status = _coerce_status(current, "status")
    target = _coerce_status(decision, "decision")

    if note is not None:
        note = note.strip() or None

    if not target.is_terminal:
        if note is not None:
            raise ValidationError(
                "A note can only be attached when approving or rejecting",
                field="note",
            )
        raise ValidationError("Decision must be APPROVED or REJECTED", field="decision")

    if not is_authorized_responder:
        raise ForbiddenError("Only the addressed user can respond", actor=actor.user_id)

    if target not in TRANSITIONS[current_status]:
        raise InvalidStateError(
            f"Cannot move from {current_status.value} to {target.value}: "
            f"{current_status.value} is final",
            current=current_status.value,
        )

    return Transition(
        from_status=current_status,
        to_status=target,
        actor_id=actor.user_id,
        note=note,
    )
