"""
Participation service for event invitations and responses.

Owns the per-user invitation state of each event and keeps personal
schedules consistent with it through the schedule synchronizer.

Design:
- plan_invitation() is a pure function deciding what an invitation does to
  an existing row; invite() only applies plans
- A batch invitation runs in one transaction with one SAVEPOINT per user:
  a user that fails is reported and rolled back, the others are kept
- A concurrent insert for the same (event, user) loses on the unique
  constraint, re-reads the winner's row and applies its plan to it
- Answering goes through the approval workflow engine; the status change is
  a compare-and-set on PENDING so only one answer can ever win
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from backend.src.models import (
    ApprovalStatus,
    Event,
    Participation,
    ParticipationKind,
)
from backend.src.services.approval_workflow import (
    Action,
    Actor,
    is_permitted,
    require,
    transition,
)
from backend.src.services.event_service import EventService
from backend.src.services.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from backend.src.services.guid import GuidService
from backend.src.services.schedule_sync_service import ScheduleSyncService, unique_user_ids
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")

CAPACITY_REACHED = "capacity_reached"


# ============================================================================
# Invitation planning
# ============================================================================


class InvitationAction(enum.Enum):
    """What an invitation does to the (event, user) row."""
    CREATE = "created"
    REMOVE = "removed"
    CHANGE_KIND = "kind_changed"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class InvitationPlan:
    action: InvitationAction
    status: Optional[ApprovalStatus] = None


def coerce_kind(value: Any) -> ParticipationKind:
    """Parse a participation kind, raising ValidationError on unknown values."""
    if isinstance(value, ParticipationKind):
        return value
    try:
        return ParticipationKind(str(value).upper())
    except ValueError:
        valid = ", ".join(k.value for k in ParticipationKind)
        raise ValidationError(f"Invalid kind '{value}'. Valid kinds: {valid}", field="kind")


def plan_invitation(
    existing: Optional[Participation],
    requested_kind: ParticipationKind,
    toggle: bool = True,
    is_self: bool = False,
) -> InvitationPlan:
    """
    Decide how an invitation applies to the current row.

    Args:
        existing: Current participation for (event, user), or None
        requested_kind: Kind being requested
        toggle: Whether repeating the same kind removes the participation
        is_self: Whether the invitee is the acting user

    Returns:
        InvitationPlan; CREATE carries the initial status

    Example:
        >>> plan_invitation(None, ParticipationKind.PARTICIPATION).action
        <InvitationAction.CREATE: 'created'>
    """
    if existing is None:
        status = ApprovalStatus.APPROVED if is_self else ApprovalStatus.PENDING
        return InvitationPlan(InvitationAction.CREATE, status)

    if existing.kind == requested_kind.value:
        if toggle:
            return InvitationPlan(InvitationAction.REMOVE)
        return InvitationPlan(InvitationAction.UNCHANGED)

    return InvitationPlan(InvitationAction.CHANGE_KIND)


# ============================================================================
# Batch results
# ============================================================================


@dataclass
class InvitationResult:
    """Outcome of an invitation for one user."""

    user_id: str
    action: Optional[InvitationAction] = None
    participation: Optional[Participation] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class InvitationBatchResult:
    """
    Per-user outcome of invite().

    A batch is complete only when every requested user succeeded; the
    failed users can be retried with the same call.
    """

    event_guid: str
    results: List[InvitationResult] = field(default_factory=list)

    @property
    def succeeded(self) -> List[InvitationResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> List[InvitationResult]:
        return [r for r in self.results if not r.ok]

    @property
    def failed_user_ids(self) -> List[str]:
        return [r.user_id for r in self.failed]

    @property
    def complete(self) -> bool:
        return not self.failed


# ============================================================================
# Service
# ============================================================================


class ParticipationService:
    """
    Service for invitations and invitee responses.

    Usage:
        >>> service = ParticipationService(db_session)
        >>> batch = service.invite(event.guid, ["user-a", "user-b"], "PARTICIPATION", actor)
        >>> batch.complete
        True
    """

    def __init__(self, db: Session, synchronizer: Optional[ScheduleSyncService] = None):
        """
        Initialize participation service.

        Args:
            db: SQLAlchemy database session
            synchronizer: Schedule synchronizer (defaults to one on the same session)
        """
        self.db = db
        self.synchronizer = synchronizer or ScheduleSyncService(db)
        self.events = EventService(db, synchronizer=self.synchronizer)

    # =========================================================================
    # Read Operations
    # =========================================================================

    def get_by_guid(self, guid: str) -> Participation:
        """
        Get a participation by GUID.

        Raises:
            NotFoundError: If the GUID is malformed or no participation matches
        """
        uuid_value = GuidService.resolve(guid, "par")

        participation = (
            self.db.query(Participation)
            .filter(Participation.uuid == uuid_value)
            .first()
        )
        if not participation:
            raise NotFoundError("Participation", guid)

        return participation

    def find(self, event_id: int, user_id: str) -> Optional[Participation]:
        return (
            self.db.query(Participation)
            .filter(
                Participation.event_id == event_id,
                Participation.user_id == user_id,
            )
            .first()
        )

    def list_for_event(self, event_guid: str) -> List[Participation]:
        """
        List all participations of an event, in invitation order.

        Raises:
            NotFoundError: If event not found
        """
        event = self.events.get_by_guid(event_guid)
        return (
            self.db.query(Participation)
            .filter(Participation.event_id == event.id)
            .order_by(Participation.id.asc())
            .all()
        )

    def list_for_user(self, user_id: str, status: Optional[Any] = None) -> List[Participation]:
        """
        List a user's participations, newest event first.

        With status=PENDING this is the user's invitation inbox.
        """
        query = (
            self.db.query(Participation)
            .join(Event, Participation.event_id == Event.id)
            .options(joinedload(Participation.event))
            .filter(Participation.user_id == user_id)
        )
        if status is not None:
            if isinstance(status, ApprovalStatus):
                status = status.value
            status = str(status).upper()
            if status not in {s.value for s in ApprovalStatus}:
                raise ValidationError(f"Unknown approval status: {status}", field="status")
            query = query.filter(Participation.status == status)

        return query.order_by(Event.event_date.desc(), Participation.id.asc()).all()

    # =========================================================================
    # Invite
    # =========================================================================

    def invite(
        self,
        event_guid: str,
        user_ids: Iterable[str],
        kind: Any,
        actor: Actor,
        toggle: bool = True,
    ) -> InvitationBatchResult:
        """
        Invite users to an event, or toggle/adjust their existing invitation.

        Args:
            event_guid: Event GUID
            user_ids: Users to invite (duplicates are ignored)
            kind: PARTICIPATION or PREPARATION
            actor: Acting user
            toggle: If True, repeating the same kind removes the participation;
                if False, repeating it leaves the row unchanged

        Returns:
            InvitationBatchResult with one result per distinct user

        Raises:
            NotFoundError: If event not found
            ValidationError: If no user ids are given or the kind is unknown
            ForbiddenError: If inviting others without the manage capability
        """
        event = self.events.get_by_guid(event_guid)
        batch = self._invite_batch(event, user_ids, kind, actor, toggle)

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to commit invitations for {event_guid}: {e}")
            raise

        self._log_batch(event, batch, actor, kind)
        return batch

    def create_event(
        self,
        actor: Actor,
        participants: Optional[Iterable[str]] = None,
        participant_kind: Any = ParticipationKind.PARTICIPATION,
        **fields: Any,
    ):
        """
        Create an event and invite its initial participants in one transaction.

        Per-user invitation failures (capacity) are reported in the batch and
        do not undo the event. Anything else rolls back the event together
        with every invitation.

        Args:
            actor: Acting user, recorded as creator
            participants: Optional users to invite (never toggled)
            participant_kind: Kind of the initial invitations
            **fields: Event fields accepted by EventService.create

        Returns:
            Tuple of (Event, InvitationBatchResult or None)
        """
        try:
            event = self.events.create(actor=actor, commit=False, **fields)
            batch = None
            if participants:
                batch = self._invite_batch(event, participants, participant_kind, actor, toggle=False)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create event '{fields.get('name')}' with participants: {e}")
            raise
        except ServiceError:
            self.db.rollback()
            raise

        self.db.refresh(event)
        if batch is not None:
            self._log_batch(event, batch, actor, participant_kind)
        return event, batch

    def _invite_batch(
        self,
        event: Event,
        user_ids: Iterable[str],
        kind: Any,
        actor: Actor,
        toggle: bool,
    ) -> InvitationBatchResult:
        requested_kind = coerce_kind(kind)

        targets = unique_user_ids(u.strip() for u in user_ids if u and u.strip())
        if not targets:
            raise ValidationError("At least one user id is required", field="user_ids")

        if any(user_id != actor.user_id for user_id in targets):
            require(actor, event, Action.MANAGE_EVENT, "Only the creator or an event manager can invite other users")

        batch = InvitationBatchResult(event_guid=event.guid)

        for user_id in targets:
            batch.results.append(self._invite_user(event, user_id, requested_kind, actor, toggle))

        return batch

    def _log_batch(self, event: Event, batch: InvitationBatchResult, actor: Actor, kind: Any) -> None:
        logger.info(
            f"Invited {len(batch.succeeded)} user(s) to {event.guid}",
            extra={
                "event_guid": event.guid,
                "invited_by": actor.user_id,
                "kind": coerce_kind(kind).value,
                "actions": {r.user_id: r.action.value for r in batch.succeeded},
            },
        )
        if not batch.complete:
            logger.warning(
                f"Invitation batch incomplete for {event.guid}",
                extra={"event_guid": event.guid, "failed_user_ids": batch.failed_user_ids},
            )

    def _invite_user(
        self,
        event: Event,
        user_id: str,
        kind: ParticipationKind,
        actor: Actor,
        toggle: bool,
    ) -> InvitationResult:
        result = InvitationResult(user_id=user_id)

        # Second attempt re-reads the row a concurrent writer inserted
        for attempt in (1, 2):
            try:
                with self.db.begin_nested():
                    result.action, result.participation = self._apply_invitation(
                        event, user_id, kind, actor, toggle
                    )
                return result
            except IntegrityError as e:
                if attempt == 2:
                    result.error = str(e.orig) if e.orig is not None else str(e)
                    return result
                logger.info(
                    "Participation inserted concurrently, re-reading",
                    extra={"event_guid": event.guid, "user_id": user_id},
                )
            except ConflictError as e:
                result.error = e.reason or e.message
                return result
            except (SQLAlchemyError, ServiceError) as e:
                result.error = str(e)
                return result

        return result

    def _apply_invitation(
        self,
        event: Event,
        user_id: str,
        kind: ParticipationKind,
        actor: Actor,
        toggle: bool,
    ):
        existing = self.find(event.id, user_id)
        plan = plan_invitation(existing, kind, toggle=toggle, is_self=(user_id == actor.user_id))

        if plan.action is InvitationAction.CREATE:
            if kind is ParticipationKind.PARTICIPATION:
                self._check_capacity(event)

            participation = Participation(
                event_id=event.id,
                user_id=user_id,
                kind=kind.value,
                status=plan.status.value,
                invited_by=actor.user_id,
            )
            if plan.status is ApprovalStatus.APPROVED:
                participation.responded_at = datetime.utcnow()
            self.db.add(participation)
            self.db.flush()

            if plan.status is ApprovalStatus.APPROVED:
                self.synchronizer.upsert_entry(event, user_id)
            return plan.action, participation

        if plan.action is InvitationAction.REMOVE:
            self.synchronizer.remove_entry(event.id, user_id)
            self.db.delete(existing)
            self.db.flush()
            return plan.action, None

        if plan.action is InvitationAction.CHANGE_KIND:
            # A rejected row never attends, whatever its kind
            if kind is ParticipationKind.PARTICIPATION and existing.approval_status is not ApprovalStatus.REJECTED:
                self._check_capacity(event)
            existing.kind = kind.value
            self.db.flush()

        return plan.action, existing

    def _check_capacity(self, event: Event) -> None:
        """
        Raise when one more attending participant would exceed capacity.

        Raises:
            ConflictError: reason capacity_reached
        """
        if event.capacity is not None and self._attending_count(event.id) >= event.capacity:
            raise ConflictError(
                f"Event {event.guid} is at capacity ({event.capacity})",
                reason=CAPACITY_REACHED,
            )

    def _attending_count(self, event_id: int) -> int:
        return (
            self.db.query(Participation)
            .filter(
                Participation.event_id == event_id,
                Participation.kind == ParticipationKind.PARTICIPATION.value,
                Participation.status.in_([
                    ApprovalStatus.PENDING.value,
                    ApprovalStatus.APPROVED.value,
                ]),
            )
            .count()
        )

    # =========================================================================
    # Respond / Remove
    # =========================================================================

    def respond(
        self,
        participation_guid: str,
        actor: Actor,
        decision: Any,
        note: Optional[str] = None,
    ) -> Participation:
        """
        Answer an invitation.

        Args:
            participation_guid: Participation GUID
            actor: Acting user (must be the invited user)
            decision: APPROVED or REJECTED
            note: Optional response note

        Returns:
            Updated Participation

        Raises:
            NotFoundError: If participation not found
            ValidationError: If the decision is not APPROVED or REJECTED
            ForbiddenError: If the actor is not the invited user
            InvalidStateError: If the invitation was already answered
        """
        participation = self.get_by_guid(participation_guid)
        change = transition(
            participation.status,
            decision,
            actor,
            is_permitted(actor, participation, Action.RESPOND),
            note=note,
        )

        try:
            updated = (
                self.db.query(Participation)
                .filter(
                    Participation.id == participation.id,
                    Participation.status == ApprovalStatus.PENDING.value,
                )
                .update(
                    {
                        Participation.status: change.to_status.value,
                        Participation.response_note: change.note,
                        Participation.responded_at: datetime.utcnow(),
                        Participation.updated_at: datetime.utcnow(),
                    },
                    synchronize_session="fetch",
                )
            )
            if updated == 0:
                self.db.rollback()
                raise InvalidStateError(
                    f"Participation {participation_guid} was already answered",
                    current=participation.status,
                )

            if change.to_status is ApprovalStatus.APPROVED:
                self.synchronizer.upsert_entry(participation.event, participation.user_id)
            else:
                self.synchronizer.remove_entry(participation.event_id, participation.user_id)

            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to record response for {participation_guid}: {e}")
            raise

        self.db.refresh(participation)
        logger.info(
            f"Participation {participation.guid} {change.to_status.value}",
            extra={
                "participation_guid": participation.guid,
                "event_guid": participation.event.guid,
                "user_id": participation.user_id,
                "from_status": change.from_status.value,
                "to_status": change.to_status.value,
            },
        )
        return participation

    def remove(self, event_guid: str, user_id: str, actor: Actor) -> bool:
        """
        Remove a user's participation (any status) and its schedule entry.

        Returns:
            True if a participation was removed, False if there was none

        Raises:
            NotFoundError: If event not found
            ForbiddenError: If the actor is neither the user nor an event manager
        """
        event = self.events.get_by_guid(event_guid)

        if not (
            is_permitted(actor, user_id, Action.SELF_SERVICE)
            or is_permitted(actor, event, Action.MANAGE_EVENT)
        ):
            raise ForbiddenError(
                "Only the participant, the creator or an event manager can remove a participation",
                actor=actor.user_id,
            )

        existing = self.find(event.id, user_id)
        if existing is None:
            logger.info(
                f"No participation to remove for {user_id} on {event.guid}",
                extra={"event_guid": event.guid, "user_id": user_id},
            )
            return False

        try:
            self.synchronizer.remove_entry(event.id, user_id)
            self.db.delete(existing)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to remove participation of {user_id} on {event_guid}: {e}")
            raise

        logger.info(
            f"Removed participation of {user_id} from {event.guid}",
            extra={"event_guid": event.guid, "user_id": user_id, "removed_by": actor.user_id},
        )
        return True

    # =========================================================================
    # Response Builders
    # =========================================================================

    def build_participation_response(self, participation: Participation) -> dict:
        event = participation.event
        return {
            "guid": participation.guid,
            "event_guid": event.guid,
            "event_name": event.name,
            "event_date": event.event_date,
            "user_id": participation.user_id,
            "kind": participation.kind,
            "status": participation.status,
            "points": participation.points,
            "invited_by": participation.invited_by,
            "response_note": participation.response_note,
            "responded_at": participation.responded_at,
            "created_at": participation.created_at,
            "updated_at": participation.updated_at,
        }

    def build_batch_response(self, batch: InvitationBatchResult) -> dict:
        return {
            "event_guid": batch.event_guid,
            "complete": batch.complete,
            "results": [
                {
                    "user_id": r.user_id,
                    "action": r.action.value if r.ok else None,
                    "participation": (
                        self.build_participation_response(r.participation)
                        if r.ok and r.participation is not None
                        else None
                    ),
                    "error": r.error,
                }
                for r in batch.results
            ],
            "failed_user_ids": batch.failed_user_ids,
        }
