"""
Event service for managing shared events.

Provides business logic for listing, retrieving, creating, updating, and
deleting events.

Design:
- Creator is recorded once and never changed; every update records the
  updater and refreshes updated_at
- Time invariant (end_time > start_time) is validated before any write,
  on create and against the merged values on update
- Changing anything a schedule entry mirrors (date, times, name, location)
  re-derives every dependent entry inside the same transaction
- Delete is a hard delete cascading to participations and entries
"""

from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from backend.src.models import Event, EventType, Participation, ApprovalStatus
from backend.src.services.approval_workflow import Action, Actor, require
from backend.src.services.exceptions import NotFoundError, ValidationError
from backend.src.services.guid import GuidService
from backend.src.services.schedule_sync_service import ScheduleSyncService, SyncReport
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")

UPDATABLE_FIELDS = {
    "name",
    "event_type",
    "event_date",
    "start_time",
    "end_time",
    "location_ref",
    "location_text",
    "description",
    "capacity",
    "project_ref",
}

REQUIRED_FIELDS = {"name", "event_type", "event_date"}

# Fields copied onto schedule entries
MIRRORED_FIELDS = {"name", "event_date", "start_time", "end_time", "location_ref", "location_text"}


def validate_time_window(start_time: Optional[time], end_time: Optional[time]) -> None:
    """
    Enforce end > start when both times are present.

    Raises:
        ValidationError: If end_time is not after start_time
    """
    if start_time is not None and end_time is not None and end_time <= start_time:
        raise ValidationError("End time must be after start time", field="end_time")


def _coerce_event_type(value: Any) -> str:
    if isinstance(value, EventType):
        return value.value
    try:
        return EventType(str(value).upper()).value
    except ValueError:
        valid = ", ".join(t.value for t in EventType)
        raise ValidationError(f"Invalid event type '{value}'. Valid types: {valid}", field="event_type")


class EventService:
    """
    Service for managing shared events.

    Usage:
        >>> service = EventService(db_session)
        >>> event = service.create(
        ...     actor=Actor.of("user-a"),
        ...     name="Town Meeting",
        ...     event_type="OFFICIAL",
        ...     event_date=date(2024, 6, 10),
        ... )
    """

    def __init__(self, db: Session, synchronizer: Optional[ScheduleSyncService] = None):
        """
        Initialize event service.

        Args:
            db: SQLAlchemy database session
            synchronizer: Schedule synchronizer (defaults to one on the same session)
        """
        self.db = db
        self.synchronizer = synchronizer or ScheduleSyncService(db)

    # =========================================================================
    # Read Operations
    # =========================================================================

    def get_by_guid(self, guid: str) -> Event:
        """
        Get an event by GUID.

        Args:
            guid: Event GUID (evt_xxx format)

        Returns:
            Event instance

        Raises:
            NotFoundError: If the GUID is malformed or no event matches
        """
        uuid_value = GuidService.resolve(guid, "evt")

        event = self.db.query(Event).filter(Event.uuid == uuid_value).first()
        if not event:
            raise NotFoundError("Event", guid)

        return event

    def list(
        self,
        event_type: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        upcoming: bool = False,
        today: Optional[date] = None,
    ) -> List[Event]:
        """
        List events with optional filtering.

        Args:
            event_type: Filter by event type
            start_date: Start of date range (inclusive)
            end_date: End of date range (inclusive)
            upcoming: Only events dated today or later
            today: Reference date for upcoming (defaults to date.today())

        Returns:
            List of Event instances, newest date first
        """
        query = self.db.query(Event).options(selectinload(Event.participations))

        if event_type:
            query = query.filter(Event.event_type == _coerce_event_type(event_type))
        if start_date:
            query = query.filter(Event.event_date >= start_date)
        if end_date:
            query = query.filter(Event.event_date <= end_date)
        if upcoming:
            query = query.filter(Event.event_date >= (today or date.today()))

        return query.order_by(Event.event_date.desc(), Event.start_time.asc()).all()

    # =========================================================================
    # Create / Update / Delete
    # =========================================================================

    def create(
        self,
        actor: Actor,
        name: str,
        event_type: Any,
        event_date: date,
        start_time: Optional[time] = None,
        end_time: Optional[time] = None,
        location_ref: Optional[str] = None,
        location_text: Optional[str] = None,
        description: Optional[str] = None,
        capacity: Optional[int] = None,
        project_ref: Optional[str] = None,
        commit: bool = True,
    ) -> Event:
        """
        Create a new event owned by the acting user.

        Args:
            actor: Acting user, recorded as creator and updater
            name: Event name (required)
            event_type: OFFICIAL, TEAM or OTHER (required)
            event_date: Calendar date (required)
            start_time: Optional start time-of-day
            end_time: Optional end time-of-day
            location_ref: Optional location registry reference
            location_text: Optional free-text location
            description: Optional description
            capacity: Optional maximum attendees
            project_ref: Optional project reference
            commit: If False, only flush; the caller commits or rolls back

        Returns:
            Created Event instance

        Raises:
            ValidationError: If a required field is missing or the window is invalid
        """
        values = self._validate({
            "name": name,
            "event_type": event_type,
            "event_date": event_date,
            "start_time": start_time,
            "end_time": end_time,
            "location_ref": location_ref,
            "location_text": location_text,
            "description": description,
            "capacity": capacity,
            "project_ref": project_ref,
        })

        event = Event(
            **values,
            created_by=actor.user_id,
            updated_by=actor.user_id,
        )

        try:
            self.db.add(event)
            if commit:
                self.db.commit()
            else:
                self.db.flush()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create event '{name}': {e}")
            raise

        if commit:
            self.db.refresh(event)
        logger.info(
            f"Created event: {event.guid} - {event.name}",
            extra={"event_guid": event.guid, "created_by": actor.user_id},
        )
        return event

    def update(
        self,
        guid: str,
        actor: Actor,
        **updates: Any
    ) -> Tuple[Event, Optional[SyncReport]]:
        """
        Update an event and re-derive dependent schedule entries.

        Args:
            guid: Event GUID
            actor: Acting user (must be allowed to manage the event)
            **updates: Fields to change; None clears an optional field

        Returns:
            Tuple of (updated Event, SyncReport or None when no mirrored
            field changed)

        Raises:
            NotFoundError: If event not found
            ForbiddenError: If the actor may not manage the event
            ValidationError: If a field is unknown, a required field is
                cleared, or the merged time window is invalid
        """
        event = self.get_by_guid(guid)
        require(actor, event, Action.MANAGE_EVENT, "Only the creator or an event manager can edit this event")

        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            field = sorted(unknown)[0]
            raise ValidationError(f"Field '{field}' cannot be updated", field=field)

        current = {name: getattr(event, name) for name in UPDATABLE_FIELDS}
        merged = self._validate({**current, **updates})
        changed = {name for name in updates if merged[name] != current[name]}

        try:
            for name in changed:
                setattr(event, name, merged[name])
            event.updated_by = actor.user_id
            event.updated_at = datetime.utcnow()
            self.db.flush()

            report = None
            if changed & MIRRORED_FIELDS:
                report = self.synchronizer.resync_event(event)

            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update event {guid}: {e}")
            raise

        self.db.refresh(event)
        logger.info(
            f"Updated event: {event.guid}",
            extra={
                "event_guid": event.guid,
                "updated_by": actor.user_id,
                "fields": sorted(changed),
                "schedule_sync_complete": report.complete if report else None,
            },
        )
        return event, report

    def delete(self, guid: str, actor: Actor) -> None:
        """
        Delete an event with its participations and schedule entries.

        Args:
            guid: Event GUID
            actor: Acting user (must be allowed to manage the event)

        Raises:
            NotFoundError: If event not found
            ForbiddenError: If the actor may not manage the event
        """
        event = self.get_by_guid(guid)
        require(actor, event, Action.MANAGE_EVENT, "Only the creator or an event manager can delete this event")

        try:
            removed_entries = self.synchronizer.remove_event_entries(event.id)
            participations = (
                self.db.query(Participation)
                .filter(Participation.event_id == event.id)
                .all()
            )
            for participation in participations:
                self.db.delete(participation)
            removed_participations = len(participations)
            self.db.delete(event)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete event {guid}: {e}")
            raise

        logger.info(
            f"Deleted event: {guid}",
            extra={
                "event_guid": guid,
                "deleted_by": actor.user_id,
                "participations": removed_participations,
                "schedule_entries": removed_entries,
            },
        )

    def sync_schedule(
        self,
        guid: str,
        actor: Actor,
        user_ids: Optional[List[str]] = None,
    ) -> SyncReport:
        """
        Re-derive schedule entries of an event, e.g. to retry failed users.

        Args:
            guid: Event GUID
            actor: Acting user; an event manager, or a user retrying only
                their own entry
            user_ids: Users to reconcile; all affected users when omitted

        Returns:
            SyncReport for the reconciled users

        Raises:
            NotFoundError: If event not found
            ForbiddenError: If the actor may not manage the event
        """
        event = self.get_by_guid(guid)
        if user_ids != [actor.user_id]:
            require(actor, event, Action.MANAGE_EVENT, "Only the creator or an event manager can resync this event")

        try:
            if user_ids:
                report = self.synchronizer.sync_users(event, user_ids)
            else:
                report = self.synchronizer.resync_event(event)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to sync schedule for {guid}: {e}")
            raise

        logger.info(
            f"Schedule sync for {event.guid}: {len(report.succeeded)} ok, {len(report.failed)} failed",
            extra={"event_guid": event.guid, "requested_by": actor.user_id},
        )
        return report

    # =========================================================================
    # Response Builders
    # =========================================================================

    def build_event_response(self, event: Event) -> dict:
        """
        Build a response dictionary for an event.

        Args:
            event: Event instance

        Returns:
            Dictionary suitable for EventResponse schema
        """
        approved = [p for p in event.participations if p.status == ApprovalStatus.APPROVED.value]
        return {
            "guid": event.guid,
            "name": event.name,
            "event_type": event.event_type,
            "event_date": event.event_date,
            "start_time": event.start_time,
            "end_time": event.end_time,
            "location_ref": event.location_ref,
            "location_text": event.location_text,
            "description": event.description,
            "capacity": event.capacity,
            "project_ref": event.project_ref,
            "participant_count": len(event.participations),
            "approved_count": len(approved),
            "audit": event.audit,
        }

    def build_event_detail_response(self, event: Event) -> dict:
        """Event response including its participations."""
        response = self.build_event_response(event)
        response["participations"] = [
            {
                "guid": p.guid,
                "user_id": p.user_id,
                "kind": p.kind,
                "status": p.status,
                "responded_at": p.responded_at,
            }
            for p in sorted(event.participations, key=lambda p: p.id)
        ]
        return response

    # =========================================================================
    # Helpers
    # =========================================================================

    def _validate(self, values: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and normalize event fields before any write."""
        for name in REQUIRED_FIELDS:
            if values.get(name) is None:
                raise ValidationError(f"Field '{name}' is required", field=name)

        name = str(values["name"]).strip()
        if not name:
            raise ValidationError("Name cannot be empty or whitespace", field="name")

        if not isinstance(values["event_date"], date) or isinstance(values["event_date"], datetime):
            raise ValidationError("Event date must be a calendar date", field="event_date")

        validate_time_window(values.get("start_time"), values.get("end_time"))

        capacity = values.get("capacity")
        if capacity is not None and capacity < 1:
            raise ValidationError("Capacity must be at least 1", field="capacity")

        normalized = dict(values)
        normalized["name"] = name
        normalized["event_type"] = _coerce_event_type(values["event_type"])
        for optional in ("location_ref", "location_text", "description", "project_ref"):
            value = normalized.get(optional)
            if isinstance(value, str):
                normalized[optional] = value.strip() or None
        return normalized
