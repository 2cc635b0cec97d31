"""
Schedule synchronizer for derived personal schedule entries.

Keeps the bijection between APPROVED participations and ScheduleEntry
rows: an entry exists for (event, user) exactly when that user's
participation in the event is APPROVED, and its window mirrors the event.

Design:
- Entries are keyed by (user, event) with a unique constraint; inserts run
  under a SAVEPOINT and a constraint conflict re-reads the winning row
- Multi-user fan-out reconciles each user inside its own SAVEPOINT so a
  failure rolls back only that user; the SyncReport names every failure
- Methods flush but never commit: the calling service owns the transaction
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.src.models import ApprovalStatus, Event, Participation, ScheduleEntry
from backend.src.services.exceptions import ServiceError
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")


@dataclass
class SyncReport:
    """
    Per-user outcome of a schedule fan-out.

    Attributes:
        event_guid: Event whose entries were synchronized
        succeeded: User ids whose entries now match their participation
        failed: User id -> failure reason; these users must be retried
    """

    event_guid: str
    succeeded: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return not self.failed

    @property
    def failed_user_ids(self) -> List[str]:
        return sorted(self.failed)

    def to_dict(self) -> dict:
        return {
            "event_guid": self.event_guid,
            "complete": self.complete,
            "succeeded": list(self.succeeded),
            "failed": [
                {"user_id": user_id, "reason": self.failed[user_id]}
                for user_id in self.failed_user_ids
            ],
        }


def unique_user_ids(user_ids: Iterable[str]) -> List[str]:
    seen = set()
    ordered = []
    for user_id in user_ids:
        if user_id not in seen:
            seen.add(user_id)
            ordered.append(user_id)
    return ordered


class ScheduleSyncService:
    """
    Service maintaining ScheduleEntry rows derived from participations.

    Usage:
        >>> sync = ScheduleSyncService(db_session)
        >>> sync.upsert_entry(event, "user-a")
        >>> report = sync.resync_event(event)
        >>> report.failed_user_ids
        []
    """

    def __init__(self, db: Session):
        """
        Initialize schedule synchronizer.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    # =========================================================================
    # Single-entry operations
    # =========================================================================

    def get_entry(self, event_id: int, user_id: str) -> Optional[ScheduleEntry]:
        return (
            self.db.query(ScheduleEntry)
            .filter(
                ScheduleEntry.event_id == event_id,
                ScheduleEntry.user_id == user_id,
            )
            .first()
        )

    def upsert_entry(self, event: Event, user_id: str) -> ScheduleEntry:
        """
        Create or refresh the entry for (event, user).

        Never creates a duplicate: a concurrent insert that wins the unique
        constraint is re-read and updated instead.

        Args:
            event: Source event
            user_id: Owning user

        Returns:
            The entry mirroring the event's current window
        """
        entry = self.get_entry(event.id, user_id)

        if entry is None:
            try:
                with self.db.begin_nested():
                    entry = ScheduleEntry(user_id=user_id, event_id=event.id)
                    self._mirror(entry, event)
                    self.db.add(entry)
                    self.db.flush()
                logger.debug(f"Created schedule entry for {user_id} on {event.guid}")
                return entry
            except IntegrityError:
                entry = self.get_entry(event.id, user_id)
                if entry is None:
                    raise
                logger.info(
                    "Schedule entry inserted concurrently, updating existing row",
                    extra={"event_guid": event.guid, "user_id": user_id},
                )

        self._mirror(entry, event)
        self.db.flush()
        return entry

    def remove_entry(self, event_id: int, user_id: str) -> bool:
        """
        Delete the entry for (event, user) if present.

        Returns:
            True if an entry was deleted
        """
        entry = self.get_entry(event_id, user_id)
        if entry is None:
            return False
        self.db.delete(entry)
        self.db.flush()
        return True

    def remove_event_entries(self, event_id: int) -> int:
        """
        Delete every entry derived from an event.

        Returns:
            Number of entries deleted
        """
        entries = (
            self.db.query(ScheduleEntry)
            .filter(ScheduleEntry.event_id == event_id)
            .all()
        )
        for entry in entries:
            self.db.delete(entry)
        self.db.flush()
        return len(entries)

    # =========================================================================
    # Fan-out
    # =========================================================================

    def sync_users(self, event: Event, user_ids: Iterable[str]) -> SyncReport:
        """
        Reconcile the entries of several users with their participation.

        Each user is handled in its own SAVEPOINT. Successful users keep
        their changes even when others fail.

        Args:
            event: Source event
            user_ids: Users to reconcile

        Returns:
            SyncReport listing succeeded and failed users
        """
        report = SyncReport(event_guid=event.guid)

        for user_id in unique_user_ids(user_ids):
            try:
                with self.db.begin_nested():
                    self._reconcile_user(event, user_id)
                report.succeeded.append(user_id)
            except (SQLAlchemyError, ServiceError) as e:
                report.failed[user_id] = str(e)

        if report.failed:
            logger.warning(
                f"Schedule sync incomplete for {event.guid}",
                extra={
                    "event_guid": event.guid,
                    "failed_user_ids": report.failed_user_ids,
                    "succeeded_count": len(report.succeeded),
                },
            )

        return report

    def resync_event(self, event: Event) -> SyncReport:
        """
        Re-derive every entry of an event after its window changed.

        Covers approved participants and any user still holding an entry,
        so orphaned entries are removed as well.

        Returns:
            SyncReport for all affected users
        """
        approved = [
            p.user_id for p in (
                self.db.query(Participation)
                .filter(
                    Participation.event_id == event.id,
                    Participation.status == ApprovalStatus.APPROVED.value,
                )
                .order_by(Participation.id.asc())
                .all()
            )
        ]
        holders = [
            user_id for (user_id,) in (
                self.db.query(ScheduleEntry.user_id)
                .filter(ScheduleEntry.event_id == event.id)
                .order_by(ScheduleEntry.id.asc())
                .all()
            )
        ]

        report = self.sync_users(event, approved + holders)
        logger.info(
            f"Resynced schedule entries for {event.guid}",
            extra={"event_guid": event.guid, "users": len(report.succeeded)},
        )
        return report

    # =========================================================================
    # Queries
    # =========================================================================

    def list_entries(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[ScheduleEntry]:
        """
        List a user's schedule entries ordered by date and start time.

        Args:
            user_id: Owning user
            start_date: Start of date range (inclusive)
            end_date: End of date range (inclusive)
        """
        query = self.db.query(ScheduleEntry).filter(ScheduleEntry.user_id == user_id)
        if start_date:
            query = query.filter(ScheduleEntry.entry_date >= start_date)
        if end_date:
            query = query.filter(ScheduleEntry.entry_date <= end_date)
        return (
            query
            .order_by(ScheduleEntry.entry_date.asc(), ScheduleEntry.start_time.asc())
            .all()
        )

    def build_entry_response(self, entry: ScheduleEntry) -> dict:
        return {
            "guid": entry.guid,
            "user_id": entry.user_id,
            "event_guid": entry.event.guid,
            "entry_date": entry.entry_date,
            "start_time": entry.start_time,
            "end_time": entry.end_time,
            "title": entry.title,
            "location_text": entry.location_text,
            "updated_at": entry.updated_at,
        }

    # =========================================================================
    # Helpers
    # =========================================================================

    def _reconcile_user(self, event: Event, user_id: str) -> None:
        participation = (
            self.db.query(Participation)
            .filter(
                Participation.event_id == event.id,
                Participation.user_id == user_id,
            )
            .first()
        )
        if participation is not None and participation.status == ApprovalStatus.APPROVED.value:
            self.upsert_entry(event, user_id)
        else:
            self.remove_entry(event.id, user_id)

    @staticmethod
    def _mirror(entry: ScheduleEntry, event: Event) -> None:
        entry.entry_date = event.event_date
        entry.start_time = event.start_time
        entry.end_time = event.end_time
        entry.title = event.name
        entry.location_text = event.display_location
