"""
Summary service for participation points and weekly compliance.

Read-only: every figure is derived from committed APPROVED participations.

Points:
    PARTICIPATION (attending)  1.0
    PREPARATION  (helping)     0.5
    PENDING / REJECTED         0

Compliance:
    A user is compliant for a weekly cycle when they hold at least one
    APPROVED participation of each kind whose event starts inside the cycle.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, contains_eager

from backend.src.config.settings import AppSettings, get_settings
from backend.src.models import ApprovalStatus, Event, Participation, ParticipationKind
from backend.src.utils.cycle import (
    cycle_bounds,
    cycle_key,
    event_instant,
    localize,
    month_bounds,
)
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")


def total_points(participations: List[Participation]) -> float:
    """Sum the points of the given participations."""
    return sum(p.points for p in participations)


class SummaryService:
    """
    Service computing participation summaries.

    Usage:
        >>> service = SummaryService(db_session)
        >>> service.get_points("user-a", date(2024, 6, 1), date(2024, 6, 30))
        1.0
    """

    def __init__(self, db: Session, settings: Optional[AppSettings] = None):
        """
        Initialize summary service.

        Args:
            db: SQLAlchemy database session
            settings: Application settings (defaults to get_settings())
        """
        self.db = db
        self.settings = settings or get_settings()

    def _now(self, now: Optional[datetime]) -> datetime:
        if now is None:
            return datetime.now(self.settings.tzinfo)
        return localize(now, self.settings.tzinfo)

    def _approved(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Participation]:
        query = (
            self.db.query(Participation)
            .join(Event, Participation.event_id == Event.id)
            .options(contains_eager(Participation.event))
            .filter(
                Participation.user_id == user_id,
                Participation.status == ApprovalStatus.APPROVED.value,
            )
        )
        if start_date:
            query = query.filter(Event.event_date >= start_date)
        if end_date:
            query = query.filter(Event.event_date <= end_date)
        return query.order_by(Event.event_date.asc()).all()

    @staticmethod
    def _count_kind(participations: List[Participation], kind: ParticipationKind) -> int:
        return sum(1 for p in participations if p.kind == kind.value)

    # =========================================================================
    # Points
    # =========================================================================

    def get_points(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> float:
        """
        Total points of a user over an inclusive range of event dates.

        Args:
            user_id: User identity
            start_date: First event date counted (all-time if omitted)
            end_date: Last event date counted (all-time if omitted)

        Returns:
            1.0 per approved PARTICIPATION plus 0.5 per approved PREPARATION
        """
        return total_points(self._approved(user_id, start_date, end_date))

    def get_participation_summary(
        self,
        user_id: str,
        now: Optional[datetime] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Dict[str, Any]:
        """
        Participation summary for a user.

        this_month_* cover the calendar month of now in the organization
        timezone; the other figures cover the given range (all-time by
        default).

        Returns:
            Dictionary with this_month_count, this_month_points, total_count,
            total_points, participation_count and preparation_count
        """
        local_now = self._now(now)
        month_start, month_end = month_bounds(local_now.date())

        month = self._approved(user_id, month_start, month_end)
        overall = self._approved(user_id, start_date, end_date)

        return {
            "user_id": user_id,
            "this_month_count": len(month),
            "this_month_points": total_points(month),
            "total_count": len(overall),
            "total_points": total_points(overall),
            "participation_count": self._count_kind(overall, ParticipationKind.PARTICIPATION),
            "preparation_count": self._count_kind(overall, ParticipationKind.PREPARATION),
            "start_date": start_date,
            "end_date": end_date,
        }

    def get_yearly_points(self, user_id: str, year: int) -> Dict[str, Any]:
        """
        Points of a user for one calendar year against the annual target.

        Returns:
            Dictionary with points, counts, target, remaining and progress
            (percentage of the target, capped at 100)
        """
        approved = self._approved(user_id, date(year, 1, 1), date(year, 12, 31))
        points = total_points(approved)
        target = self.settings.annual_point_target

        return {
            "user_id": user_id,
            "year": year,
            "points": points,
            "participation_count": self._count_kind(approved, ParticipationKind.PARTICIPATION),
            "preparation_count": self._count_kind(approved, ParticipationKind.PREPARATION),
            "target": target,
            "remaining": max(0.0, target - points),
            "progress": min(100.0, round(points / target * 100, 1)),
        }

    # =========================================================================
    # Compliance
    # =========================================================================

    def get_compliance_status(self, user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Weekly compliance status of a user for the cycle containing now.

        An event counts for the cycle when its start instant (date plus
        start time, or midnight) lies in [cycle_start, cycle_end).

        Returns:
            Dictionary with cycle_start, cycle_end, cycle_key,
            has_participation, has_preparation and compliant
        """
        tz = self.settings.tzinfo
        start, end = cycle_bounds(
            self._now(now),
            self.settings.cycle_weekday,
            self.settings.cycle_time,
            tz,
        )

        in_cycle = [
            p for p in self._approved(user_id, start.date(), end.date())
            if start <= event_instant(p.event.event_date, p.event.start_time, tz) < end
        ]
        has_participation = self._count_kind(in_cycle, ParticipationKind.PARTICIPATION) > 0
        has_preparation = self._count_kind(in_cycle, ParticipationKind.PREPARATION) > 0

        logger.debug(
            f"Compliance for {user_id} in {cycle_key(start)}: "
            f"participation={has_participation} preparation={has_preparation}"
        )

        return {
            "user_id": user_id,
            "cycle_start": start,
            "cycle_end": end,
            "cycle_key": cycle_key(start),
            "has_participation": has_participation,
            "has_preparation": has_preparation,
            "compliant": has_participation and has_preparation,
        }
