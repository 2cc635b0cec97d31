"""
Unit tests for SummaryService.

Tests point totals, monthly and yearly summaries, and weekly compliance
around the cycle boundary.
"""

from datetime import date, datetime, time

import pytest

from backend.src.config.settings import AppSettings
from backend.src.services.approval_workflow import Actor
from backend.src.services.summary_service import SummaryService


@pytest.fixture
def summary_service(test_db_session):
    return SummaryService(test_db_session, settings=AppSettings(annual_point_target=4))


@pytest.fixture
def attend(participation_service, sample_event, creator):
    """Factory: user attends a new event with an APPROVED participation."""
    def _attend(event_date, kind="PARTICIPATION", start_time=time(10, 0), end_time=time(12, 0)):
        event = sample_event(
            name=f"Event {event_date} {start_time}",
            event_date=event_date,
            start_time=start_time,
            end_time=end_time,
        )
        participation_service.invite(event.guid, [creator.user_id], kind, creator)
        return event
    return _attend


class TestPoints:

    def test_points_by_kind(self, summary_service, attend, creator):
        attend(date(2024, 6, 10))
        attend(date(2024, 6, 11), kind="PREPARATION")

        assert summary_service.get_points(creator.user_id) == 1.5

    def test_pending_and_rejected_count_zero(
        self, summary_service, participation_service, sample_event, creator
    ):
        pending = sample_event(name="Pending")
        rejected = sample_event(name="Rejected")
        participation_service.invite(pending.guid, ["user-a"], "PARTICIPATION", creator)
        batch = participation_service.invite(rejected.guid, ["user-a"], "PARTICIPATION", creator)
        participation_service.respond(batch.results[0].participation.guid, Actor.of("user-a"), "REJECTED")

        assert summary_service.get_points("user-a") == 0

    def test_points_in_range(self, summary_service, attend, creator):
        attend(date(2024, 5, 31))
        attend(date(2024, 6, 1))
        attend(date(2024, 6, 30), kind="PREPARATION")
        attend(date(2024, 7, 1))

        assert summary_service.get_points(creator.user_id, date(2024, 6, 1), date(2024, 6, 30)) == 1.5


class TestParticipationSummary:

    def test_this_month_uses_calendar_month(self, summary_service, attend, creator):
        attend(date(2024, 5, 20))
        attend(date(2024, 6, 10))
        attend(date(2024, 6, 28), kind="PREPARATION")

        summary = summary_service.get_participation_summary(
            creator.user_id, now=datetime(2024, 6, 15, 12, 0)
        )

        assert summary["this_month_count"] == 2
        assert summary["this_month_points"] == 1.5
        assert summary["total_count"] == 3
        assert summary["total_points"] == 2.5
        assert summary["participation_count"] == 2
        assert summary["preparation_count"] == 1

    def test_empty_summary(self, summary_service):
        summary = summary_service.get_participation_summary("nobody", now=datetime(2024, 6, 15))

        assert summary["this_month_count"] == 0
        assert summary["total_points"] == 0


class TestYearlyPoints:

    def test_progress_against_target(self, summary_service, attend, creator):
        attend(date(2023, 12, 31))
        attend(date(2024, 3, 1))
        attend(date(2024, 6, 10), kind="PREPARATION")

        yearly = summary_service.get_yearly_points(creator.user_id, 2024)

        assert yearly["points"] == 1.5
        assert yearly["target"] == 4
        assert yearly["remaining"] == 2.5
        assert yearly["progress"] == 37.5

    def test_progress_is_capped(self, summary_service, attend, creator):
        for day in range(1, 6):
            attend(date(2024, 6, day))

        yearly = summary_service.get_yearly_points(creator.user_id, 2024)

        assert yearly["points"] == 5
        assert yearly["remaining"] == 0
        assert yearly["progress"] == 100.0


class TestCompliance:

    NOW = datetime(2024, 6, 12, 12, 0)  # Wednesday, cycle 2024-06-10 09:00 to 2024-06-17 09:00

    def test_compliant_with_both_kinds(self, summary_service, attend, creator):
        attend(date(2024, 6, 11))
        attend(date(2024, 6, 14), kind="PREPARATION")

        status = summary_service.get_compliance_status(creator.user_id, now=self.NOW)

        assert status["cycle_key"] == "2024-W24"
        assert status["cycle_start"].isoformat() == "2024-06-10T09:00:00+09:00"
        assert status["cycle_end"].isoformat() == "2024-06-17T09:00:00+09:00"
        assert status["has_participation"] is True
        assert status["has_preparation"] is True
        assert status["compliant"] is True

    def test_one_kind_is_not_enough(self, summary_service, attend, creator):
        attend(date(2024, 6, 11))

        status = summary_service.get_compliance_status(creator.user_id, now=self.NOW)

        assert status["has_participation"] is True
        assert status["has_preparation"] is False
        assert status["compliant"] is False

    def test_event_at_boundary_belongs_to_new_cycle(self, summary_service, attend, creator):
        attend(date(2024, 6, 10), start_time=time(9, 0), end_time=time(10, 0))
        attend(date(2024, 6, 10), kind="PREPARATION", start_time=time(8, 0), end_time=time(8, 59))

        status = summary_service.get_compliance_status(creator.user_id, now=self.NOW)

        assert status["has_participation"] is True
        assert status["has_preparation"] is False

    def test_event_at_next_boundary_is_excluded(self, summary_service, attend, creator):
        attend(date(2024, 6, 17), start_time=time(9, 0), end_time=time(10, 0))
        attend(date(2024, 6, 17), kind="PREPARATION", start_time=time(8, 0), end_time=time(8, 30))

        status = summary_service.get_compliance_status(creator.user_id, now=self.NOW)

        assert status["has_participation"] is False
        assert status["has_preparation"] is True

    def test_now_exactly_at_boundary(self, summary_service):
        status = summary_service.get_compliance_status("user-a", now=datetime(2024, 6, 10, 9, 0))
        assert status["cycle_key"] == "2024-W24"

        status = summary_service.get_compliance_status("user-a", now=datetime(2024, 6, 10, 8, 59, 59))
        assert status["cycle_key"] == "2024-W23"
