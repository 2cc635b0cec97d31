"""
Unit tests for ScheduleSyncService.

Tests entry upsert/remove, event-wide re-derivation, and per-user failure
isolation during fan-out with retry of the failed subset.
"""

from datetime import date, time

import pytest
from sqlalchemy.exc import OperationalError

from backend.src.models import ScheduleEntry
from backend.src.services.approval_workflow import Actor
from backend.src.services.schedule_sync_service import SyncReport


@pytest.fixture
def synchronizer(event_service):
    """The synchronizer the event service re-derives entries through."""
    return event_service.synchronizer


@pytest.fixture
def approved_event(participation_service, sample_event, creator):
    """Event with three approved participants and one pending invitee."""
    event = sample_event()
    batch = participation_service.invite(
        event.guid, ["user-a", "user-b", "user-c", "user-d"], "PARTICIPATION", creator
    )
    for result in batch.results[:3]:
        participation_service.respond(result.participation.guid, Actor.of(result.user_id), "APPROVED")
    return event


def entry_users(db, event):
    return sorted(e.user_id for e in db.query(ScheduleEntry).filter(ScheduleEntry.event_id == event.id).all())


class TestSingleEntry:

    def test_upsert_creates_once(self, synchronizer, sample_event, test_db_session):
        event = sample_event()

        first = synchronizer.upsert_entry(event, "user-a")
        second = synchronizer.upsert_entry(event, "user-a")
        test_db_session.commit()

        assert first.id == second.id
        assert test_db_session.query(ScheduleEntry).count() == 1
        assert first.entry_date == date(2024, 6, 10)
        assert first.start_time == time(10, 0)
        assert first.end_time == time(12, 0)

    def test_upsert_recovers_from_concurrent_insert(self, synchronizer, sample_event, test_db_session, mocker):
        event = sample_event()
        existing = synchronizer.upsert_entry(event, "user-a")
        test_db_session.commit()

        # The first lookup misses a row inserted by a concurrent writer
        mocker.patch.object(synchronizer, "get_entry", side_effect=[None, existing])

        entry = synchronizer.upsert_entry(event, "user-a")

        assert entry.id == existing.id
        assert test_db_session.query(ScheduleEntry).count() == 1

    def test_remove_entry(self, synchronizer, sample_event):
        event = sample_event()
        synchronizer.upsert_entry(event, "user-a")

        assert synchronizer.remove_entry(event.id, "user-a") is True
        assert synchronizer.remove_entry(event.id, "user-a") is False

    def test_remove_event_entries(self, synchronizer, sample_event):
        event = sample_event()
        synchronizer.upsert_entry(event, "user-a")
        synchronizer.upsert_entry(event, "user-b")

        assert synchronizer.remove_event_entries(event.id) == 2


class TestResync:

    def test_resync_follows_new_window(self, synchronizer, approved_event, test_db_session):
        approved_event.event_date = date(2024, 6, 11)
        approved_event.start_time = time(14, 0)
        approved_event.end_time = time(15, 30)
        test_db_session.flush()

        report = synchronizer.resync_event(approved_event)
        test_db_session.commit()

        assert report.complete
        assert sorted(report.succeeded) == ["user-a", "user-b", "user-c"]
        entries = test_db_session.query(ScheduleEntry).all()
        assert len(entries) == 3
        assert {(e.entry_date, e.start_time, e.end_time) for e in entries} == {
            (date(2024, 6, 11), time(14, 0), time(15, 30))
        }

    def test_resync_removes_orphaned_entries(self, synchronizer, approved_event, test_db_session):
        synchronizer.upsert_entry(approved_event, "user-d")  # still PENDING
        test_db_session.commit()

        report = synchronizer.resync_event(approved_event)

        assert "user-d" in report.succeeded
        assert entry_users(test_db_session, approved_event) == ["user-a", "user-b", "user-c"]


class TestPartialFailure:

    def test_failed_user_is_reported_and_others_kept(
        self, event_service, synchronizer, approved_event, test_db_session, mocker
    ):
        original = synchronizer.upsert_entry

        def flaky_upsert(event, user_id):
            if user_id == "user-b":
                raise OperationalError("UPDATE schedule_entries", {}, Exception("disk I/O error"))
            return original(event, user_id)

        mocker.patch.object(synchronizer, "upsert_entry", side_effect=flaky_upsert)

        updated, report = event_service.update(
            approved_event.guid, Actor.of("user-creator"), event_date=date(2024, 6, 11)
        )

        assert not report.complete
        assert report.failed_user_ids == ["user-b"]
        assert sorted(report.succeeded) == ["user-a", "user-c"]

        dates = {
            e.user_id: e.entry_date
            for e in test_db_session.query(ScheduleEntry).all()
        }
        assert dates == {
            "user-a": date(2024, 6, 11),
            "user-b": date(2024, 6, 10),
            "user-c": date(2024, 6, 11),
        }

        # Retrying the failed subset completes the re-derivation
        mocker.stopall()
        retry = event_service.sync_schedule(approved_event.guid, Actor.of("user-creator"), report.failed_user_ids)

        assert retry.complete
        assert retry.succeeded == ["user-b"]
        assert {e.entry_date for e in test_db_session.query(ScheduleEntry).all()} == {date(2024, 6, 11)}

    def test_user_may_retry_own_entry(self, event_service, approved_event):
        report = event_service.sync_schedule(approved_event.guid, Actor.of("user-a"), ["user-a"])
        assert report.succeeded == ["user-a"]

    def test_report_serialization(self):
        report = SyncReport(event_guid="evt_x", succeeded=["user-a"], failed={"user-c": "boom", "user-b": "bang"})

        data = report.to_dict()

        assert data["complete"] is False
        assert [f["user_id"] for f in data["failed"]] == ["user-b", "user-c"]


class TestListEntries:

    def test_list_entries_by_range(self, synchronizer, sample_event, test_db_session):
        june = sample_event(name="June", event_date=date(2024, 6, 10))
        july = sample_event(name="July", event_date=date(2024, 7, 10))
        synchronizer.upsert_entry(july, "user-a")
        synchronizer.upsert_entry(june, "user-a")
        synchronizer.upsert_entry(june, "user-b")
        test_db_session.commit()

        assert [e.title for e in synchronizer.list_entries("user-a")] == ["June", "July"]
        assert [e.title for e in synchronizer.list_entries("user-a", end_date=date(2024, 6, 30))] == ["June"]
