"""
Unit tests for EventService.

Tests CRUD operations, validation, permissions, and the schedule
re-derivation triggered by updates.
"""

from datetime import date, time

import pytest

from backend.src.models import Event, Participation, ScheduleEntry
from backend.src.services.approval_workflow import Actor
from backend.src.services.exceptions import ForbiddenError, NotFoundError, ValidationError


class TestEventServiceCreate:

    def test_create_event(self, event_service, creator):
        event = event_service.create(
            actor=creator,
            name="  Town Meeting ",
            event_type="official",
            event_date=date(2024, 6, 10),
            start_time=time(10, 0),
            end_time=time(12, 0),
            location_text="Community Hall",
        )

        assert event.guid.startswith("evt_")
        assert event.name == "Town Meeting"
        assert event.event_type == "OFFICIAL"
        assert event.created_by == creator.user_id
        assert event.updated_by == creator.user_id
        assert event.display_location == "Community Hall"

    def test_create_without_times(self, event_service, creator):
        event = event_service.create(
            actor=creator, name="Cleanup", event_type="TEAM", event_date=date(2024, 6, 1)
        )
        assert event.start_time is None
        assert event.end_time is None

    @pytest.mark.parametrize("start,end", [(time(12, 0), time(10, 0)), (time(10, 0), time(10, 0))])
    def test_end_must_follow_start(self, event_service, creator, test_db_session, start, end):
        with pytest.raises(ValidationError) as exc_info:
            event_service.create(
                actor=creator, name="Bad", event_type="TEAM",
                event_date=date(2024, 6, 1), start_time=start, end_time=end,
            )

        assert exc_info.value.field == "end_time"
        assert test_db_session.query(Event).count() == 0

    @pytest.mark.parametrize("field,kwargs", [
        ("name", {"name": "   "}),
        ("event_type", {"event_type": "PARTY"}),
        ("event_date", {"event_date": None}),
        ("capacity", {"capacity": 0}),
    ])
    def test_invalid_fields(self, event_service, creator, field, kwargs):
        values = {"name": "Meeting", "event_type": "TEAM", "event_date": date(2024, 6, 1)}
        values.update(kwargs)

        with pytest.raises(ValidationError) as exc_info:
            event_service.create(actor=creator, **values)

        assert exc_info.value.field == field


class TestEventServiceRead:

    def test_get_by_guid(self, event_service, sample_event):
        event = sample_event()
        assert event_service.get_by_guid(event.guid).id == event.id

    @pytest.mark.parametrize("guid", ["evt_00000000000000000000000000", "garbage", "par_00000000000000000000000000"])
    def test_get_by_guid_not_found(self, event_service, guid):
        with pytest.raises(NotFoundError):
            event_service.get_by_guid(guid)

    def test_list_filters_and_order(self, event_service, sample_event):
        sample_event(name="Old", event_date=date(2024, 5, 1), event_type="TEAM")
        sample_event(name="Mid", event_date=date(2024, 6, 10))
        sample_event(name="New", event_date=date(2024, 7, 1))

        assert [e.name for e in event_service.list()] == ["New", "Mid", "Old"]
        assert [e.name for e in event_service.list(event_type="OFFICIAL")] == ["New", "Mid"]
        assert [e.name for e in event_service.list(start_date=date(2024, 6, 1), end_date=date(2024, 6, 30))] == ["Mid"]
        assert [e.name for e in event_service.list(upcoming=True, today=date(2024, 6, 10))] == ["New", "Mid"]


class TestEventServiceUpdate:

    def test_update_records_updater_and_keeps_creator(self, event_service, sample_event, manager):
        event = sample_event()

        updated, report = event_service.update(event.guid, manager, description="Bring badges")

        assert updated.description == "Bring badges"
        assert updated.created_by == "user-creator"
        assert updated.updated_by == manager.user_id
        assert report is None

    def test_update_forbidden_for_other_members(self, event_service, sample_event):
        event = sample_event()

        with pytest.raises(ForbiddenError):
            event_service.update(event.guid, Actor.of("user-b"), name="Hijacked")

    def test_update_validates_merged_window(self, event_service, sample_event, creator):
        event = sample_event(start_time=time(10, 0), end_time=time(12, 0))

        with pytest.raises(ValidationError) as exc_info:
            event_service.update(event.guid, creator, start_time=time(13, 0))

        assert exc_info.value.field == "end_time"
        assert event_service.get_by_guid(event.guid).start_time == time(10, 0)

    def test_update_cannot_clear_required_field(self, event_service, sample_event, creator):
        event = sample_event()

        with pytest.raises(ValidationError) as exc_info:
            event_service.update(event.guid, creator, event_date=None)

        assert exc_info.value.field == "event_date"

    def test_update_rejects_unknown_field(self, event_service, sample_event, creator):
        event = sample_event()

        with pytest.raises(ValidationError) as exc_info:
            event_service.update(event.guid, creator, created_by="someone-else")

        assert exc_info.value.field == "created_by"

    def test_moving_event_moves_entries(
        self, event_service, participation_service, sample_event, creator, test_db_session
    ):
        event = sample_event()
        participation_service.invite(event.guid, [creator.user_id], "PARTICIPATION", creator)

        updated, report = event_service.update(
            event.guid, creator, event_date=date(2024, 6, 11), location_text="Library"
        )

        assert report.complete
        assert report.succeeded == [creator.user_id]
        entries = test_db_session.query(ScheduleEntry).all()
        assert len(entries) == 1
        assert entries[0].entry_date == date(2024, 6, 11)
        assert entries[0].location_text == "Library"

    def test_unchanged_values_do_not_resync(self, event_service, sample_event, creator):
        event = sample_event()

        _, report = event_service.update(event.guid, creator, name="Town Meeting")

        assert report is None


class TestEventServiceDelete:

    def test_delete_cascades(self, event_service, participation_service, sample_event, creator, test_db_session):
        event = sample_event()
        other = sample_event(name="Other")
        participation_service.invite(event.guid, [creator.user_id, "user-a"], "PARTICIPATION", creator)
        participation_service.invite(other.guid, [creator.user_id], "PARTICIPATION", creator)

        event_service.delete(event.guid, creator)

        assert test_db_session.query(Event).count() == 1
        assert {p.event_id for p in test_db_session.query(Participation).all()} == {other.id}
        assert {e.event_id for e in test_db_session.query(ScheduleEntry).all()} == {other.id}

    def test_delete_forbidden(self, event_service, sample_event):
        event = sample_event()

        with pytest.raises(ForbiddenError):
            event_service.delete(event.guid, Actor.of("user-b"))

    def test_delete_missing(self, event_service, creator):
        with pytest.raises(NotFoundError):
            event_service.delete("evt_00000000000000000000000000", creator)


class TestEventResponses:

    def test_build_event_detail_response(self, event_service, participation_service, sample_event, creator):
        event = sample_event()
        participation_service.invite(event.guid, [creator.user_id, "user-a"], "PARTICIPATION", creator)
        event = event_service.get_by_guid(event.guid)

        response = event_service.build_event_detail_response(event)

        assert response["guid"] == event.guid
        assert response["participant_count"] == 2
        assert response["approved_count"] == 1
        assert response["audit"]["created_by"] == creator.user_id
        assert [p["user_id"] for p in response["participations"]] == [creator.user_id, "user-a"]
