"""
Unit tests for the approval workflow engine.

Tests the transition table, the pure transition function and the
capability predicate shared by invitations and task requests.
"""

import pytest

from backend.src.config.settings import AppSettings
from backend.src.models import ApprovalStatus, Event, Participation, TaskRequest
from backend.src.services.approval_workflow import (
    TRANSITIONS,
    Action,
    Actor,
    is_permitted,
    require,
    transition,
)
from backend.src.services.exceptions import (
    ForbiddenError,
    InvalidStateError,
    ValidationError,
)


@pytest.fixture
def settings():
    return AppSettings()


@pytest.fixture
def invitee():
    return Actor.of("user-a")


class TestTransitionTable:

    def test_pending_is_only_non_terminal_state(self):
        assert TRANSITIONS[ApprovalStatus.PENDING] == {
            ApprovalStatus.APPROVED,
            ApprovalStatus.REJECTED,
        }
        assert TRANSITIONS[ApprovalStatus.APPROVED] == frozenset()
        assert TRANSITIONS[ApprovalStatus.REJECTED] == frozenset()


class TestTransition:

    @pytest.mark.parametrize("decision", ["APPROVED", "REJECTED"])
    def test_pending_to_terminal(self, invitee, decision):
        result = transition("PENDING", decision, invitee, True)

        assert result.from_status is ApprovalStatus.PENDING
        assert result.to_status is ApprovalStatus(decision)
        assert result.actor_id == "user-a"

    def test_note_is_stripped_and_kept(self, invitee):
        result = transition(ApprovalStatus.PENDING, ApprovalStatus.REJECTED, invitee, True, note="  busy  ")
        assert result.note == "busy"

    def test_blank_note_becomes_none(self, invitee):
        result = transition("PENDING", "APPROVED", invitee, True, note="   ")
        assert result.note is None

    @pytest.mark.parametrize("current", ["APPROVED", "REJECTED"])
    @pytest.mark.parametrize("decision", ["APPROVED", "REJECTED"])
    def test_terminal_states_are_final(self, invitee, current, decision):
        with pytest.raises(InvalidStateError) as exc_info:
            transition(current, decision, invitee, True)

        assert exc_info.value.current == current

    def test_unauthorized_responder_is_forbidden(self, invitee):
        with pytest.raises(ForbiddenError):
            transition("PENDING", "APPROVED", invitee, False)

    def test_pending_decision_is_invalid(self, invitee):
        with pytest.raises(ValidationError) as exc_info:
            transition("PENDING", "PENDING", invitee, True)

        assert exc_info.value.field == "decision"

    def test_note_on_non_terminal_decision_is_invalid(self, invitee):
        with pytest.raises(ValidationError) as exc_info:
            transition("PENDING", "PENDING", invitee, True, note="later")

        assert exc_info.value.field == "note"

    def test_unknown_decision_is_invalid(self, invitee):
        with pytest.raises(ValidationError):
            transition("PENDING", "MAYBE", invitee, True)


class TestIsPermitted:

    def test_respond_only_by_invited_user(self, settings):
        participation = Participation(user_id="user-a")

        assert is_permitted(Actor.of("user-a"), participation, Action.RESPOND, settings)
        assert not is_permitted(Actor.of("user-b", ["MASTER"]), participation, Action.RESPOND, settings)

    def test_respond_task_request_only_by_requestee(self, settings):
        request = TaskRequest(requested_by="staff-1", requested_to="user-a")

        assert is_permitted(Actor.of("user-a"), request, Action.RESPOND, settings)
        assert not is_permitted(Actor.of("staff-1", ["SUPPORT"]), request, Action.RESPOND, settings)

    def test_manage_event_by_creator_or_manager_role(self, settings):
        event = Event(created_by="user-creator")

        assert is_permitted(Actor.of("user-creator"), event, Action.MANAGE_EVENT, settings)
        assert is_permitted(Actor.of("gov-1", ["government"]), event, Action.MANAGE_EVENT, settings)
        assert not is_permitted(Actor.of("user-b"), event, Action.MANAGE_EVENT, settings)

    def test_self_service(self, settings):
        assert is_permitted(Actor.of("user-a"), "user-a", Action.SELF_SERVICE, settings)
        assert not is_permitted(Actor.of("user-a"), "user-b", Action.SELF_SERVICE, settings)

    def test_view_summary_of_others_needs_manager_role(self, settings):
        assert is_permitted(Actor.of("user-a"), "user-a", Action.VIEW_SUMMARY, settings)
        assert is_permitted(Actor.of("staff-1", ["SUPPORT"]), "user-a", Action.VIEW_SUMMARY, settings)
        assert not is_permitted(Actor.of("user-b"), "user-a", Action.VIEW_SUMMARY, settings)

    def test_task_request_roles(self, settings):
        request = TaskRequest(requested_by="staff-1", requested_to="user-a")

        assert is_permitted(Actor.of("staff-1", ["SUPPORT"]), None, Action.CREATE_TASK_REQUEST, settings)
        assert not is_permitted(Actor.of("user-a"), None, Action.CREATE_TASK_REQUEST, settings)
        assert is_permitted(Actor.of("staff-1"), request, Action.DELETE_TASK_REQUEST, settings)
        assert is_permitted(Actor.of("admin", ["MASTER"]), request, Action.DELETE_TASK_REQUEST, settings)
        assert not is_permitted(Actor.of("user-a"), request, Action.DELETE_TASK_REQUEST, settings)

    def test_roles_come_from_settings(self, monkeypatch):
        monkeypatch.setenv("COLLABCAL_EVENT_MANAGER_ROLES", "COORDINATOR")
        settings = AppSettings()
        event = Event(created_by="user-creator")

        assert is_permitted(Actor.of("c-1", ["COORDINATOR"]), event, Action.MANAGE_EVENT, settings)
        assert not is_permitted(Actor.of("s-1", ["SUPPORT"]), event, Action.MANAGE_EVENT, settings)

    def test_require_raises_forbidden(self, settings):
        with pytest.raises(ForbiddenError) as exc_info:
            require(Actor.of("user-b"), Event(created_by="user-a"), Action.MANAGE_EVENT, "nope", settings)

        assert exc_info.value.actor == "user-b"


class TestActor:

    def test_roles_are_normalized(self):
        actor = Actor.of("user-a", [" support ", "", "Master"])
        assert actor.roles == frozenset({"SUPPORT", "MASTER"})

    def test_user_id_required(self):
        with pytest.raises(ValueError):
            Actor.of("")
