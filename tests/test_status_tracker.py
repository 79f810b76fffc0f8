import pytest

from vrai.exceptions import ConflictError
from vrai.models.enums import RequestStatus, TicketStatus
from vrai.services import status_tracker


@pytest.mark.parametrize("raw", [None, "", "Pending Review"])
def test_missing_status_reads_as_pending_review(raw):
    assert status_tracker.parse_status(raw) is RequestStatus.PENDING_REVIEW


def test_unknown_status_is_none():
    assert status_tracker.parse_status("Archived") is None


def test_ticket_status_is_case_insensitive():
    assert status_tracker.parse_ticket_status(None) is TicketStatus.PENDING
    assert status_tracker.parse_ticket_status("Resolved") is TicketStatus.RESOLVED
    assert status_tracker.parse_ticket_status("closed") is None


@pytest.mark.parametrize(
    "current, target",
    [
        (None, RequestStatus.ACTION_REQUIRED),
        ("Pending Review", RequestStatus.AUTHENTICATED),
        ("Pending Review", RequestStatus.REJECTED),
        ("Action Required", RequestStatus.PENDING_REVIEW),
    ],
)
def test_legal_transitions(current, target):
    assert status_tracker.can_transition(current, target)
    assert status_tracker.ensure_transition(current, target) is target


@pytest.mark.parametrize(
    "current, target",
    [
        ("Authenticated", RequestStatus.REJECTED),
        ("Rejected", RequestStatus.PENDING_REVIEW),
        ("Action Required", RequestStatus.AUTHENTICATED),
        ("Pending Review", RequestStatus.PENDING_REVIEW),
        ("Archived", RequestStatus.PENDING_REVIEW),
    ],
)
def test_illegal_transitions_raise_conflict(current, target):
    assert not status_tracker.can_transition(current, target)
    with pytest.raises(ConflictError) as exc_info:
        status_tracker.ensure_transition(current, target, request_id="r1")
    assert exc_info.value.details["id"] == "r1"
    assert exc_info.value.details["to"] == target.value


def test_terminal_states_have_no_exits():
    for state in status_tracker.TERMINAL_STATUSES:
        assert status_tracker.REQUEST_TRANSITIONS[state] == frozenset()


def test_ticket_can_be_answered_only_once():
    assert status_tracker.ensure_ticket_transition(None, TicketStatus.RESOLVED) is TicketStatus.RESOLVED
    with pytest.raises(ConflictError, match="already been answered"):
        status_tracker.ensure_ticket_transition("resolved", TicketStatus.RESOLVED, ticket_id="t1")


def test_status_view_tokens():
    view = status_tracker.status_view("Authenticated", "Birkin 30")
    assert view.text == "Authenticated Birkin 30"
    assert view.color == "bg-green-500"
    assert view.icon_background == "bg-[#FFF4DC]"

    pending = status_tracker.status_view(None, None)
    assert pending.text == "Submitted Unknown Model"
    assert pending.color == "bg-yellow-500"

    assert status_tracker.status_view("Action Required", "Kelly").text == "Action required for Kelly"


def test_status_view_has_unknown_branch():
    view = status_tracker.status_view("Something New", "Kelly")
    assert view.label == "Unknown"
    assert view.text == "Updated Kelly"
    assert view.color == "bg-gray-500"


def test_ticket_badges():
    assert status_tracker.ticket_badge(None)[0] == "pending"
    assert status_tracker.ticket_badge("resolved") == ("resolved", "bg-green-100 text-green-800")
    assert status_tracker.ticket_badge("spam")[0] == "unknown"
