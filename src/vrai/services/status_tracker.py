"""
vrai/services/status_tracker.py — Lifecycle of requests and tickets.

Authentication requests:

    Pending Review ──► Action Required ──► Pending Review
          │
          └──► Authenticated | Rejected          (terminal)

Support messages / problem reports:

    pending ──► resolved                         (terminal)

A missing status (None or empty) is read as the initial state everywhere;
``parse_status`` / ``parse_ticket_status`` are the only places that know it.
"""

from __future__ import annotations

import logging

from vrai.exceptions import ConflictError
from vrai.models.dashboard import StatusView
from vrai.models.enums import RequestStatus, TicketStatus

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Canonicalisation
# ═══════════════════════════════════════════════════════════════════════════════

def parse_status(value: str | RequestStatus | None) -> RequestStatus | None:
    """
    Maps a stored request status onto the enumeration.

    None/empty → PENDING_REVIEW; an unrecognised value → None (unknown).
    """
    if isinstance(value, RequestStatus):
        return value
    if not value:
        return RequestStatus.PENDING_REVIEW
    try:
        return RequestStatus(value)
    except ValueError:
        return None


def parse_ticket_status(value: str | TicketStatus | None) -> TicketStatus | None:
    """Same as ``parse_status`` for tickets; matching is case-insensitive."""
    if isinstance(value, TicketStatus):
        return value
    if not value:
        return TicketStatus.PENDING
    try:
        return TicketStatus(value.lower())
    except ValueError:
        return None


# ═══════════════════════════════════════════════════════════════════════════════
# Transitions
# ═══════════════════════════════════════════════════════════════════════════════

REQUEST_TRANSITIONS: dict[RequestStatus, frozenset[RequestStatus]] = {
    RequestStatus.PENDING_REVIEW: frozenset({
        RequestStatus.ACTION_REQUIRED,
        RequestStatus.AUTHENTICATED,
        RequestStatus.REJECTED,
    }),
    RequestStatus.ACTION_REQUIRED: frozenset({RequestStatus.PENDING_REVIEW}),
    RequestStatus.AUTHENTICATED: frozenset(),
    RequestStatus.REJECTED: frozenset(),
}

TICKET_TRANSITIONS: dict[TicketStatus, frozenset[TicketStatus]] = {
    TicketStatus.PENDING: frozenset({TicketStatus.RESOLVED}),
    TicketStatus.RESOLVED: frozenset(),
}

TERMINAL_STATUSES = frozenset({RequestStatus.AUTHENTICATED, RequestStatus.REJECTED})

IN_PROGRESS_STATUSES = frozenset({RequestStatus.PENDING_REVIEW, RequestStatus.ACTION_REQUIRED})

PROCESSED_STATUSES = frozenset({
    RequestStatus.AUTHENTICATED,
    RequestStatus.REJECTED,
    RequestStatus.ACTION_REQUIRED,
})


def can_transition(current: str | RequestStatus | None, target: RequestStatus) -> bool:
    state = parse_status(current)
    if state is None:
        return False
    return target in REQUEST_TRANSITIONS[state]


def ensure_transition(
    current: str | RequestStatus | None,
    target: RequestStatus,
    *,
    request_id: str | None = None,
) -> RequestStatus:
    """Returns ``target`` if the move is legal, raises ConflictError otherwise."""
    if not can_transition(current, target):
        shown = current if current else RequestStatus.PENDING_REVIEW.value
        if isinstance(shown, RequestStatus):
            shown = shown.value
        logger.warning(
            "Rejected status transition %s -> %s (request %s)", shown, target.value, request_id
        )
        raise ConflictError(
            f"Cannot change status from '{shown}' to '{target.value}'",
            details={"id": request_id, "from": shown, "to": target.value},
        )
    return target


def ensure_ticket_transition(
    current: str | TicketStatus | None,
    target: TicketStatus,
    *,
    ticket_id: str | None = None,
) -> TicketStatus:
    state = parse_ticket_status(current)
    if state is None or target not in TICKET_TRANSITIONS[state]:
        raise ConflictError(
            "This ticket has already been answered"
            if state is TicketStatus.RESOLVED
            else f"Cannot change ticket status from '{current}' to '{target.value}'",
            details={"id": ticket_id, "from": current, "to": target.value},
        )
    return target


# ═══════════════════════════════════════════════════════════════════════════════
# Derived view
# ═══════════════════════════════════════════════════════════════════════════════

_REQUEST_VIEWS: dict[RequestStatus | None, tuple[str, str, str, str, str]] = {
    # status: (label, text template, dot color, icon, icon background)
    RequestStatus.PENDING_REVIEW: (
        "Pending Review", "Submitted {model}", "bg-yellow-500", "pending", "bg-primary-500/10",
    ),
    RequestStatus.AUTHENTICATED: (
        "Authenticated", "Authenticated {model}", "bg-green-500", "authenticated", "bg-[#FFF4DC]",
    ),
    RequestStatus.REJECTED: (
        "Rejected", "Rejected {model}", "bg-red-500", "rejected", "bg-red-100",
    ),
    RequestStatus.ACTION_REQUIRED: (
        "Action Required", "Action required for {model}", "bg-blue-500", "action-required", "bg-orange-100",
    ),
    None: (
        "Unknown", "Updated {model}", "bg-gray-500", "unknown", "bg-gray-100",
    ),
}

_TICKET_BADGES: dict[TicketStatus | None, tuple[str, str]] = {
    TicketStatus.PENDING: ("pending", "bg-blue-100 text-blue-800"),
    TicketStatus.RESOLVED: ("resolved", "bg-green-100 text-green-800"),
    None: ("unknown", "bg-gray-100 text-gray-800"),
}


def status_view(status: str | RequestStatus | None, model_name: str | None = None) -> StatusView:
    """Display tokens for a request status; unknown values get a neutral view."""
    label, template, color, icon, background = _REQUEST_VIEWS[parse_status(status)]
    return StatusView(
        label=label,
        text=template.format(model=model_name or "Unknown Model"),
        color=color,
        icon=icon,
        icon_background=background,
    )


def ticket_badge(status: str | TicketStatus | None) -> tuple[str, str]:
    """(label, badge classes) for a ticket status."""
    return _TICKET_BADGES[parse_ticket_status(status)]
