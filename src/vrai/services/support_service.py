"""
vrai/services/support_service.py — Support messages and problem reports.

Users open tickets in ``pending``; an admin answers exactly once, which moves
the ticket to ``resolved``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from vrai.db.repositories import profile_repo, support_repo
from vrai.exceptions import NotFoundError, ValidationError
from vrai.models.enums import TicketStatus
from vrai.models.profile import CurrentUser
from vrai.models.support import (
    ProblemReportCreate,
    ProblemReportRead,
    SupportMessageCreate,
    SupportMessageRead,
)
from vrai.services import status_tracker

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Unknown User"


def _matches_filter(status: str | None, wanted: TicketStatus | None) -> bool:
    return wanted is None or status_tracker.parse_ticket_status(status) is wanted


def parse_status_filter(value: str | None) -> TicketStatus | None:
    """"all"/empty → no filter; otherwise a ticket status."""
    if not value or value.lower() == "all":
        return None
    status = status_tracker.parse_ticket_status(value)
    if status is None:
        raise ValidationError(
            f"Unknown status filter: {value}", details={"allowed": ["all", "pending", "resolved"]}
        )
    return status


def _require_reply(reply: str) -> str:
    text = (reply or "").strip()
    if not text:
        raise ValidationError("Reply cannot be empty", details={"field": "reply"})
    return text


# ═══════════════════════════════════════════════════════════════════════════
# SUPPORT MESSAGES
# ═══════════════════════════════════════════════════════════════════════════


def _to_support_message(row: dict, email: str | None) -> SupportMessageRead:
    data = dict(row)
    data["user_email"] = email or data.get("user_email") or UNKNOWN_USER
    data["badge"], data["badge_class"] = status_tracker.ticket_badge(data.get("status"))
    return SupportMessageRead.model_validate(data)


async def create_support_message(remote, body: SupportMessageCreate, user: CurrentUser) -> SupportMessageRead:
    row = await support_repo.create_support_message(
        remote,
        {
            "user_id": user.id,
            "message": body.message,
            "status": TicketStatus.PENDING.value,
            "reply": None,
        },
    )
    logger.info("Support message %s opened by user %s", row.get("id"), user.id)
    return _to_support_message(row, user.email)


async def list_support_messages(remote, status: TicketStatus | None = None) -> list[SupportMessageRead]:
    """Messages newest first, with the sender's e-mail joined from profiles."""
    rows = [
        r for r in await support_repo.list_support_messages(remote)
        if _matches_filter(r.get("status"), status)
    ]
    user_ids = sorted({r["user_id"] for r in rows if r.get("user_id")})
    profiles = await profile_repo.get_profiles_by_ids(remote, user_ids)
    emails = {p["id"]: p.get("email") for p in profiles}
    return [_to_support_message(r, emails.get(r.get("user_id"))) for r in rows]


async def reply_to_support_message(remote, message_id: str, reply: str) -> SupportMessageRead:
    text = _require_reply(reply)
    current = await support_repo.get_support_message(remote, message_id)
    if not current:
        raise NotFoundError("Support message", message_id)
    status_tracker.ensure_ticket_transition(
        current.get("status"), TicketStatus.RESOLVED, ticket_id=message_id
    )

    row = await support_repo.update_support_message(
        remote,
        message_id,
        {
            "reply": text,
            "status": TicketStatus.RESOLVED.value,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        },
    )
    if not row:
        raise NotFoundError("Support message", message_id)
    logger.info("Support message %s resolved", message_id)
    profile = await profile_repo.get_profile(remote, row["user_id"]) if row.get("user_id") else None
    return _to_support_message(row, (profile or {}).get("email"))


# ═══════════════════════════════════════════════════════════════════════════
# PROBLEM REPORTS
# ═══════════════════════════════════════════════════════════════════════════


def _to_problem_report(row: dict) -> ProblemReportRead:
    data = dict(row)
    data["file_urls"] = data.get("file_urls") or []
    data["badge"], data["badge_class"] = status_tracker.ticket_badge(data.get("status"))
    return ProblemReportRead.model_validate(data)


async def create_problem_report(remote, body: ProblemReportCreate, user: CurrentUser) -> ProblemReportRead:
    row = await support_repo.create_problem_report(
        remote,
        {
            "user_id": user.id,
            "email": user.email,
            "description": body.description,
            "file_urls": body.file_urls,
            "status": TicketStatus.PENDING.value,
            "admin_reply": None,
            "reply_time": None,
        },
    )
    logger.info("Problem report %s opened by user %s", row.get("id"), user.id)
    return _to_problem_report(row)


async def list_problem_reports(remote, status: TicketStatus | None = None) -> list[ProblemReportRead]:
    rows = await support_repo.list_problem_reports(remote)
    return [_to_problem_report(r) for r in rows if _matches_filter(r.get("status"), status)]


async def reply_to_problem_report(remote, report_id: str, reply: str) -> ProblemReportRead:
    text = _require_reply(reply)
    current = await support_repo.get_problem_report(remote, report_id)
    if not current:
        raise NotFoundError("Problem report", report_id)
    status_tracker.ensure_ticket_transition(
        current.get("status"), TicketStatus.RESOLVED, ticket_id=report_id
    )

    row = await support_repo.update_problem_report(
        remote,
        report_id,
        {
            "admin_reply": text,
            "reply_time": datetime.now(timezone.utc).isoformat(),
            "status": TicketStatus.RESOLVED.value,
        },
    )
    if not row:
        raise NotFoundError("Problem report", report_id)
    logger.info("Problem report %s resolved", report_id)
    return _to_problem_report(row)
