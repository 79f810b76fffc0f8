"""
vrai/api/support.py — Support messages and problem reports.

Users open tickets; admins list them (optionally by status) and reply once.
"""

from fastapi import APIRouter, Depends, Query, status

from vrai.context import AppContext
from vrai.dependencies import get_context, get_current_user, require_admin
from vrai.models.profile import CurrentUser
from vrai.models.support import (
    ProblemReportCreate,
    ProblemReportRead,
    ReplyBody,
    SupportMessageCreate,
    SupportMessageRead,
)
from vrai.services import support_service

router = APIRouter(tags=["support"])


# ── User side ────────────────────────────────────────────────────────────

@router.post(
    "/api/support-messages",
    response_model=SupportMessageRead,
    status_code=status.HTTP_201_CREATED,
    summary="Send a support message",
)
async def create_support_message(
    body: SupportMessageCreate,
    user: CurrentUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
):
    return await support_service.create_support_message(context.remote, body, user)


@router.post(
    "/api/problem-reports",
    response_model=ProblemReportRead,
    status_code=status.HTTP_201_CREATED,
    summary="Report a problem",
)
async def create_problem_report(
    body: ProblemReportCreate,
    user: CurrentUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
):
    return await support_service.create_problem_report(context.remote, body, user)


# ── Admin side ───────────────────────────────────────────────────────────

@router.get(
    "/api/admin/support-messages",
    response_model=list[SupportMessageRead],
    summary="Support messages, newest first",
)
async def list_support_messages(
    status_filter: str = Query("all", alias="status"),
    _admin: CurrentUser = Depends(require_admin),
    context: AppContext = Depends(get_context),
):
    wanted = support_service.parse_status_filter(status_filter)
    return await support_service.list_support_messages(context.remote, wanted)


@router.post(
    "/api/admin/support-messages/{message_id}/reply",
    response_model=SupportMessageRead,
    summary="Answer a support message",
)
async def reply_to_support_message(
    message_id: str,
    body: ReplyBody,
    _admin: CurrentUser = Depends(require_admin),
    context: AppContext = Depends(get_context),
):
    return await support_service.reply_to_support_message(context.remote, message_id, body.reply)


@router.get(
    "/api/admin/problem-reports",
    response_model=list[ProblemReportRead],
    summary="Problem reports, newest first",
)
async def list_problem_reports(
    status_filter: str = Query("all", alias="status"),
    _admin: CurrentUser = Depends(require_admin),
    context: AppContext = Depends(get_context),
):
    wanted = support_service.parse_status_filter(status_filter)
    return await support_service.list_problem_reports(context.remote, wanted)


@router.post(
    "/api/admin/problem-reports/{report_id}/reply",
    response_model=ProblemReportRead,
    summary="Answer a problem report",
)
async def reply_to_problem_report(
    report_id: str,
    body: ReplyBody,
    _admin: CurrentUser = Depends(require_admin),
    context: AppContext = Depends(get_context),
):
    return await support_service.reply_to_problem_report(context.remote, report_id, body.reply)
