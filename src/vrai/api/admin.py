"""
vrai/api/admin.py — Admin review endpoints (bearer token + ``is_admin``).

Request listing, status changes, report upload/generation and the dashboard.
"""

from fastapi import APIRouter, Depends, File, Form, UploadFile

from vrai.api.files import read_upload
from vrai.context import AppContext
from vrai.dependencies import get_context, require_admin
from vrai.models.dashboard import DashboardView
from vrai.models.profile import CurrentUser
from vrai.models.request import AdminRequestList, AuthenticationRequestRead, StatusUpdate
from vrai.services import dashboard, report_service, request_service
from vrai.validators import validate_pdf

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get(
    "/authentication-requests",
    response_model=AdminRequestList,
    summary="All authentication requests, most recently updated first",
)
async def list_authentication_requests(
    _admin: CurrentUser = Depends(require_admin),
    context: AppContext = Depends(get_context),
):
    requests = await request_service.list_all_requests(context.remote)
    return AdminRequestList(data=requests, count=len(requests))


@router.patch(
    "/authentication-requests/{request_id}/status",
    response_model=AuthenticationRequestRead,
    summary="Change the status of a request",
)
async def update_request_status(
    request_id: str,
    body: StatusUpdate,
    _admin: CurrentUser = Depends(require_admin),
    context: AppContext = Depends(get_context),
):
    return await request_service.change_status(
        context.remote, request_id, body.status, admin_notes=body.admin_notes
    )


@router.post("/upload-pdf", summary="Upload the PDF report of a request")
async def upload_pdf(
    pdfFile: UploadFile = File(...),  # noqa: N803
    submissionId: str = Form(...),  # noqa: N803
    _admin: CurrentUser = Depends(require_admin),
    context: AppContext = Depends(get_context),
):
    """Stores the report, links it and marks the request "Authenticated"."""
    payload = validate_pdf(await read_upload(pdfFile), context.settings.max_file_size)
    request = await report_service.upload_pdf(
        context.remote, submissionId, payload, bucket=context.settings.reports_bucket
    )
    return {
        "success": True,
        "message": "PDF uploaded successfully",
        "url": request.report_url,
        "request": request,
    }


@router.post(
    "/authentication-requests/{request_id}/report",
    response_model=AuthenticationRequestRead,
    summary="Generate the PDF report with the report function",
)
async def generate_report(
    request_id: str,
    _admin: CurrentUser = Depends(require_admin),
    context: AppContext = Depends(get_context),
):
    settings = context.settings
    return await report_service.generate_report(
        context.remote,
        request_id,
        function_name=settings.report_function_name,
        timeout=settings.report_timeout_seconds,
    )


@router.get("/dashboard", response_model=DashboardView, summary="Statistics and recent activity")
async def get_dashboard(
    _admin: CurrentUser = Depends(require_admin),
    context: AppContext = Depends(get_context),
):
    settings = context.settings
    return await dashboard.load_dashboard(
        context.remote,
        tz=dashboard.resolve_timezone(settings.dashboard_timezone),
        activity_limit=settings.recent_activity_limit,
    )


@router.post("/dashboard/daily-stats", summary="Store today's dashboard snapshot")
async def generate_daily_stats(
    _admin: CurrentUser = Depends(require_admin),
    context: AppContext = Depends(get_context),
):
    row = await dashboard.generate_daily_stats(
        context.remote, tz=dashboard.resolve_timezone(context.settings.dashboard_timezone)
    )
    return {"success": True, "message": "Daily dashboard stats generated successfully", "stats": row}
