"""
vrai/api/users.py — The caller's own authentication requests.
"""

from fastapi import APIRouter, Depends, File, Query, UploadFile

from vrai.api.files import read_upload
from vrai.context import AppContext
from vrai.dependencies import get_context, get_current_user
from vrai.models.enums import RequestFilter
from vrai.models.profile import CurrentUser
from vrai.models.request import AuthenticationRequestRead, UserRequestStats
from vrai.services import request_service
from vrai.validators import validate_document, validate_file_count

router = APIRouter(tags=["users"])


@router.get("/user/stats", response_model=UserRequestStats, summary="Request counts by status")
async def user_stats(
    user: CurrentUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
):
    requests = await request_service.list_user_requests(context.remote, user.id)
    return request_service.count_by_status(requests)


@router.get(
    "/user/requests",
    response_model=list[AuthenticationRequestRead],
    summary="Caller's requests, newest first",
)
async def user_requests(
    category: RequestFilter = Query(RequestFilter.ALL, alias="filter"),
    user: CurrentUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
):
    """``?filter=all|in-progress|completed``."""
    requests = await request_service.list_user_requests(context.remote, user.id)
    return request_service.filter_requests(requests, category)


@router.post("/api/requests/{request_id}/upload", summary="Additional documents for a request")
async def upload_additional_documents(
    request_id: str,
    files: list[UploadFile] = File(...),
    user: CurrentUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
):
    """
    Attaches extra photos/documents to a request in "Action Required".

    The files go to photo slot 10 and the request returns to "Pending Review".
    """
    settings = context.settings
    validate_file_count(len(files), settings.max_files_per_upload)
    payloads = [
        validate_document(await read_upload(f), settings.max_file_size) for f in files
    ]
    request, urls = await request_service.resubmit_documents(
        context.remote, request_id, payloads, user, bucket=settings.photos_bucket
    )
    return {
        "success": True,
        "message": f"{len(urls)} file(s) uploaded successfully",
        "uploaded": urls,
        "request": request,
    }
