"""
vrai/services/report_service.py — Authentication reports (PDF).

Two ways a request gets its ``report_url``:
    • an admin uploads a finished PDF (``upload_pdf``), which also moves the
      request to "Authenticated";
    • the hosted report function builds one from the request's photos
      (``generate_report``) and writes the URL back itself.
"""

from __future__ import annotations

import asyncio
import logging

from vrai.db.repositories import profile_repo, request_repo
from vrai.exceptions import NotFoundError, RemoteServiceError
from vrai.models.enums import RequestStatus
from vrai.models.request import AuthenticationRequestRead
from vrai.services import request_service, status_tracker
from vrai.services.photo_slots import PhotoSlots
from vrai.validators import FilePayload

logger = logging.getLogger(__name__)


async def upload_pdf(
    remote,
    request_id: str,
    file: FilePayload,
    *,
    bucket: str,
) -> AuthenticationRequestRead:
    """Stores ``report-<id>.pdf`` (overwriting) and links it to the request."""
    request = await request_service.get_request(remote, request_id)
    already_authenticated = status_tracker.parse_status(request.status) is RequestStatus.AUTHENTICATED
    if not already_authenticated:
        # nothing is stored for a request that cannot become Authenticated
        status_tracker.ensure_transition(request.status, RequestStatus.AUTHENTICATED, request_id=request_id)

    file_name = f"report-{request_id}.pdf"
    await remote.upload_object(bucket, file_name, file.content, "application/pdf", upsert=True)
    url = remote.public_url(bucket, file_name)
    logger.info("Report PDF stored for request %s: %s", request_id, file_name)

    if already_authenticated:
        row = await request_repo.update_request(remote, request_id, {"report_url": url})
        if not row:
            raise NotFoundError("Authentication request", request_id)
        return AuthenticationRequestRead.model_validate(row)

    return await request_service.change_status(
        remote,
        request_id,
        RequestStatus.AUTHENTICATED,
        extra={"report_url": url},
    )


async def build_report_payload(remote, request: AuthenticationRequestRead) -> dict:
    profile = await profile_repo.get_profile(remote, request.user_id) if request.user_id else None
    updated = request.updated_at or request.created_at
    return {
        "fullName": (profile or {}).get("full_name") or "Customer",
        "images": PhotoSlots.from_list(request.photo_urls).flatten(),
        "updatedAt": updated.isoformat() if updated else None,
        "submissionId": request.human_readable_id or request.id,
        "model": request.model_name,
    }


async def generate_report(
    remote,
    request_id: str,
    *,
    function_name: str,
    timeout: float,
) -> AuthenticationRequestRead:
    """
    Invokes the report function under a fixed timeout.

    Expiry is a hard failure (RemoteServiceError); nothing is retried.
    """
    request = await request_service.get_request(remote, request_id)
    payload = await build_report_payload(remote, request)
    logger.info("Generating report for %s via %s", payload["submissionId"], function_name)

    try:
        result = await asyncio.wait_for(
            remote.invoke_function(function_name, payload, timeout=timeout),
            timeout=timeout,
        )
    except asyncio.TimeoutError as exc:
        logger.error("Report generation for %s timed out after %.1fs", request_id, timeout)
        raise RemoteServiceError(
            "Report generation timed out", details={"id": request_id, "timeout": timeout}
        ) from exc

    refreshed = await request_service.get_request(remote, request_id)
    url = (result or {}).get("url")
    if not refreshed.report_url and url:
        row = await request_repo.update_request(remote, request_id, {"report_url": url})
        if row:
            refreshed = AuthenticationRequestRead.model_validate(row)
    return refreshed
