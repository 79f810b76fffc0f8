"""
vrai/services/request_service.py — Authentication request operations.

    • human-readable ID allocation ("Vrai#NNNNNN")
    • creation on finalize, admin status changes
    • per-user listing and counts
    • extra documents for requests in "Action Required"
"""

from __future__ import annotations

import logging
import re
from uuid import uuid4

from vrai.db.repositories import request_repo
from vrai.exceptions import AuthorizationError, ConflictError, NotFoundError
from vrai.models.enums import RequestFilter, RequestStatus
from vrai.models.profile import CurrentUser
from vrai.models.request import AuthenticationRequestRead, UserRequestStats
from vrai.services import status_tracker
from vrai.services.photo_slots import PhotoSlots
from vrai.validators import FilePayload

logger = logging.getLogger(__name__)

HUMAN_ID_PREFIX = "Vrai#"
HUMAN_ID_WIDTH = 6
_HUMAN_ID_RE = re.compile(r"Vrai#(\d+)")


# ═══════════════════════════════════════════════════════════════════════════
# HUMAN-READABLE IDs
# ═══════════════════════════════════════════════════════════════════════════


def next_human_readable_id(current_max: str | None) -> str:
    """
    ID following ``current_max``.

    "Vrai#000007" → "Vrai#000008"; no (or unparsable) maximum → "Vrai#000001".
    """
    next_number = 1
    if current_max:
        match = _HUMAN_ID_RE.search(current_max)
        if match:
            next_number = int(match.group(1)) + 1
    return f"{HUMAN_ID_PREFIX}{next_number:0{HUMAN_ID_WIDTH}d}"


def highest_human_readable_id(ids: list[str]) -> str | None:
    """The ID with the largest number; text order breaks once the number outgrows the padding."""
    best, best_number = None, 0
    for human_id in ids:
        match = _HUMAN_ID_RE.search(human_id or "")
        if match and int(match.group(1)) > best_number:
            best, best_number = human_id, int(match.group(1))
    return best


async def generate_human_readable_id(remote) -> str:
    current_max = highest_human_readable_id(await request_repo.list_human_readable_ids(remote))
    human_id = next_human_readable_id(current_max)
    logger.info("Generated human_readable_id: %s", human_id)
    return human_id


# ═══════════════════════════════════════════════════════════════════════════
# CREATION / LOOKUP
# ═══════════════════════════════════════════════════════════════════════════


async def create_request(
    remote,
    *,
    submission_id: str,
    model_name: str,
    photo_urls: list,
    user: CurrentUser,
) -> AuthenticationRequestRead:
    """Writes a new request in "Pending Review" with a fresh sequential ID."""
    human_id = await generate_human_readable_id(remote)
    row = await request_repo.create_request(
        remote,
        {
            "submission_id": submission_id,
            "human_readable_id": human_id,
            "model_name": model_name,
            "photo_urls": photo_urls,
            "status": RequestStatus.PENDING_REVIEW.value,
            "user_id": user.id,
            "user_email": user.email,
            "admin_notes": None,
            "report_url": None,
        },
    )
    logger.info("Created authentication request %s (%s) for user %s", row.get("id"), human_id, user.id)
    return AuthenticationRequestRead.model_validate(row)


async def get_request(remote, request_id: str) -> AuthenticationRequestRead:
    row = await request_repo.get_request_by_id(remote, request_id)
    if not row:
        raise NotFoundError("Authentication request", request_id)
    return AuthenticationRequestRead.model_validate(row)


async def list_all_requests(remote) -> list[AuthenticationRequestRead]:
    rows = await request_repo.list_requests(remote)
    return [AuthenticationRequestRead.model_validate(r) for r in rows]


async def list_user_requests(remote, user_id: str) -> list[AuthenticationRequestRead]:
    rows = await request_repo.list_requests_for_user(remote, user_id)
    return [AuthenticationRequestRead.model_validate(r) for r in rows]


def filter_requests(
    requests: list[AuthenticationRequestRead],
    category: RequestFilter = RequestFilter.ALL,
) -> list[AuthenticationRequestRead]:
    """Keeps the requests of one list bucket; a missing status counts as in-progress."""
    if category is RequestFilter.ALL:
        return requests
    wanted = (
        status_tracker.IN_PROGRESS_STATUSES
        if category is RequestFilter.IN_PROGRESS
        else status_tracker.TERMINAL_STATUSES
    )
    return [r for r in requests if status_tracker.parse_status(r.status) in wanted]


def count_by_status(requests: list[AuthenticationRequestRead]) -> UserRequestStats:
    stats = UserRequestStats(total=len(requests))
    for request in requests:
        state = status_tracker.parse_status(request.status)
        if state is RequestStatus.PENDING_REVIEW:
            stats.pending += 1
        elif state is RequestStatus.ACTION_REQUIRED:
            stats.action_required += 1
        elif state is RequestStatus.AUTHENTICATED:
            stats.authenticated += 1
        elif state is RequestStatus.REJECTED:
            stats.rejected += 1
    return stats


# ═══════════════════════════════════════════════════════════════════════════
# ADMIN ACTIONS
# ═══════════════════════════════════════════════════════════════════════════


async def change_status(
    remote,
    request_id: str,
    target: RequestStatus,
    *,
    admin_notes: str | None = None,
    extra: dict | None = None,
) -> AuthenticationRequestRead:
    """Moves a request to ``target`` through the state tracker."""
    current = await get_request(remote, request_id)
    status_tracker.ensure_transition(current.status, target, request_id=request_id)

    values: dict = {"status": target.value}
    if admin_notes is not None:
        values["admin_notes"] = admin_notes
    if extra:
        values.update(extra)
    row = await request_repo.update_request(remote, request_id, values)
    if not row:
        raise NotFoundError("Authentication request", request_id)
    logger.info(
        "Request %s: %s -> %s", request_id, current.status or RequestStatus.PENDING_REVIEW.value, target.value
    )
    return AuthenticationRequestRead.model_validate(row)


# ═══════════════════════════════════════════════════════════════════════════
# USER RESUBMISSION
# ═══════════════════════════════════════════════════════════════════════════


async def resubmit_documents(
    remote,
    request_id: str,
    files: list[FilePayload],
    user: CurrentUser,
    *,
    bucket: str,
) -> tuple[AuthenticationRequestRead, list[str]]:
    """
    Stores extra photos for a request the admin sent back.

    Files land in slot 10 (de-duplicated) and the request returns to
    "Pending Review".
    """
    request = await get_request(remote, request_id)
    if request.user_id != user.id:
        raise AuthorizationError("This authentication request belongs to another user")
    if status_tracker.parse_status(request.status) is not RequestStatus.ACTION_REQUIRED:
        raise ConflictError(
            "This request does not currently require additional documents",
            details={"id": request_id, "status": request.status},
        )

    prefix = request.submission_id or request.id
    slots = PhotoSlots.from_list(request.photo_urls)
    urls: list[str] = []
    for file in files:
        path = f"{prefix}/step10-{uuid4()}.{file.extension}"
        await remote.upload_object(bucket, path, file.content, file.content_type)
        url = remote.public_url(bucket, path)
        slots.add_extra(url)
        urls.append(url)

    updated = await change_status(
        remote,
        request_id,
        RequestStatus.PENDING_REVIEW,
        extra={"photo_urls": slots.as_list()},
    )
    logger.info("Request %s: %d additional document(s) uploaded by user", request_id, len(urls))
    return updated, urls
