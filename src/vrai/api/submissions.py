"""
vrai/api/submissions.py — Upload wizard endpoints.

Draft → per-step photo uploads → finalize, plus the one-shot multipart
submission and the admin listing of submitted requests.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from starlette.datastructures import UploadFile as StarletteUploadFile

from vrai.api.files import read_upload
from vrai.context import AppContext
from vrai.db.repositories import submission_repo
from vrai.dependencies import get_context, get_current_user, require_admin
from vrai.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from vrai.models.enums import SubmissionStatus
from vrai.models.profile import CurrentUser
from vrai.models.request import AuthenticationRequestRead
from vrai.models.submission import FinalizeBody, PhotoUploadResult, SubmissionRead
from vrai.services import request_service
from vrai.services.photo_slots import SINGLE_SLOTS, SLOT_COUNT, MULTI_PHOTO_STEP
from vrai.services.upload_orchestrator import get_or_create_draft
from vrai.validators import validate_file_count, validate_image

router = APIRouter(tags=["submissions"])


async def _owned_draft(context: AppContext, submission_id: str, user: CurrentUser) -> dict:
    draft = await submission_repo.get_submission(context.remote, submission_id)
    if not draft:
        raise NotFoundError("Submission", submission_id)
    if draft.get("user_id") != user.id:
        raise AuthorizationError("This submission belongs to another user")
    if draft.get("status") != SubmissionStatus.DRAFT.value:
        raise ConflictError(
            "Submission has already been finalized",
            details={"id": submission_id, "status": draft.get("status")},
        )
    return draft


@router.post("/api/submissions/draft", summary="Get or create the caller's draft")
async def start_draft(
    user: CurrentUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
):
    """Returns the active draft and binds the caller's upload session to it."""
    draft = await get_or_create_draft(context.remote, user.id)
    session = context.uploads.for_user(user.id)
    session.set_submission_id(draft["id"])
    return {
        "submission": SubmissionRead.model_validate(draft),
        "photo_urls": session.photo_urls(),
    }


@router.post(
    "/api/submissions/{submission_id}/photos/{step}",
    response_model=PhotoUploadResult,
    summary="Upload the photo of one wizard step",
)
async def upload_step_photo(
    submission_id: str,
    step: int,
    file: UploadFile | None = File(None),
    direct_url: str | None = Form(None),
    user: CurrentUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
):
    session = context.uploads.for_user(user.id)
    if session.submission_id != submission_id:
        raise PreconditionError(
            "Submission is not active for this session. Start or resume the draft first.",
            details={"submission_id": submission_id, "active": session.submission_id},
        )
    await _owned_draft(context, submission_id, user)

    payload = None
    if file is not None:
        payload = validate_image(
            await read_upload(file), context.settings.auth_photo_max_size, field=f"step{step}"
        )
    url = await session.upload_photo(step, file=payload, direct_url=direct_url)
    return PhotoUploadResult(
        submission_id=submission_id,
        step=step,
        url=url,
        photo_urls=session.photo_urls(),
    )


@router.get("/api/submissions/{submission_id}/photos", summary="Resume an interrupted upload session")
async def load_photos(
    submission_id: str,
    user: CurrentUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
):
    """Rebuilds the slot array from storage and makes the draft active again."""
    await _owned_draft(context, submission_id, user)
    session = context.uploads.for_user(user.id)
    slots = await session.load_submission_photos(submission_id)
    session.set_submission_id(submission_id)
    return {
        "submission_id": submission_id,
        "photo_urls": slots.as_list(),
        "complete": slots.is_complete(),
        "missing_steps": slots.missing_steps(),
    }


@router.post(
    "/api/submissions/{submission_id}/finalize",
    response_model=AuthenticationRequestRead,
    status_code=status.HTTP_201_CREATED,
    summary="Finalize a draft into an authentication request",
)
async def finalize(
    submission_id: str,
    body: FinalizeBody,
    user: CurrentUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
):
    session = context.uploads.for_user(user.id)
    request = await session.finalize_submission(
        submission_id, body.model_name, user, photo_urls=body.photo_urls
    )
    context.uploads.discard(user.id)
    return request


@router.post(
    "/api/authentication-submission",
    response_model=AuthenticationRequestRead,
    status_code=status.HTTP_201_CREATED,
    summary="One-shot submission: step1..step10 files and a model name",
)
async def authentication_submission(
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
):
    """
    Runs the whole wizard in one call.

    Steps 1–9 need exactly one image each; step 10 takes any number.
    """
    settings = context.settings
    form = await request.form()
    model_name = str(form.get("model_name") or form.get("modelName") or "").strip()
    if not model_name:
        raise ValidationError("Model name is required", details={"field": "model_name"})

    files: dict[int, list] = {}
    for step in range(1, SLOT_COUNT + 1):
        parts = [p for p in form.getlist(f"step{step}") if isinstance(p, StarletteUploadFile)]
        if step != MULTI_PHOTO_STEP and len(parts) > 1:
            raise ValidationError(f"Only one photo is allowed for step {step}", details={"step": step})
        if parts:
            files[step] = parts
    missing = [s for s in range(1, SINGLE_SLOTS + 1) if s not in files]
    if missing:
        raise ValidationError(
            f"At least 9 photos are required. Missing steps: {missing}",
            details={"missing_steps": missing},
        )
    validate_file_count(sum(len(p) for p in files.values()), settings.auth_photo_max_files)

    # every part is checked before anything reaches storage
    payloads = [
        (step, validate_image(await read_upload(part), settings.auth_photo_max_size, field=f"step{step}"))
        for step, parts in sorted(files.items())
        for part in parts
    ]

    draft = await get_or_create_draft(context.remote, user.id)
    session = context.uploads.for_user(user.id)
    session.set_submission_id(draft["id"])
    for step, payload in payloads:
        await session.upload_photo(step, file=payload)

    created = await session.finalize_submission(draft["id"], model_name, user)
    context.uploads.discard(user.id)
    return created


@router.get("/api/submissions", summary="All submitted requests (admin)")
async def list_submissions(
    _admin: CurrentUser = Depends(require_admin),
    context: AppContext = Depends(get_context),
):
    requests = await request_service.list_all_requests(context.remote)
    requests.sort(key=lambda r: r.created_at.timestamp() if r.created_at else 0.0, reverse=True)
    return {
        "success": True,
        "submissions": requests,
        "count": len(requests),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
