"""
vrai/services/upload_orchestrator.py — Upload Orchestrator.

Maps a submission ID to its 10 photo slots, uploads wizard photos to the
``auth-photos`` bucket and finalises a draft into an authentication request.

Slot arrays live in an arena owned by the orchestrator and are addressed by
submission ID (``create`` / ``fetch`` / ``reset``). ``UploadSessions`` keeps
one orchestrator per user so concurrent users never share an active ID.

Storage path convention: ``<submissionId>/step<N>-<uuid>.<ext>``; the
``step<N>-`` prefix is what ``load_submission_photos`` parses back.
"""

from __future__ import annotations

import logging
import re
from uuid import uuid4

from vrai.db.repositories import submission_repo
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
from vrai.services import request_service
from vrai.services.photo_slots import SLOT_COUNT, PhotoSlots, check_step
from vrai.validators import FilePayload

logger = logging.getLogger(__name__)

_STEP_FILE_RE = re.compile(r"^step(\d+)-")


# ═══════════════════════════════════════════════════════════════════════════
# DRAFTS
# ═══════════════════════════════════════════════════════════════════════════


async def get_or_create_draft(remote, user_id: str) -> dict:
    """The user's single draft submission, created on first use."""
    existing = await submission_repo.get_draft_for_user(remote, user_id)
    if existing:
        logger.info("Found existing draft submission %s for user %s", existing["id"], user_id)
        return existing
    created = await submission_repo.create_draft(remote, user_id)
    logger.info("Created new draft submission %s for user %s", created["id"], user_id)
    return created


# ═══════════════════════════════════════════════════════════════════════════
# ORCHESTRATOR
# ═══════════════════════════════════════════════════════════════════════════


class UploadOrchestrator:
    """Photo slots and uploads of one upload session."""

    def __init__(self, remote, *, bucket: str) -> None:
        self._remote = remote
        self._bucket = bucket
        self._arena: dict[str, PhotoSlots] = {}
        self._active: str | None = None

    # ── arena ───────────────────────────────────────────────────────────

    def create(self, submission_id: str) -> PhotoSlots:
        """Allocates a fresh slot array, replacing any previous one."""
        slots = PhotoSlots()
        self._arena[submission_id] = slots
        return slots

    def fetch(self, submission_id: str) -> PhotoSlots:
        """Slot array of ``submission_id``, allocated on first access."""
        slots = self._arena.get(submission_id)
        if slots is None:
            slots = self.create(submission_id)
        return slots

    def reset(self, submission_id: str | None = None) -> None:
        """Drops the slots of ``submission_id`` (default: the active one)."""
        target = submission_id or self._active
        if target is None:
            return
        self._arena.pop(target, None)
        if target == self._active:
            self._active = None
        logger.debug("Photo state reset for submission %s", target)

    # ── active submission ───────────────────────────────────────────────

    @property
    def submission_id(self) -> str | None:
        return self._active

    def set_submission_id(self, submission_id: str) -> None:
        if not submission_id or not isinstance(submission_id, str):
            raise ValidationError(
                "Valid submission ID is required", details={"submission_id": submission_id}
            )
        self._active = submission_id
        self.fetch(submission_id)
        logger.debug("Submission ID set to %s", submission_id)

    def _require_active(self) -> str:
        if self._active is None:
            raise PreconditionError(
                "No submission ID set. Call set_submission_id() before uploading photos."
            )
        return self._active

    # ── uploads ─────────────────────────────────────────────────────────

    async def upload_photo(
        self,
        step: int,
        file: FilePayload | None = None,
        direct_url: str | None = None,
    ) -> str:
        """
        Stores one photo for ``step`` of the active submission.

        Either ``file`` (uploaded to storage) or ``direct_url`` (an already
        stored photo) must be given. Steps 1–9 overwrite the slot; step 10
        appends unless the URL is already present.

        Returns:
            The public URL of the photo.

        Raises:
            PreconditionError: no active submission.
            ValidationError:   bad step number, neither file nor URL.
            RemoteServiceError: storage rejected the upload.
        """
        submission_id = self._require_active()
        number = check_step(step)
        if file is None and not direct_url:
            raise ValidationError(
                "Either a file or a direct URL must be provided", details={"step": number}
            )

        if file is not None:
            path = f"{submission_id}/step{number}-{uuid4()}.{file.extension}"
            await self._remote.upload_object(
                self._bucket, path, file.content, file.content_type, upsert=False
            )
            url = self._remote.public_url(self._bucket, path)
            logger.info("Uploaded step %d photo for submission %s: %s", number, submission_id, path)
        else:
            url = direct_url

        self.fetch(submission_id).assign(number, url)
        return url

    def validate_photos(self) -> bool:
        """True iff slots 1–9 of the active submission are all filled."""
        if self._active is None:
            return False
        slots = self._arena.get(self._active)
        return slots is not None and slots.is_complete()

    def photo_urls(self, submission_id: str | None = None) -> list:
        """Serialised slot array (a copy); empty slots when nothing is active."""
        target = submission_id or self._active
        if target is None:
            return PhotoSlots().as_list()
        return self.fetch(target).as_list()

    async def load_submission_photos(self, submission_id: str) -> PhotoSlots:
        """
        Rebuilds the slot array of ``submission_id`` from storage.

        Objects are listed under the submission prefix; folders are skipped
        and ``step<N>-`` names are mapped back onto slot N. Listing errors
        propagate to the caller.
        """
        if not submission_id:
            raise ValidationError("Valid submission ID is required")

        entries = await self._remote.list_objects(self._bucket, submission_id)
        slots = PhotoSlots()
        for entry in sorted(entries, key=lambda e: e.get("name") or ""):
            if entry.get("id") is None:
                continue
            match = _STEP_FILE_RE.match(entry.get("name") or "")
            if not match:
                continue
            step = int(match.group(1))
            if 1 <= step <= SLOT_COUNT:
                url = self._remote.public_url(self._bucket, f"{submission_id}/{entry['name']}")
                slots.assign(step, url)

        self._arena[submission_id] = slots
        logger.info("Loaded photos for submission %s: %r", submission_id, slots)
        return slots

    # ── finalize ────────────────────────────────────────────────────────

    async def finalize_submission(
        self,
        submission_id: str,
        model_name: str,
        user: CurrentUser,
        photo_urls: list | None = None,
    ) -> AuthenticationRequestRead:
        """
        Turns a complete draft into an authentication request.

        Algorithm:
            1. Load the draft and check ownership and state.
            2. Resolve the slot array (explicit list, session, or storage).
            3. Require slots 1–9 to be filled.
            4. Mark the draft completed, create the request.
            5. Drop the session's slots for the submission.
        """
        if not model_name or not model_name.strip():
            raise ValidationError("Model name is required", details={"field": "model_name"})

        # ── Step 1: draft ──
        draft = await submission_repo.get_submission(self._remote, submission_id)
        if not draft:
            raise NotFoundError("Submission", submission_id)
        if draft.get("user_id") != user.id:
            raise AuthorizationError("This submission belongs to another user")
        if draft.get("status") != SubmissionStatus.DRAFT.value:
            raise ConflictError(
                "Submission has already been finalized",
                details={"id": submission_id, "status": draft.get("status")},
            )

        # ── Step 2: slots ──
        if photo_urls is not None:
            slots = PhotoSlots.from_list(photo_urls)
        elif submission_id in self._arena:
            slots = self._arena[submission_id]
        else:
            slots = await self.load_submission_photos(submission_id)

        # ── Step 3: completeness ──
        if not slots.is_complete():
            raise ValidationError(
                "All photos for steps 1-9 must be uploaded",
                details={"missing_steps": slots.missing_steps()},
            )

        # ── Step 4: completed draft + request ──
        await submission_repo.update_submission_status(
            self._remote, submission_id, user.id, SubmissionStatus.COMPLETED
        )
        logger.info("Submission %s marked completed", submission_id)
        request = await request_service.create_request(
            self._remote,
            submission_id=submission_id,
            model_name=model_name.strip(),
            photo_urls=slots.as_list(),
            user=user,
        )

        # ── Step 5: session cleanup ──
        self.reset(submission_id)
        return request


# ═══════════════════════════════════════════════════════════════════════════
# PER-USER SESSIONS
# ═══════════════════════════════════════════════════════════════════════════


class UploadSessions:
    """One ``UploadOrchestrator`` per user, created on demand."""

    def __init__(self, remote, *, bucket: str) -> None:
        self._remote = remote
        self._bucket = bucket
        self._sessions: dict[str, UploadOrchestrator] = {}

    def for_user(self, user_id: str) -> UploadOrchestrator:
        session = self._sessions.get(user_id)
        if session is None:
            session = UploadOrchestrator(self._remote, bucket=self._bucket)
            self._sessions[user_id] = session
        return session

    def discard(self, user_id: str) -> None:
        self._sessions.pop(user_id, None)
