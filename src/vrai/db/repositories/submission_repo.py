"""
vrai/db/repositories/submission_repo.py — ``auth_submissions`` table (drafts).
"""

from __future__ import annotations

from vrai.models.enums import SubmissionStatus

TABLE = "auth_submissions"


async def get_draft_for_user(remote, user_id: str) -> dict | None:
    """The user's active draft, if any."""
    rows = await remote.select(
        TABLE,
        filters={"user_id": user_id, "status": SubmissionStatus.DRAFT.value},
        limit=1,
    )
    return rows[0] if rows else None


async def create_draft(remote, user_id: str) -> dict:
    """Create a new draft for the user."""
    return await remote.insert(
        TABLE, {"user_id": user_id, "status": SubmissionStatus.DRAFT.value}
    )


async def get_submission(remote, submission_id: str) -> dict | None:
    rows = await remote.select(TABLE, filters={"id": submission_id}, limit=1)
    return rows[0] if rows else None


async def update_submission_status(
    remote, submission_id: str, user_id: str, status: SubmissionStatus
) -> list[dict]:
    """Update the status of a draft owned by ``user_id``."""
    return await remote.update(
        TABLE,
        {"status": status.value},
        filters={"id": submission_id, "user_id": user_id},
    )
