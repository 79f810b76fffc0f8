"""
vrai/models/submission.py — Draft submission and wizard upload models.
"""

from datetime import datetime

from pydantic import Field

from vrai.models.common import VraiBase
from vrai.models.request import PhotoSlot


class SubmissionRead(VraiBase):
    """Row of ``auth_submissions``."""
    model_config = {"str_strip_whitespace": True, "extra": "ignore"}

    id: str
    user_id: str
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PhotoUploadResult(VraiBase):
    submission_id: str
    step: int
    url: str
    photo_urls: list[PhotoSlot]


class FinalizeBody(VraiBase):
    model_name: str = Field(..., min_length=1, max_length=255, examples=["Hermès Birkin 35"])
    photo_urls: list[PhotoSlot] | None = Field(
        default=None,
        description="Explicit slot array; defaults to the session's uploads",
    )
