"""
vrai/models/request.py — Authentication request models.

A request is created when a draft submission is finalized and is then
mutated by admin actions (status change, notes, report upload).
"""

from datetime import datetime
from typing import Union

from pydantic import Field

from vrai.models.common import VraiBase
from vrai.models.enums import RequestStatus

PhotoSlot = Union[str, None, list[str]]


class AuthenticationRequestRead(VraiBase):
    """Row of ``authentication_requests``."""
    model_config = {"str_strip_whitespace": True, "extra": "ignore"}

    id: str
    human_readable_id: str | None = None
    submission_id: str | None = None
    model_name: str | None = None
    status: str | None = Field(
        default=None,
        description="Raw stored value; None is read as 'Pending Review'",
    )
    photo_urls: list[PhotoSlot] = Field(default_factory=list)
    user_id: str | None = None
    user_email: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    admin_notes: str | None = None
    report_url: str | None = None


class StatusUpdate(VraiBase):
    """Admin status change."""
    status: RequestStatus
    admin_notes: str | None = Field(default=None, max_length=4000)


class AdminRequestList(VraiBase):
    success: bool = True
    data: list[AuthenticationRequestRead]
    count: int


class UserRequestStats(VraiBase):
    """Per-user counts by canonical status."""
    total: int = 0
    pending: int = 0
    action_required: int = 0
    authenticated: int = 0
    rejected: int = 0
