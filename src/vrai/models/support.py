"""
vrai/models/support.py — Support messages and problem reports.

Both are created by end users in ``pending`` and resolved by exactly one
admin reply.
"""

from datetime import datetime

from pydantic import Field

from vrai.models.common import VraiBase


class SupportMessageCreate(VraiBase):
    message: str = Field(..., min_length=1, max_length=5000)


class SupportMessageRead(VraiBase):
    model_config = {"str_strip_whitespace": True, "extra": "ignore"}

    id: str
    user_id: str | None = None
    user_email: str = "Unknown User"
    message: str
    status: str | None = None
    reply: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    badge: str = "pending"
    badge_class: str = ""


class ProblemReportCreate(VraiBase):
    description: str = Field(..., min_length=1, max_length=5000)
    file_urls: list[str] = Field(default_factory=list)


class ProblemReportRead(VraiBase):
    model_config = {"str_strip_whitespace": True, "extra": "ignore"}

    id: str
    user_id: str | None = None
    email: str | None = None
    description: str
    file_urls: list[str] = Field(default_factory=list)
    status: str | None = None
    admin_reply: str | None = None
    reply_time: datetime | None = None
    created_at: datetime | None = None
    badge: str = "pending"
    badge_class: str = ""


class ReplyBody(VraiBase):
    reply: str = Field(..., max_length=5000)
