"""
vrai/models/profile.py — User profile models.

A profile row shares its ``id`` with the auth identity; ``is_admin`` gates
admin-only views and endpoints.
"""

from pydantic import Field, StrictBool

from vrai.models.common import VraiBase


class ProfileCreate(VraiBase):
    id: str = Field(..., min_length=1)
    full_name: str | None = None
    display_name: str | None = None
    email: str | None = None
    phone_number: str | None = None


class ProfileRead(VraiBase):
    model_config = {"str_strip_whitespace": True, "extra": "ignore"}

    id: str
    full_name: str | None = None
    display_name: str | None = None
    email: str | None = None
    phone_number: str | None = None
    avatar_url: str | None = None
    is_admin: bool = False
    push_enabled: bool = False


class PushSettingsUpdate(VraiBase):
    user_id: str = Field(..., min_length=1)
    push_enabled: StrictBool


class PushSettings(VraiBase):
    success: bool = True
    push_enabled: bool = False


class CurrentUser(VraiBase):
    """Authenticated caller resolved from the bearer token."""
    id: str
    email: str | None = None
    display_name: str | None = None
    full_name: str | None = None
    is_admin: bool = False


class RegisterBody(VraiBase):
    email: str = Field(..., min_length=3, examples=["user@example.com"])
    password: str = Field(..., min_length=6, max_length=128)
    display_name: str = Field(..., min_length=1, max_length=255)
    full_name: str | None = None
    phone: str | None = None


class RegisterResult(VraiBase):
    message: str = "Registration successful"
    user_id: str
    profile: ProfileRead


class LoginBody(VraiBase):
    email: str
    password: str


class LoginResult(VraiBase):
    message: str = "Login successful"
    email: str
    display_name: str | None = None
    is_admin: bool = False
    redirect_to: str
    access_token: str
