"""
vrai/services/auth_service.py — Registration, login and token resolution.

Credentials live with the auth provider of the Remote Data Service; this
module only forwards them and keeps the ``profiles`` row in step.
"""

from __future__ import annotations

import logging

from vrai.db.repositories import profile_repo
from vrai.exceptions import AuthenticationError
from vrai.models.profile import (
    CurrentUser,
    LoginBody,
    LoginResult,
    ProfileRead,
    RegisterBody,
    RegisterResult,
)
from vrai.services import profile_service

logger = logging.getLogger(__name__)

ADMIN_LANDING_PAGE = "dashboard-admin.html"
USER_LANDING_PAGE = "index.html"


def landing_page(is_admin: bool) -> str:
    return ADMIN_LANDING_PAGE if is_admin else USER_LANDING_PAGE


# ═══════════════════════════════════════════════════════════════════════════
# REGISTRATION / LOGIN
# ═══════════════════════════════════════════════════════════════════════════


async def register_user(remote, body: RegisterBody) -> RegisterResult:
    """
    Creates the auth identity and its profile.

    Raises:
        ConflictError: the e-mail is already registered.
    """
    email = body.email.lower()
    identity = await remote.sign_up(
        email,
        body.password,
        {"display_name": body.display_name, "full_name": body.full_name, "phone": body.phone},
    )
    row = await profile_repo.upsert_profile(
        remote,
        {
            "id": identity["id"],
            "email": email,
            "display_name": body.display_name,
            "full_name": body.full_name,
            "phone_number": body.phone,
            "is_admin": False,
        },
    )
    logger.info("User registered: %s (%s)", identity["id"], email)
    return RegisterResult(user_id=identity["id"], profile=ProfileRead.model_validate(row))


async def authenticate(remote, body: LoginBody) -> LoginResult:
    """Password login → access token plus the page to land on."""
    session = await remote.sign_in(body.email.lower(), body.password)
    identity = session.get("user") or {}
    if not identity.get("id") or not session.get("access_token"):
        raise AuthenticationError("Invalid email or password")

    profile = await profile_service.get_or_create_profile(remote, identity)
    logger.info(
        "Login successful: %s (%s)", identity["id"], "admin" if profile.is_admin else "user"
    )
    return LoginResult(
        email=identity.get("email") or body.email,
        display_name=profile.display_name,
        is_admin=profile.is_admin,
        redirect_to=landing_page(profile.is_admin),
        access_token=session["access_token"],
    )


# ═══════════════════════════════════════════════════════════════════════════
# TOKEN → CALLER
# ═══════════════════════════════════════════════════════════════════════════


async def resolve_user(remote, token: str) -> CurrentUser:
    """Verifies a bearer token with the auth provider and loads the caller's profile."""
    identity = await remote.get_user(token)
    if not identity or not identity.get("id"):
        raise AuthenticationError("Unauthorized: Invalid token")
    profile = await profile_service.get_or_create_profile(remote, identity)
    return CurrentUser(
        id=identity["id"],
        email=identity.get("email") or profile.email,
        display_name=profile.display_name,
        full_name=profile.full_name,
        is_admin=profile.is_admin,
    )
