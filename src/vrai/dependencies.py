"""
═══════════════════════════════════════════════════════════════════════════════
Vrai — FastAPI dependencies (Dependency Injection)
═══════════════════════════════════════════════════════════════════════════════

``get_context`` hands out the ``AppContext`` built in the lifespan;
``get_current_user`` / ``require_admin`` resolve the caller from the bearer
token. Errors are raised as ``VraiError`` subclasses and rendered by the
application exception handler.
"""

from __future__ import annotations

from fastapi import Depends, Header, Request

from vrai.context import AppContext
from vrai.exceptions import AuthenticationError, AuthorizationError
from vrai.models.profile import CurrentUser
from vrai.services import auth_service


def get_context(request: Request) -> AppContext:
    return request.app.state.context


async def get_current_user(
    authorization: str | None = Header(None),
    context: AppContext = Depends(get_context),
) -> CurrentUser:
    """
    Resolves the caller from the ``Authorization`` header.

    Algorithm:
        1. Checks the header is present and has the "Bearer <token>" form.
        2. Verifies the token with the auth provider.
        3. Loads the profile (created lazily when missing).

    Raises:
        AuthenticationError(401): header missing, malformed, or token rejected.
    """
    # ── Step 1: header ──
    if not authorization:
        raise AuthenticationError("Unauthorized: Missing or invalid token")
    if not authorization.startswith("Bearer "):
        raise AuthenticationError("Unauthorized: Missing or invalid token")

    token = authorization[7:].strip()
    if not token:
        raise AuthenticationError("Unauthorized: Missing or invalid token")

    # ── Step 2-3: token + profile ──
    return await auth_service.resolve_user(context.remote, token)


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Same as ``get_current_user`` but the profile must carry ``is_admin``."""
    if not user.is_admin:
        raise AuthorizationError("Forbidden: User is not authorized for this operation")
    return user
