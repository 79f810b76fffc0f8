"""
vrai/api/profile.py — Profile endpoints.
"""

from fastapi import APIRouter, Depends, File, UploadFile, status

from vrai.api.files import read_upload
from vrai.context import AppContext
from vrai.dependencies import get_context, get_current_user
from vrai.exceptions import AuthorizationError
from vrai.models.profile import CurrentUser, ProfileCreate, ProfileRead, PushSettings, PushSettingsUpdate
from vrai.services import profile_service
from vrai.validators import validate_image

router = APIRouter(prefix="/api", tags=["profile"])


@router.get("/profile", response_model=ProfileRead, summary="Caller's profile")
async def get_profile(
    user: CurrentUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
):
    """Resolving the caller already creates a missing profile."""
    return await profile_service.get_profile(context.remote, user.id)


@router.post(
    "/profiles",
    response_model=ProfileRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create or update a profile",
)
async def create_profile(
    body: ProfileCreate,
    user: CurrentUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
):
    if body.id != user.id and not user.is_admin:
        raise AuthorizationError("Profiles can only be created for the signed-in user")
    return await profile_service.create_profile(context.remote, body)


@router.post("/upload-avatar", response_model=ProfileRead, summary="Upload the caller's avatar")
async def upload_avatar(
    avatar: UploadFile = File(...),
    user: CurrentUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
):
    settings = context.settings
    payload = validate_image(await read_upload(avatar), settings.max_file_size, field="avatar")
    return await profile_service.upload_avatar(
        context.remote, user.id, payload, bucket=settings.avatars_bucket
    )


# ── Push notification settings ───────────────────────────────────────────

def _ensure_own_profile(user_id: str, user: CurrentUser) -> None:
    if user_id != user.id and not user.is_admin:
        raise AuthorizationError("Push settings can only be managed by their owner")


@router.get("/push-settings/{user_id}", response_model=PushSettings, summary="Push notification setting")
async def get_push_settings(
    user_id: str,
    user: CurrentUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
):
    _ensure_own_profile(user_id, user)
    enabled = await profile_service.get_push_enabled(context.remote, user_id)
    return PushSettings(push_enabled=enabled)


@router.post("/update-push", summary="Turn push notifications on or off")
async def update_push_settings(
    body: PushSettingsUpdate,
    user: CurrentUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
):
    """``push_enabled`` must be a JSON boolean."""
    _ensure_own_profile(body.user_id, user)
    profile = await profile_service.set_push_enabled(context.remote, body.user_id, body.push_enabled)
    return {
        "success": True,
        "message": "Push notification settings updated successfully",
        "push_enabled": profile.push_enabled,
    }
