"""
vrai/services/profile_service.py — User profiles.

A profile shares its ``id`` with the auth identity. It is written at signup
and created lazily on the first authenticated call when missing.
"""

from __future__ import annotations

import logging

from vrai.db.repositories import profile_repo
from vrai.exceptions import NotFoundError
from vrai.models.profile import ProfileCreate, ProfileRead
from vrai.validators import FilePayload

logger = logging.getLogger(__name__)


async def get_profile(remote, user_id: str) -> ProfileRead:
    row = await profile_repo.get_profile(remote, user_id)
    if not row:
        raise NotFoundError("Profile", user_id)
    return ProfileRead.model_validate(row)


async def get_or_create_profile(remote, identity: dict) -> ProfileRead:
    """
    Profile of an auth identity ``{id, email, user_metadata}``.

    Missing profiles are created from the identity's metadata with
    ``is_admin`` false.
    """
    user_id = identity["id"]
    row = await profile_repo.get_profile(remote, user_id)
    if row:
        return ProfileRead.model_validate(row)

    metadata = identity.get("user_metadata") or {}
    email = identity.get("email")
    row = await profile_repo.insert_profile(
        remote,
        {
            "id": user_id,
            "email": email,
            "full_name": metadata.get("full_name"),
            "display_name": metadata.get("display_name") or (email.split("@")[0] if email else None),
            "phone_number": metadata.get("phone"),
            "avatar_url": None,
            "is_admin": False,
        },
    )
    logger.info("Profile created lazily for user %s", user_id)
    return ProfileRead.model_validate(row)


async def create_profile(remote, body: ProfileCreate) -> ProfileRead:
    """Creates or refreshes the profile row; never grants admin rights."""
    values = body.model_dump(exclude_none=True)
    row = await profile_repo.upsert_profile(remote, values)
    if "is_admin" not in row:
        row = await profile_repo.update_profile(remote, body.id, {"is_admin": False}) or row
    logger.info("Profile stored for user %s", body.id)
    return ProfileRead.model_validate(row)


async def upload_avatar(remote, user_id: str, file: FilePayload, *, bucket: str) -> ProfileRead:
    """Stores ``<uid>.<ext>`` in the avatars bucket (overwriting) and sets ``avatar_url``."""
    path = f"{user_id}.{file.extension}"
    await remote.upload_object(bucket, path, file.content, file.content_type, upsert=True)
    url = remote.public_url(bucket, path)
    row = await profile_repo.update_profile(remote, user_id, {"avatar_url": url})
    if not row:
        raise NotFoundError("Profile", user_id)
    logger.info("Avatar updated for user %s", user_id)
    return ProfileRead.model_validate(row)


async def get_push_enabled(remote, user_id: str) -> bool:
    profile = await get_profile(remote, user_id)
    return profile.push_enabled


async def set_push_enabled(remote, user_id: str, enabled: bool) -> ProfileRead:
    row = await profile_repo.update_profile(remote, user_id, {"push_enabled": enabled})
    if not row:
        raise NotFoundError("Profile", user_id)
    logger.info("Push notifications %s for user %s", "enabled" if enabled else "disabled", user_id)
    return ProfileRead.model_validate(row)
