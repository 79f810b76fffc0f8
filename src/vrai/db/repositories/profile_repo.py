"""
vrai/db/repositories/profile_repo.py — ``profiles`` table.
"""

from __future__ import annotations

from typing import Any

TABLE = "profiles"


async def get_profile(remote, user_id: str) -> dict | None:
    """Find a profile by the auth identity ID."""
    rows = await remote.select(TABLE, filters={"id": user_id}, limit=1)
    return rows[0] if rows else None


async def get_profiles_by_ids(remote, user_ids: list[str]) -> list[dict]:
    if not user_ids:
        return []
    return await remote.select(TABLE, filters={"id": user_ids}, columns="id,email")


async def insert_profile(remote, row: dict[str, Any]) -> dict:
    return await remote.insert(TABLE, row)


async def upsert_profile(remote, row: dict[str, Any]) -> dict:
    return await remote.upsert(TABLE, row, on_conflict="id")


async def update_profile(remote, user_id: str, values: dict[str, Any]) -> dict | None:
    rows = await remote.update(TABLE, values, filters={"id": user_id})
    return rows[0] if rows else None
