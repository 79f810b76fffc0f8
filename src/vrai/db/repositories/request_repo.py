"""
vrai/db/repositories/request_repo.py — ``authentication_requests`` table.
"""

from __future__ import annotations

from typing import Any

TABLE = "authentication_requests"


async def create_request(remote, row: dict[str, Any]) -> dict:
    """Insert a new authentication request."""
    return await remote.insert(TABLE, row)


async def get_request_by_id(remote, request_id: str) -> dict | None:
    """Find a request by its internal ID."""
    rows = await remote.select(TABLE, filters={"id": request_id}, limit=1)
    return rows[0] if rows else None


async def list_requests(remote) -> list[dict]:
    """All requests, most recently updated first."""
    return await remote.select(TABLE, order="updated_at.desc")


async def list_requests_for_user(remote, user_id: str) -> list[dict]:
    """Requests of one user, most recently submitted first."""
    return await remote.select(TABLE, filters={"user_id": user_id}, order="created_at.desc")


async def list_human_readable_ids(remote) -> list[str]:
    """Every assigned ``human_readable_id``; widths vary past 999999, so callers compare numerically."""
    rows = await remote.select(TABLE, columns="human_readable_id")
    return [r["human_readable_id"] for r in rows if r.get("human_readable_id")]


async def update_request(remote, request_id: str, values: dict[str, Any]) -> dict | None:
    """Update a request; returns the updated row or None if it does not exist."""
    rows = await remote.update(TABLE, values, filters={"id": request_id})
    return rows[0] if rows else None
