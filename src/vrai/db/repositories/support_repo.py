"""
vrai/db/repositories/support_repo.py — ``support_messages`` and ``problem_reports``.
"""

from __future__ import annotations

from typing import Any

SUPPORT_TABLE = "support_messages"
PROBLEM_TABLE = "problem_reports"


# ═══════════════════════════════════════════════════════════════════════════
# Support messages
# ═══════════════════════════════════════════════════════════════════════════

async def create_support_message(remote, row: dict[str, Any]) -> dict:
    return await remote.insert(SUPPORT_TABLE, row)


async def list_support_messages(remote) -> list[dict]:
    """All support messages, newest first."""
    return await remote.select(SUPPORT_TABLE, order="created_at.desc")


async def get_support_message(remote, message_id: str) -> dict | None:
    rows = await remote.select(SUPPORT_TABLE, filters={"id": message_id}, limit=1)
    return rows[0] if rows else None


async def update_support_message(remote, message_id: str, values: dict[str, Any]) -> dict | None:
    rows = await remote.update(SUPPORT_TABLE, values, filters={"id": message_id})
    return rows[0] if rows else None


# ═══════════════════════════════════════════════════════════════════════════
# Problem reports
# ═══════════════════════════════════════════════════════════════════════════

async def create_problem_report(remote, row: dict[str, Any]) -> dict:
    return await remote.insert(PROBLEM_TABLE, row)


async def list_problem_reports(remote) -> list[dict]:
    return await remote.select(PROBLEM_TABLE, order="created_at.desc")


async def get_problem_report(remote, report_id: str) -> dict | None:
    rows = await remote.select(PROBLEM_TABLE, filters={"id": report_id}, limit=1)
    return rows[0] if rows else None


async def update_problem_report(remote, report_id: str, values: dict[str, Any]) -> dict | None:
    rows = await remote.update(PROBLEM_TABLE, values, filters={"id": report_id})
    return rows[0] if rows else None
