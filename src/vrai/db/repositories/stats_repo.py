"""
vrai/db/repositories/stats_repo.py — ``daily_dashboard_stats`` snapshots (one row per date).
"""

from __future__ import annotations

from typing import Any

TABLE = "daily_dashboard_stats"


async def get_stats_for_dates(remote, dates: list[str]) -> list[dict]:
    """Snapshots for the given ``YYYY-MM-DD`` dates, newest first."""
    return await remote.select(TABLE, filters={"date": dates}, order="date.desc")


async def upsert_daily_stats(remote, row: dict[str, Any]) -> dict:
    return await remote.upsert(TABLE, row, on_conflict="date")
