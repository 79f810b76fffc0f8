"""
vrai/services/dashboard.py — Admin Dashboard Aggregator.

Turns a list of authentication requests into summary counts, a bounded
recent-activity feed and day-over-day percentage changes. Everything is
recomputed from scratch on each load; there is no incremental state.

``processed_today`` compares ``updated_at`` with the current calendar day in
``dashboard_timezone`` (server local time when unset). Timestamps without an
offset are read as UTC.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Iterable, Mapping
from zoneinfo import ZoneInfo

from vrai.db.repositories import request_repo, stats_repo
from vrai.models.dashboard import (
    ActivityItem,
    DashboardStatistics,
    DashboardView,
    PercentageChange,
)
from vrai.models.enums import RequestStatus
from vrai.services import status_tracker

logger = logging.getLogger(__name__)

# daily_dashboard_stats column → statistics field it tracks
SNAPSHOT_FIELDS = ("total_submissions", "pending_review", "processed_today", "active_users")


# ═══════════════════════════════════════════════════════════════════════════
# Time helpers
# ═══════════════════════════════════════════════════════════════════════════

def resolve_timezone(name: str | None) -> tzinfo:
    """IANA zone by name; empty name → the server's local zone."""
    if name:
        return ZoneInfo(name)
    return datetime.now().astimezone().tzinfo


def parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def day_bounds(now: datetime, tz: tzinfo) -> tuple[datetime, datetime]:
    """[midnight, next midnight) of ``now``'s calendar day in ``tz``."""
    local_day = now.astimezone(tz).date()
    start = datetime.combine(local_day, time.min, tzinfo=tz)
    end = datetime.combine(local_day + timedelta(days=1), time.min, tzinfo=tz)
    return start, end


def get_time_ago(timestamp: Any, now: datetime | None = None) -> str:
    """
    Coarse relative time: "Just now", "N minutes ago", "N hours ago",
    "Yesterday", "N days ago". All buckets floor.
    """
    moment = parse_timestamp(timestamp)
    if moment is None:
        return "Unknown"
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    minutes = math.floor((now - moment).total_seconds() / 60)
    hours = math.floor(minutes / 60)
    days = math.floor(hours / 24)

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    if hours < 24:
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    if days == 1:
        return "Yesterday"
    return f"{days} days ago"


# ═══════════════════════════════════════════════════════════════════════════
# Statistics
# ═══════════════════════════════════════════════════════════════════════════

def _get(record: Any, key: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(key)
    return getattr(record, key, None)


def calculate_statistics(
    requests: Iterable[Any],
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> DashboardStatistics:
    """
    Single pass over the requests (dicts or models).

    pending counts null and "Pending Review"; processed_today counts
    Authenticated / Rejected / Action Required updated within today.
    """
    tz = tz or resolve_timezone(None)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    start, end = day_bounds(now, tz)

    stats = DashboardStatistics()
    emails: set[str] = set()
    for record in requests:
        stats.total += 1
        raw_status = _get(record, "status")
        state = status_tracker.parse_status(raw_status)
        if state is RequestStatus.PENDING_REVIEW:
            stats.pending += 1
        elif state is RequestStatus.REJECTED:
            stats.rejected += 1

        if raw_status and state in status_tracker.PROCESSED_STATUSES:
            updated = parse_timestamp(_get(record, "updated_at"))
            if updated is not None and start <= updated < end:
                stats.processed_today += 1

        email = _get(record, "user_email")
        if email:
            emails.add(email)

    stats.active_users = len(emails)
    return stats


# ═══════════════════════════════════════════════════════════════════════════
# Percentages
# ═══════════════════════════════════════════════════════════════════════════

def percentage_change(today: float, yesterday: float) -> float:
    """
    Day-over-day change in percent.

    0 when both are 0; ``today * 100`` when only yesterday is 0.
    """
    if yesterday == 0 and today == 0:
        return 0
    if yesterday == 0:
        return today * 100
    return (today - yesterday) / yesterday * 100


def format_percentage(value: float) -> tuple[str, str]:
    """("+12.5%", "up") / ("-3.0%", "down") / ("0.0%", "flat"); rounds half up."""
    rounded = math.floor(value * 10 + 0.5) / 10
    if rounded > 0:
        return f"+{rounded:.1f}%", "up"
    if rounded < 0:
        return f"{rounded:.1f}%", "down"
    return "0.0%", "flat"


def compare_snapshots(today_row: Mapping | None, yesterday_row: Mapping | None) -> dict[str, PercentageChange]:
    today_row = today_row or {}
    yesterday_row = yesterday_row or {}
    result: dict[str, PercentageChange] = {}
    for key in SNAPSHOT_FIELDS:
        today_value = int(today_row.get(key) or 0)
        yesterday_value = int(yesterday_row.get(key) or 0)
        change = percentage_change(today_value, yesterday_value)
        formatted, trend = format_percentage(change)
        result[key] = PercentageChange(
            today=today_value,
            yesterday=yesterday_value,
            change=change,
            formatted=formatted,
            trend=trend,
        )
    return result


# ═══════════════════════════════════════════════════════════════════════════
# Activity feed
# ═══════════════════════════════════════════════════════════════════════════

def to_activity_item(record: Any, now: datetime | None = None) -> ActivityItem:
    record_id = str(_get(record, "id") or "")
    view = status_tracker.status_view(_get(record, "status"), _get(record, "model_name"))
    return ActivityItem(
        id=record_id,
        human_readable_id=_get(record, "human_readable_id") or f"Vrai#{record_id[:6]}",
        text=view.text,
        time_ago=get_time_ago(_get(record, "updated_at") or _get(record, "created_at"), now),
        status=view.label,
        color=view.color,
        icon=view.icon,
        icon_background=view.icon_background,
        user_email=_get(record, "user_email") or "Unknown",
    )


def recent_activity(requests: list[Any], limit: int = 5, now: datetime | None = None) -> list[ActivityItem]:
    """First ``limit`` requests (already newest first) as feed items."""
    return [to_activity_item(r, now) for r in list(requests)[:limit]]


# ═══════════════════════════════════════════════════════════════════════════
# Daily snapshots
# ═══════════════════════════════════════════════════════════════════════════

def build_daily_snapshot(
    requests: Iterable[Any],
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> dict[str, Any]:
    """
    Row for ``daily_dashboard_stats``.

    Day counts use ``created_at`` within today; pending_review is the
    current backlog regardless of age.
    """
    tz = tz or resolve_timezone(None)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    start, end = day_bounds(now, tz)

    total = processed = pending = 0
    users: set[str] = set()
    for record in requests:
        state = status_tracker.parse_status(_get(record, "status"))
        if state is RequestStatus.PENDING_REVIEW:
            pending += 1
        created = parse_timestamp(_get(record, "created_at"))
        if created is None or not start <= created < end:
            continue
        total += 1
        if state in status_tracker.TERMINAL_STATUSES:
            processed += 1
        user_id = _get(record, "user_id")
        if user_id:
            users.add(user_id)

    return {
        "date": start.date().isoformat(),
        "total_submissions": total,
        "pending_review": pending,
        "processed_today": processed,
        "active_users": len(users),
    }


# ═══════════════════════════════════════════════════════════════════════════
# Remote-backed entry points
# ═══════════════════════════════════════════════════════════════════════════

async def load_percentages(remote, today: date) -> dict[str, PercentageChange]:
    yesterday = today - timedelta(days=1)
    rows = await stats_repo.get_stats_for_dates(remote, [today.isoformat(), yesterday.isoformat()])
    by_date = {str(r.get("date")): r for r in rows}
    return compare_snapshots(by_date.get(today.isoformat()), by_date.get(yesterday.isoformat()))


async def load_dashboard(
    remote,
    *,
    tz: tzinfo | None = None,
    activity_limit: int = 5,
    now: datetime | None = None,
) -> DashboardView:
    """Fetches all requests and aggregates them; remote failures propagate."""
    tz = tz or resolve_timezone(None)
    now = now or datetime.now(timezone.utc)
    requests = await request_repo.list_requests(remote)
    statistics = calculate_statistics(requests, now=now, tz=tz)
    percentages = await load_percentages(remote, now.astimezone(tz).date())
    logger.info(
        "Dashboard: total=%d pending=%d processed_today=%d active_users=%d",
        statistics.total, statistics.pending, statistics.processed_today, statistics.active_users,
    )
    return DashboardView(
        statistics=statistics,
        recent_activity=recent_activity(requests, activity_limit, now),
        percentages=percentages,
    )


async def generate_daily_stats(remote, *, tz: tzinfo | None = None, now: datetime | None = None) -> dict:
    requests = await request_repo.list_requests(remote)
    snapshot = build_daily_snapshot(requests, now=now, tz=tz)
    row = await stats_repo.upsert_daily_stats(remote, snapshot)
    logger.info("Daily dashboard stats stored for %s", snapshot["date"])
    return row
