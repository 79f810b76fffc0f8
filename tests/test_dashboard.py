from datetime import datetime, timedelta, timezone

import pytest

from vrai.services import dashboard

UTC = timezone.utc
NOW = datetime(2025, 3, 14, 15, 30, tzinfo=UTC)


def _ago(**kwargs) -> str:
    return (NOW - timedelta(**kwargs)).isoformat()


# ── percentage_change / format_percentage ─────────────────────────────────

def test_percentage_change_both_zero():
    assert dashboard.percentage_change(0, 0) == 0


@pytest.mark.parametrize("today", [1, 3, 12])
def test_percentage_change_from_zero_is_today_times_hundred(today):
    assert dashboard.percentage_change(today, 0) == today * 100


def test_percentage_change_standard_formula():
    assert dashboard.percentage_change(80, 100) == -20
    assert dashboard.percentage_change(150, 100) == 50


@pytest.mark.parametrize(
    "value, expected",
    [
        (12.345, ("+12.3%", "up")),
        (-20, ("-20.0%", "down")),
        (0, ("0.0%", "flat")),
        (0.04, ("0.0%", "flat")),
        (0.05, ("+0.1%", "up")),
        (300, ("+300.0%", "up")),
    ],
)
def test_format_percentage(value, expected):
    assert dashboard.format_percentage(value) == expected


def test_compare_snapshots_defaults_missing_rows_to_zero():
    result = dashboard.compare_snapshots({"total_submissions": 3, "active_users": 2}, None)
    assert result["total_submissions"].change == 300
    assert result["total_submissions"].formatted == "+300.0%"
    assert result["pending_review"].change == 0
    assert result["pending_review"].trend == "flat"
    assert set(result) == set(dashboard.SNAPSHOT_FIELDS)


# ── get_time_ago ──────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "delta, expected",
    [
        (timedelta(seconds=59), "Just now"),
        (timedelta(minutes=1), "1 minute ago"),
        (timedelta(minutes=45), "45 minutes ago"),
        (timedelta(minutes=90), "1 hour ago"),
        (timedelta(hours=5), "5 hours ago"),
        (timedelta(hours=25), "Yesterday"),
        (timedelta(hours=47), "Yesterday"),
        (timedelta(hours=50), "2 days ago"),
        (timedelta(days=30), "30 days ago"),
    ],
)
def test_get_time_ago_buckets(delta, expected):
    assert dashboard.get_time_ago(NOW - delta, now=NOW) == expected


def test_get_time_ago_parses_strings_and_handles_missing():
    assert dashboard.get_time_ago("2025-03-14T13:30:00Z", now=NOW) == "2 hours ago"
    assert dashboard.get_time_ago("2025-03-14T15:00:00", now=NOW) == "30 minutes ago"
    assert dashboard.get_time_ago(None, now=NOW) == "Unknown"
    assert dashboard.get_time_ago("not a date", now=NOW) == "Unknown"


# ── calculate_statistics ──────────────────────────────────────────────────

def test_statistics_of_empty_list():
    stats = dashboard.calculate_statistics([], now=NOW, tz=UTC)
    assert stats.model_dump() == {
        "total": 0,
        "pending": 0,
        "rejected": 0,
        "processed_today": 0,
        "active_users": 0,
    }


def test_null_status_counts_as_pending():
    requests = [
        {"status": None, "user_email": "a@x.com"},
        {"status": "Pending Review", "user_email": "b@x.com"},
        {"user_email": "a@x.com"},
    ]
    stats = dashboard.calculate_statistics(requests, now=NOW, tz=UTC)
    assert stats.pending == 3
    assert stats.total == 3
    assert stats.active_users == 2


def test_processed_today_uses_updated_at_within_local_day():
    requests = [
        {"status": "Authenticated", "updated_at": _ago(hours=1)},
        {"status": "Rejected", "updated_at": _ago(hours=15)},
        {"status": "Action Required", "updated_at": _ago(minutes=5)},
        {"status": "Rejected", "updated_at": _ago(days=1)},
        {"status": "Pending Review", "updated_at": _ago(minutes=1)},
        {"status": "Authenticated", "updated_at": None},
    ]
    stats = dashboard.calculate_statistics(requests, now=NOW, tz=UTC)
    assert stats.processed_today == 3
    assert stats.rejected == 2
    assert stats.pending == 1


def test_processed_today_depends_on_the_timezone():
    # 15:30 UTC on the 14th is already the 15th in Auckland (UTC+13).
    requests = [{"status": "Authenticated", "updated_at": "2025-03-14T10:00:00+00:00"}]
    auckland = dashboard.resolve_timezone("Pacific/Auckland")
    assert dashboard.calculate_statistics(requests, now=NOW, tz=UTC).processed_today == 1
    assert dashboard.calculate_statistics(requests, now=NOW, tz=auckland).processed_today == 0


def test_active_users_ignores_empty_emails():
    requests = [{"user_email": ""}, {"user_email": None}, {"user_email": "a@x.com"}, {"user_email": "a@x.com"}]
    assert dashboard.calculate_statistics(requests, now=NOW, tz=UTC).active_users == 1


# ── activity feed and snapshots ───────────────────────────────────────────

def test_activity_item_fallbacks():
    item = dashboard.to_activity_item(
        {"id": "abcdef123456", "status": "Rejected", "model_name": "Kelly", "created_at": _ago(hours=3)},
        now=NOW,
    )
    assert item.human_readable_id == "Vrai#abcdef"
    assert item.user_email == "Unknown"
    assert item.text == "Rejected Kelly"
    assert item.time_ago == "3 hours ago"
    assert item.color == "bg-red-500"


def test_recent_activity_is_bounded():
    requests = [{"id": f"id-{i}", "updated_at": _ago(minutes=i)} for i in range(8)]
    feed = dashboard.recent_activity(requests, limit=5, now=NOW)
    assert [item.id for item in feed] == ["id-0", "id-1", "id-2", "id-3", "id-4"]


def test_daily_snapshot_counts_todays_submissions():
    requests = [
        {"status": "Authenticated", "created_at": _ago(hours=2), "user_id": "u1"},
        {"status": None, "created_at": _ago(hours=1), "user_id": "u1"},
        {"status": "Rejected", "created_at": _ago(hours=3), "user_id": "u2"},
        {"status": "Pending Review", "created_at": _ago(days=3), "user_id": "u3"},
    ]
    snapshot = dashboard.build_daily_snapshot(requests, now=NOW, tz=UTC)
    assert snapshot == {
        "date": "2025-03-14",
        "total_submissions": 3,
        "pending_review": 2,
        "processed_today": 2,
        "active_users": 2,
    }


async def test_load_dashboard_reads_requests_and_snapshots(store):
    await store.insert("authentication_requests", {"status": "Pending Review", "user_email": "a@x.com", "model_name": "Birkin"})
    await store.insert("authentication_requests", {"status": "Rejected", "user_email": "b@x.com", "model_name": "Kelly"})
    await store.upsert("daily_dashboard_stats", {"date": "2025-03-14", "total_submissions": 4}, on_conflict="date")
    await store.upsert("daily_dashboard_stats", {"date": "2025-03-13", "total_submissions": 2}, on_conflict="date")

    view = await dashboard.load_dashboard(store, tz=UTC, activity_limit=1, now=NOW)
    assert view.statistics.total == 2
    assert view.statistics.active_users == 2
    assert len(view.recent_activity) == 1
    assert view.percentages["total_submissions"].change == 100
    assert view.percentages["total_submissions"].formatted == "+100.0%"


async def test_generate_daily_stats_upserts_by_date(store):
    first = await dashboard.generate_daily_stats(store, tz=UTC)
    second = await dashboard.generate_daily_stats(store, tz=UTC)
    assert first["date"] == second["date"]
    rows = await store.select("daily_dashboard_stats")
    assert len(rows) == 1
