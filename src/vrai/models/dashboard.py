"""
vrai/models/dashboard.py — Admin dashboard view models.
"""

from pydantic import BaseModel, Field


class DashboardStatistics(BaseModel):
    total: int = 0
    pending: int = 0
    rejected: int = 0
    processed_today: int = 0
    active_users: int = 0


class StatusView(BaseModel):
    """Display tokens derived from a status."""
    label: str
    text: str
    color: str
    icon: str
    icon_background: str


class ActivityItem(BaseModel):
    id: str
    human_readable_id: str
    text: str
    time_ago: str
    status: str
    color: str
    icon: str
    icon_background: str
    user_email: str


class PercentageChange(BaseModel):
    today: int = 0
    yesterday: int = 0
    change: float = 0.0
    formatted: str = "0.0%"
    trend: str = "flat"


class DashboardView(BaseModel):
    statistics: DashboardStatistics
    recent_activity: list[ActivityItem] = Field(default_factory=list)
    percentages: dict[str, PercentageChange] = Field(default_factory=dict)
