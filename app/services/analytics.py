"""
Analytics service - Fetches the aggregate snapshot and shapes it into dashboard charts.
"""
from datetime import date
from typing import Callable, Optional
import logging

from ..models.analytics import (
    AnalyticsSnapshot,
    ChartPoint,
    DashboardView,
    OverviewCard,
    lenient_int,
)
from .api_client import BackendClient

logger = logging.getLogger(__name__)

CHART_COLORS = [
    "#667eea",
    "#764ba2",
    "#f093fb",
    "#f5576c",
    "#4facfe",
    "#00f2fe",
    "#43e97b",
    "#38f9d7",
    "#ffecd2",
    "#fcb69f",
]


def default_date_range(today: Optional[date] = None) -> tuple[date, date]:
    """The current calendar year."""
    today = today or date.today()
    return date(today.year, 1, 1), date(today.year, 12, 31)


def chart_series(
    items: Optional[list[dict]],
    name_key: str,
    label: Callable[[str], str] = lambda name: name
) -> list[ChartPoint]:
    """Map backend breakdown rows to chart points."""
    points = []
    for item in items or []:
        name = item.get(name_key)
        if name is None:
            continue
        points.append(ChartPoint(name=label(str(name)), value=lenient_int(item.get("count"))))
    return points


def upper(name: str) -> str:
    return name.upper()


def role_label(role: str) -> str:
    """'super-admin' -> 'SUPER ADMIN'."""
    return role.replace("-", " ", 1).upper()


def underscore_label(name: str) -> str:
    """'general_inquiry' -> 'GENERAL INQUIRY'."""
    return name.replace("_", " ", 1).upper()


def category_percentages(by_category: Optional[list[dict]], total) -> list[ChartPoint]:
    """Inquiry categories with their share of all inquiries."""
    total = lenient_int(total) or 1
    points = []
    for point in chart_series(by_category, "category", underscore_label):
        points.append(point.model_copy(update={
            "percentage": f"{point.value / total * 100:.1f}"
        }))
    return points


def status_count(by_status: Optional[list[dict]], status: str) -> int:
    """Count for one status in a byStatus breakdown, 0 when absent."""
    for item in by_status or []:
        if item.get("status") == status:
            return lenient_int(item.get("count"))
    return 0


def build_dashboard(snapshot: AnalyticsSnapshot) -> DashboardView:
    """Cards and chart series for the analytics dashboard."""
    overview = snapshot.overview
    recent = snapshot.last_30_days
    cards = [
        OverviewCard(key="totalInquiries", title="Total Inquiries", value=overview.total_inquiries),
        OverviewCard(key="totalProjects", title="Total Projects", value=overview.total_projects),
        OverviewCard(key="totalDocuments", title="Total Documents", value=overview.total_documents),
        OverviewCard(key="totalUsers", title="Total Users", value=overview.total_users),
        OverviewCard(key="activeUsers", title="Active Users", value=overview.active_users),
        OverviewCard(key="recentInquiries", title="Recent Inquiries (30d)", value=recent.inquiries),
        OverviewCard(key="recentProjects", title="Recent Projects (30d)", value=recent.projects),
        OverviewCard(
            key="completedProjects", title="Completed Projects (30d)", value=recent.completed_projects
        ),
    ]

    inquiries = snapshot.inquiries
    projects = snapshot.projects
    charts = {
        "documentsByType": chart_series(snapshot.documents.get("byType"), "file_type", upper),
        "usersByRole": chart_series(snapshot.users.get("byRole"), "role", role_label),
        "activityByAction": chart_series(snapshot.activity.get("byAction"), "action", upper),
        "projectsByStatus": chart_series(projects.get("byStatus"), "status"),
        "projectsByCategory": chart_series(projects.get("byCategory"), "category"),
        "projectsByCounty": chart_series(projects.get("byCounty"), "county"),
        "inquiriesByStatus": chart_series(inquiries.get("byStatus"), "status", underscore_label),
        "inquiriesByCategory": category_percentages(inquiries.get("byCategory"), inquiries.get("total")),
    }

    return DashboardView(
        cards=cards,
        charts=charts,
        projects={
            "inProgress": status_count(projects.get("byStatus"), "in_progress"),
            "averageProgress": projects.get("averageProgress"),
            "progress": projects.get("progress") or {},
            "completionRate": projects.get("completionRate"),
            "completedProjects": lenient_int(projects.get("completedProjects")),
        },
        inquiries={
            "pending": status_count(inquiries.get("byStatus"), "pending"),
            "resolved": status_count(inquiries.get("byStatus"), "resolved"),
            "recentResolved": lenient_int(inquiries.get("recentResolved")),
            "averageResolutionTimeHours": inquiries.get("averageResolutionTimeHours"),
        },
        colors=CHART_COLORS,
    )


class AnalyticsService:
    """Loads analytics from the backend."""

    def __init__(self, client: BackendClient):
        self.client = client

    async def snapshot(self, token: str) -> AnalyticsSnapshot:
        body = await self.client.get("/api/analytics", token)
        return AnalyticsSnapshot(**(body.get("data") or {}))

    async def dashboard(self, token: str) -> DashboardView:
        return build_dashboard(await self.snapshot(token))
