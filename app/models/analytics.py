"""
Analytics models - Aggregated dashboard metrics and chart series.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional
import re

LEADING_INT = re.compile(r"\s*[-+]?\d+")


def lenient_int(value) -> int:
    """Parse counts that may arrive as strings ('12', '12.5'); anything unparsable is 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    match = LEADING_INT.match(str(value))
    return int(match.group()) if match else 0


class Overview(BaseModel):
    total_inquiries: int = Field(0, alias="totalInquiries")
    total_projects: int = Field(0, alias="totalProjects")
    total_documents: int = Field(0, alias="totalDocuments")
    total_users: int = Field(0, alias="totalUsers")
    active_users: int = Field(0, alias="activeUsers")

    model_config = {"populate_by_name": True}

    @field_validator("*", mode="before")
    @classmethod
    def parse_count(cls, v):
        return lenient_int(v)


class RecentTrend(BaseModel):
    """Counts over the last 30 days."""
    inquiries: int = 0
    resolved_inquiries: int = Field(0, alias="resolvedInquiries")
    projects: int = 0
    completed_projects: int = Field(0, alias="completedProjects")
    documents: int = 0

    model_config = {"populate_by_name": True}

    @field_validator("*", mode="before")
    @classmethod
    def parse_count(cls, v):
        return lenient_int(v)


class AnalyticsSnapshot(BaseModel):
    """Raw analytics payload with every section optional."""
    overview: Overview = Field(default_factory=Overview)
    trends: dict = Field(default_factory=dict)
    inquiries: dict = Field(default_factory=dict)
    projects: dict = Field(default_factory=dict)
    documents: dict = Field(default_factory=dict)
    users: dict = Field(default_factory=dict)
    activity: dict = Field(default_factory=dict)

    @field_validator("overview", "trends", "inquiries", "projects", "documents", "users", "activity", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or {}

    @property
    def last_30_days(self) -> RecentTrend:
        return RecentTrend(**(self.trends.get("last30Days") or {}))


class ChartPoint(BaseModel):
    """A named value for pie/bar charts."""
    name: str
    value: int
    percentage: Optional[str] = Field(None, description="Share of total, one decimal")


class OverviewCard(BaseModel):
    key: str
    title: str
    value: int


class DashboardView(BaseModel):
    """Everything the dashboard renders."""
    cards: list[OverviewCard]
    charts: dict[str, list[ChartPoint]]
    projects: dict = Field(default_factory=dict)
    inquiries: dict = Field(default_factory=dict)
    colors: list[str]
