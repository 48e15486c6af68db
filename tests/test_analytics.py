"""Tests for the analytics dashboard and reports."""
from datetime import date
import httpx
import pytest

from app.models.analytics import AnalyticsSnapshot, lenient_int
from app.services.analytics import (
    AnalyticsService,
    build_dashboard,
    category_percentages,
    default_date_range,
    role_label,
    underscore_label,
)
from app.services.api_client import BackendClient
from app.services.errors import FormValidationError
from app.services.reports import ReportService, ReportType, report_params


SNAPSHOT = {
    "overview": {"totalInquiries": "40", "totalProjects": 12, "totalUsers": "7.9", "activeUsers": None},
    "trends": {"last30Days": {"inquiries": 5, "projects": "3", "completedProjects": 1}},
    "inquiries": {
        "total": "40",
        "byStatus": [{"status": "pending", "count": "10"}, {"status": "resolved", "count": 30}],
        "byCategory": [{"category": "general_inquiry", "count": 30}, {"category": "volunteer", "count": 10}],
        "recentResolved": "4",
    },
    "projects": {
        "byStatus": [{"status": "in_progress", "count": 6}, {"status": "completed", "count": 6}],
        "byCounty": [{"county": "Kitui", "count": 4}, {"county": None, "count": 2}],
        "averageProgress": 55.5,
    },
    "documents": {"byType": [{"file_type": "pdf", "count": 9}]},
    "users": {"byRole": [{"role": "super-admin", "count": 1}, {"role": "content-editor-lead", "count": 2}]},
    "activity": None,
}


class TestCounts:
    """Test lenient count parsing."""

    def test_lenient_int(self):
        """Counts accept numeric strings and fall back to 0."""
        assert lenient_int("12") == 12
        assert lenient_int("12.9") == 12
        assert lenient_int(" 7 items") == 7
        assert lenient_int("n/a") == 0
        assert lenient_int(None) == 0
        assert lenient_int(3.7) == 3


class TestDashboard:
    """Test card and chart shaping."""

    def test_cards(self):
        """Overview and 30-day cards are built from lenient counts."""
        view = build_dashboard(AnalyticsSnapshot(**SNAPSHOT))
        values = {card.key: card.value for card in view.cards}
        assert len(view.cards) == 8
        assert values["totalInquiries"] == 40
        assert values["totalUsers"] == 7
        assert values["activeUsers"] == 0
        assert values["totalDocuments"] == 0
        assert values["recentProjects"] == 3
        assert values["completedProjects"] == 1

    def test_chart_labels(self):
        """Chart names follow each breakdown's label rule."""
        charts = build_dashboard(AnalyticsSnapshot(**SNAPSHOT)).charts
        assert [p.name for p in charts["documentsByType"]] == ["PDF"]
        assert [p.name for p in charts["usersByRole"]] == ["SUPER ADMIN", "CONTENT EDITOR-LEAD"]
        assert [p.name for p in charts["projectsByCounty"]] == ["Kitui"]
        assert charts["activityByAction"] == []

    def test_inquiry_status_labels(self):
        """Inquiry statuses are shown with spaces and upper-cased."""
        snapshot = AnalyticsSnapshot(inquiries={"byStatus": [
            {"status": "in_progress", "count": 3},
            {"status": "pending", "count": 1},
        ]})
        points = build_dashboard(snapshot).charts["inquiriesByStatus"]
        assert [(p.name, p.value) for p in points] == [("IN PROGRESS", 3), ("PENDING", 1)]
        assert underscore_label("general_inquiry") == "GENERAL INQUIRY"

    def test_inquiry_percentages(self):
        """Inquiry categories carry their share of the total."""
        points = build_dashboard(AnalyticsSnapshot(**SNAPSHOT)).charts["inquiriesByCategory"]
        assert [(p.name, p.percentage) for p in points] == [
            ("GENERAL INQUIRY", "75.0"),
            ("VOLUNTEER", "25.0"),
        ]

    def test_percentages_with_zero_total(self):
        """A zero total divides by one instead."""
        points = category_percentages([{"category": "other", "count": 2}], 0)
        assert points[0].percentage == "200.0"

    def test_status_summaries(self):
        """Status breakdowns feed the project and inquiry summaries."""
        view = build_dashboard(AnalyticsSnapshot(**SNAPSHOT))
        assert view.projects["inProgress"] == 6
        assert view.projects["averageProgress"] == 55.5
        assert view.inquiries == {
            "pending": 10,
            "resolved": 30,
            "recentResolved": 4,
            "averageResolutionTimeHours": None,
        }

    def test_empty_snapshot(self):
        """An empty snapshot yields zero cards and empty charts."""
        view = build_dashboard(AnalyticsSnapshot())
        assert all(card.value == 0 for card in view.cards)
        assert all(points == [] for points in view.charts.values())

    def test_role_label(self):
        """Roles without a hyphen are only upper-cased."""
        assert role_label("admin") == "ADMIN"

    def test_default_range_is_calendar_year(self):
        """Reports default to the current calendar year."""
        assert default_date_range(date(2025, 6, 15)) == (date(2025, 1, 1), date(2025, 12, 31))

    @pytest.mark.asyncio
    async def test_service_loads_snapshot(self):
        """The service fetches /api/analytics and shapes the dashboard."""
        def handler(request):
            assert request.url.path == "/api/analytics"
            return httpx.Response(200, json={"success": True, "data": SNAPSHOT})

        client = BackendClient(base_url="http://backend", transport=httpx.MockTransport(handler))
        view = await AnalyticsService(client).dashboard("tok")
        assert view.cards[0].value == 40


class TestReports:
    """Test report parameters and export."""

    def test_params(self):
        """Report query uses ISO dates and the report type."""
        params = report_params(date(2025, 1, 1), date(2025, 3, 31), ReportType.PROJECTS)
        assert params == {"startDate": "2025-01-01", "endDate": "2025-03-31", "reportType": "projects"}

    def test_end_before_start(self):
        """An end date before the start date is rejected."""
        with pytest.raises(FormValidationError):
            report_params(date(2025, 3, 1), date(2025, 1, 1), ReportType.ALL)

    @pytest.mark.asyncio
    async def test_export_falls_back_to_dated_filename(self):
        """Without Content-Disposition the export is named after the range."""
        def handler(request):
            assert request.url.params["reportType"] == "all"
            return httpx.Response(200, content=b"DOCX")

        client = BackendClient(base_url="http://backend", transport=httpx.MockTransport(handler))
        download = await ReportService(client).export_word("tok", date(2025, 1, 1), date(2025, 12, 31), ReportType.ALL)
        assert download.filename == "activity_report_2025-01-01_to_2025-12-31.docx"
        assert download.content == b"DOCX"
