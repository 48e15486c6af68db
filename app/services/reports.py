"""
Reports service - Activity report preview and Word export.
"""
from datetime import date
from enum import Enum
import logging

from .api_client import BackendClient, Download
from .errors import FormValidationError

logger = logging.getLogger(__name__)


class ReportType(str, Enum):
    ALL = "all"
    PROJECTS = "projects"
    INQUIRIES = "inquiries"
    DOCUMENTS = "documents"
    ACTIVITIES = "activities"


def report_params(start: date, end: date, report_type: ReportType) -> dict:
    if end < start:
        raise FormValidationError(["End date must be on or after the start date"])
    return {
        "startDate": start.isoformat(),
        "endDate": end.isoformat(),
        "reportType": report_type.value,
    }


def default_report_filename(start: date, end: date) -> str:
    return f"activity_report_{start.isoformat()}_to_{end.isoformat()}.docx"


class ReportService:

    def __init__(self, client: BackendClient):
        self.client = client

    async def preview(self, token: str, start: date, end: date, report_type: ReportType) -> dict:
        body = await self.client.get(
            "/api/reports/data", token, params=report_params(start, end, report_type)
        )
        return body.get("data") or {}

    async def export_word(self, token: str, start: date, end: date, report_type: ReportType) -> Download:
        """Generate the Word report; falls back to a dated filename when none is suggested."""
        download = await self.client.download(
            "/api/reports/word", token, params=report_params(start, end, report_type)
        )
        if not download.filename:
            download.filename = default_report_filename(start, end)
        logger.info(f"Exported report {download.filename} ({len(download.content)} bytes)")
        return download
