"""
app/schemas package marker.
"""

from app.schemas.dashboard import DashboardResponse
from app.schemas.impact_report import (
    ImpactReportData,
    ReportListResponse,
    ReportSubmissionRequest,
    ReportSubmissionResponse,
)
from app.schemas.ingestion_job import IngestionJobStatusResponse, UploadAcceptedResponse

__all__ = [
    "DashboardResponse",
    "ImpactReportData",
    "IngestionJobStatusResponse",
    "ReportListResponse",
    "ReportSubmissionRequest",
    "ReportSubmissionResponse",
    "UploadAcceptedResponse",
]
