"""
app/services package marker.
"""

from app.services.csv_ingestion_service import (
    CSVIngestionPipeline,
    CSVStreamError,
    get_csv_ingestion_pipeline,
)
from app.services.dashboard_service import (
    DashboardFilterError,
    DashboardQuery,
    DashboardResult,
    DashboardService,
    get_dashboard_service,
)
from app.services.report_service import (
    ReportService,
    ReportSubmissionResult,
    get_report_service,
)

__all__ = [
    "CSVIngestionPipeline",
    "CSVStreamError",
    "get_csv_ingestion_pipeline",
    "DashboardFilterError",
    "DashboardQuery",
    "DashboardResult",
    "DashboardService",
    "get_dashboard_service",
    "ReportService",
    "ReportSubmissionResult",
    "get_report_service",
]
