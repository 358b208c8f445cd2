"""
app/domain package marker.
"""

from app.domain.impact_report import (
    ImpactReportInput,
    IngestionSummary,
    ReportValidationResult,
    RowValidationError,
)

__all__ = [
    "ImpactReportInput",
    "IngestionSummary",
    "ReportValidationResult",
    "RowValidationError",
]
