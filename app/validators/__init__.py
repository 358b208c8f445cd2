"""
app/validators package marker.
"""

from app.validators.header_validator import HeaderValidationResult, project_row, validate_headers
from app.validators.report_validator import PERIOD_PATTERN, ReportValidator

__all__ = [
    "HeaderValidationResult",
    "PERIOD_PATTERN",
    "ReportValidator",
    "project_row",
    "validate_headers",
]
