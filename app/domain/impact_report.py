"""
app/domain/impact_report.py

Domain models shared by single-report submission and bulk CSV ingestion.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class ImpactReportInput:
    """
    Normalized report ready for the record store.
    """

    entity_id: str
    period: str
    people_helped: int
    events_conducted: int
    funds_utilized: Decimal


@dataclass(frozen=True)
class RowValidationError:
    """
    One field-level validation error.

    ``row_number`` is the 1-based data-row index for CSV rows and None for
    single submissions.
    """

    column: str
    message: str
    row_number: int | None = None
    value: str | None = None

    def format(self) -> str:
        text = f"{self.column}: {self.message}"
        if self.row_number is None:
            return text
        return f"row {self.row_number}: {text}"


@dataclass(frozen=True)
class ReportValidationResult:
    """
    Outcome of validating one candidate report.
    """

    report: ImpactReportInput | None
    errors: list[RowValidationError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors and self.report is not None

    @property
    def error_messages(self) -> list[str]:
        return [error.format() for error in self.errors]


@dataclass(frozen=True)
class IngestionSummary:
    """
    End-of-run summary returned by the CSV ingestion pipeline.

    ``status`` is the terminal job status written for the run.
    """

    status: str
    total_rows: int
    successful_rows: int
    failed_rows: int
    error_messages: list[str] = field(default_factory=list)
