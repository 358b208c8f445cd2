"""
app/services/report_service.py

Single impact-report submission and plain report listing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Mapping, Protocol, Sequence

from sqlalchemy.orm import Session

from app.domain.impact_report import ImpactReportInput
from app.validators.report_validator import ReportValidator
from db.models.impact_report import ImpactReport
from db.repositories.errors import ReportPersistenceError
from db.repositories.impact_report_repository import ImpactReportRepository

logger = logging.getLogger(__name__)


class ReportWriter(Protocol):
    def upsert_report(
        self,
        *,
        entity_id: str,
        period: str,
        people_helped: int,
        events_conducted: int,
        funds_utilized: Any,
    ) -> Any:
        ...

    def list_reports(self, *, period: str | None = None) -> Sequence[Any]:
        ...


@dataclass(frozen=True)
class ReportSubmissionResult:
    """
    ``errors`` holds every validation message when ``success`` is False.
    """

    success: bool
    report: ImpactReportInput | None = None
    errors: list[str] = field(default_factory=list)


class ReportService:
    """
    Validates and upserts one report submitted as a structured record.
    """

    def __init__(self, validator: ReportValidator | None = None) -> None:
        self._validator = validator or ReportValidator()

    def submit_report(
        self,
        *,
        payload: Mapping[str, Any],
        db: Session,
        repository: ReportWriter | None = None,
    ) -> ReportSubmissionResult:
        """
        Upsert ``payload`` keyed by (entity_id, period); last write wins.

        Validation failures come back as a message list. Raises
        ReportPersistenceError when the store rejects a valid report.
        """

        result = self._validator.validate(payload)
        if not result.is_valid or result.report is None:
            return ReportSubmissionResult(success=False, errors=result.error_messages)

        report = result.report
        writer = repository or ImpactReportRepository(db)
        try:
            writer.upsert_report(
                entity_id=report.entity_id,
                period=report.period,
                people_helped=report.people_helped,
                events_conducted=report.events_conducted,
                funds_utilized=report.funds_utilized,
            )
            db.commit()
        except ReportPersistenceError:
            db.rollback()
            logger.exception("Report upsert failed entity_id=%s period=%s", report.entity_id, report.period)
            raise

        logger.info("Report stored entity_id=%s period=%s", report.entity_id, report.period)
        return ReportSubmissionResult(success=True, report=report)

    def list_reports(
        self,
        *,
        db: Session,
        period: str | None = None,
        repository: ReportWriter | None = None,
    ) -> list[ImpactReport]:
        reader = repository or ImpactReportRepository(db)
        return list(reader.list_reports(period=period))


@lru_cache(maxsize=1)
def get_report_service() -> ReportService:
    return ReportService()
