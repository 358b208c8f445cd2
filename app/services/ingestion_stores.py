"""
Session-backed stores handed to the CSV ingestion pipeline.

Both commit after every write: each upserted row and each progress
snapshot becomes visible to other sessions (and polling clients) as soon as
it is written.
"""

from __future__ import annotations

import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.impact_report import ImpactReportInput
from db.repositories.errors import ReportPersistenceError
from db.repositories.impact_report_repository import ImpactReportRepository
from db.repositories.ingestion_job_repository import IngestionJobRepository
from db.repositories.types import JobProgress


class SessionJobStateStore:
    def __init__(self, session: Session) -> None:
        self._session = session
        self._repository = IngestionJobRepository(session)

    def save_progress(self, job_id: uuid.UUID, progress: JobProgress) -> None:
        try:
            self._repository.apply_progress(job_id=job_id, progress=progress)
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise


class SessionRecordStore:
    def __init__(self, session: Session) -> None:
        self._session = session
        self._repository = ImpactReportRepository(session)

    def upsert_report(self, report: ImpactReportInput) -> None:
        try:
            self._repository.upsert_report(
                entity_id=report.entity_id,
                period=report.period,
                people_helped=report.people_helped,
                events_conducted=report.events_conducted,
                funds_utilized=report.funds_utilized,
            )
            self._session.commit()
        except ReportPersistenceError:
            self._session.rollback()
            raise
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise ReportPersistenceError(str(exc)) from exc
