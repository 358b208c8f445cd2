"""
In-memory collaborators for pipeline and service tests.
"""

from __future__ import annotations

import io
import uuid
from dataclasses import dataclass, field
from decimal import Decimal

from app.domain.impact_report import ImpactReportInput
from db.models.ingestion_job import IngestionJob, IngestionJobStatus
from db.repositories.errors import JobStateTransitionError, ReportPersistenceError
from db.repositories.ingestion_job_repository import check_progress
from db.repositories.types import JobProgress


class CountingBytesIO(io.BytesIO):
    """BytesIO that records how many times close() was called."""

    def __init__(self, data: bytes = b"") -> None:
        super().__init__(data)
        self.close_calls = 0

    def close(self) -> None:
        self.close_calls += 1
        super().close()


class FakeJobStore:
    """
    Keeps every progress snapshot so tests can assert on the sequence.

    Each write goes through the job repository's transition guard against an
    unsaved IngestionJob; an illegal snapshot is recorded in ``rejected``
    and the guard error is raised to the caller.
    """

    def __init__(self) -> None:
        self.snapshots: list[JobProgress] = []
        self.rejected: list[str] = []
        self.job = IngestionJob(
            id=uuid.uuid4(),
            status=IngestionJobStatus.PENDING,
            total_rows=0,
            processed_rows=0,
            successful_rows=0,
            failed_rows=0,
            error_messages=[],
        )

    @property
    def status(self) -> str:
        return self.job.status

    def save_progress(self, job_id: uuid.UUID, progress: JobProgress) -> None:
        try:
            check_progress(self.job, progress)
        except JobStateTransitionError as exc:
            self.rejected.append(str(exc))
            raise
        self.snapshots.append(progress)
        self.job.status = progress.status
        self.job.total_rows = progress.total_rows
        self.job.processed_rows = progress.processed_rows
        self.job.successful_rows = progress.successful_rows
        self.job.failed_rows = progress.failed_rows
        self.job.error_messages = list(progress.error_messages)

    @property
    def last(self) -> JobProgress:
        return self.snapshots[-1]


@dataclass
class FakeRecordStore:
    """Dict-backed record store keyed by (entity_id, period)."""

    records: dict[tuple[str, str], ImpactReportInput] = field(default_factory=dict)
    fail_for: set[tuple[str, str]] = field(default_factory=set)
    writes: int = 0

    def upsert_report(self, report: ImpactReportInput) -> None:
        key = (report.entity_id, report.period)
        if key in self.fail_for:
            raise ReportPersistenceError("connection reset")
        self.writes += 1
        self.records[key] = report


def csv_bytes(*lines: str) -> bytes:
    return ("\n".join(lines) + "\n").encode("utf-8")


def make_report(
    entity_id: str = "NGO001",
    period: str = "2024-01",
    people_helped: int = 100,
    events_conducted: int = 5,
    funds_utilized: str = "2500.00",
) -> ImpactReportInput:
    return ImpactReportInput(
        entity_id=entity_id,
        period=period,
        people_helped=people_helped,
        events_conducted=events_conducted,
        funds_utilized=Decimal(funds_utilized),
    )
