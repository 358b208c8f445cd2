"""
Repository for ingestion job lifecycle persistence and status lookup.

Every write is checked against the job state machine: terminal jobs are
immutable, counters never decrease, and processed = successful + failed.
"""

from __future__ import annotations

import uuid

from sqlalchemy.orm import Session

from db.models.ingestion_job import IngestionJob, IngestionJobStatus
from db.repositories.errors import JobNotFoundError, JobStateTransitionError
from db.repositories.types import JobProgress


def check_progress(current: IngestionJob, progress: JobProgress) -> None:
    """
    Raise JobStateTransitionError when ``progress`` may not replace ``current``.
    """

    transition = (current.status, progress.status)
    if current.status in IngestionJobStatus.TERMINAL:
        raise JobStateTransitionError(
            f"Ingestion job {current.id} is already {current.status}; no further updates are allowed."
        )
    if transition not in IngestionJobStatus.TRANSITIONS:
        raise JobStateTransitionError(
            f"Invalid ingestion job transition {current.status} -> {progress.status}."
        )
    if progress.processed_rows != progress.successful_rows + progress.failed_rows:
        raise JobStateTransitionError("processed_rows must equal successful_rows + failed_rows.")
    if progress.processed_rows > progress.total_rows:
        raise JobStateTransitionError("processed_rows cannot exceed total_rows.")
    if progress.status == IngestionJobStatus.FAILED:
        return
    if (
        progress.processed_rows < current.processed_rows
        or progress.successful_rows < current.successful_rows
        or progress.failed_rows < current.failed_rows
        or len(progress.error_messages) < len(current.error_messages or [])
    ):
        raise JobStateTransitionError("Ingestion job progress counters cannot decrease.")


class IngestionJobRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_job(
        self,
        *,
        job_id: uuid.UUID | None = None,
        file_name: str | None = None,
        file_size_bytes: int | None = None,
    ) -> IngestionJob:
        job = IngestionJob(
            id=job_id or uuid.uuid4(),
            status=IngestionJobStatus.PENDING,
            total_rows=0,
            processed_rows=0,
            successful_rows=0,
            failed_rows=0,
            error_messages=[],
            file_name=file_name,
            file_size_bytes=file_size_bytes,
        )
        self._session.add(job)
        self._session.flush()
        self._session.refresh(job)
        return job

    def get_job(self, job_id: uuid.UUID) -> IngestionJob | None:
        return self._session.get(IngestionJob, job_id)

    def apply_progress(self, *, job_id: uuid.UUID, progress: JobProgress) -> IngestionJob:
        """
        Overwrite the job's progress fields with one full snapshot.
        """

        job = self.get_job(job_id)
        if job is None:
            raise JobNotFoundError(f"Ingestion job not found: {job_id}")

        check_progress(job, progress)
        job.status = progress.status
        job.total_rows = progress.total_rows
        job.processed_rows = progress.processed_rows
        job.successful_rows = progress.successful_rows
        job.failed_rows = progress.failed_rows
        job.error_messages = list(progress.error_messages)
        return job

    def mark_failed(self, *, job_id: uuid.UUID, error_message: str) -> IngestionJob | None:
        """
        Move a non-terminal job to ``failed``, keeping counters already written.

        Returns None when the job is unknown or already terminal.
        """

        job = self.get_job(job_id)
        if job is None or job.status in IngestionJobStatus.TERMINAL:
            return None

        job.status = IngestionJobStatus.FAILED
        job.error_messages = [*(job.error_messages or []), error_message]
        return job
