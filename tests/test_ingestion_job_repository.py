from __future__ import annotations

import uuid
from unittest.mock import MagicMock

import pytest

from db.models.ingestion_job import IngestionJob, IngestionJobStatus
from db.repositories.errors import JobNotFoundError, JobStateTransitionError
from db.repositories.ingestion_job_repository import IngestionJobRepository, check_progress
from db.repositories.types import JobProgress


def _job(status: str = IngestionJobStatus.PENDING, **counts: int) -> IngestionJob:
    return IngestionJob(
        id=uuid.uuid4(),
        status=status,
        total_rows=counts.get("total_rows", 0),
        processed_rows=counts.get("processed_rows", 0),
        successful_rows=counts.get("successful_rows", 0),
        failed_rows=counts.get("failed_rows", 0),
        error_messages=[],
    )


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "current, target",
    [
        (IngestionJobStatus.PENDING, IngestionJobStatus.PROCESSING),
        (IngestionJobStatus.PENDING, IngestionJobStatus.FAILED),
        (IngestionJobStatus.PROCESSING, IngestionJobStatus.PROCESSING),
        (IngestionJobStatus.PROCESSING, IngestionJobStatus.COMPLETED),
        (IngestionJobStatus.PROCESSING, IngestionJobStatus.FAILED),
    ],
)
def test_allowed_transitions(current: str, target: str) -> None:
    check_progress(_job(current), JobProgress(status=target))


@pytest.mark.parametrize(
    "current, target",
    [
        (IngestionJobStatus.PENDING, IngestionJobStatus.COMPLETED),
        (IngestionJobStatus.PENDING, IngestionJobStatus.PENDING),
        (IngestionJobStatus.PROCESSING, IngestionJobStatus.PENDING),
        (IngestionJobStatus.COMPLETED, IngestionJobStatus.PROCESSING),
        (IngestionJobStatus.COMPLETED, IngestionJobStatus.FAILED),
        (IngestionJobStatus.FAILED, IngestionJobStatus.PROCESSING),
        (IngestionJobStatus.FAILED, IngestionJobStatus.FAILED),
    ],
)
def test_rejected_transitions(current: str, target: str) -> None:
    with pytest.raises(JobStateTransitionError):
        check_progress(_job(current), JobProgress(status=target))


def test_processed_must_equal_successful_plus_failed() -> None:
    progress = JobProgress(
        status=IngestionJobStatus.PROCESSING,
        total_rows=5,
        processed_rows=3,
        successful_rows=1,
        failed_rows=1,
    )
    with pytest.raises(JobStateTransitionError, match="successful_rows"):
        check_progress(_job(IngestionJobStatus.PROCESSING, total_rows=5), progress)


def test_processed_cannot_exceed_total() -> None:
    progress = JobProgress(
        status=IngestionJobStatus.PROCESSING,
        total_rows=2,
        processed_rows=3,
        successful_rows=3,
    )
    with pytest.raises(JobStateTransitionError, match="total_rows"):
        check_progress(_job(IngestionJobStatus.PROCESSING, total_rows=2), progress)


def test_counters_cannot_decrease() -> None:
    current = _job(
        IngestionJobStatus.PROCESSING,
        total_rows=5,
        processed_rows=3,
        successful_rows=3,
    )
    progress = JobProgress(
        status=IngestionJobStatus.PROCESSING,
        total_rows=5,
        processed_rows=2,
        successful_rows=2,
    )
    with pytest.raises(JobStateTransitionError, match="cannot decrease"):
        check_progress(current, progress)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


def test_create_job_starts_pending_with_zero_counts() -> None:
    session = MagicMock()
    repository = IngestionJobRepository(session)

    job = repository.create_job(file_name="reports.csv", file_size_bytes=128)

    assert job.status == IngestionJobStatus.PENDING
    assert (job.total_rows, job.processed_rows, job.successful_rows, job.failed_rows) == (0, 0, 0, 0)
    assert job.error_messages == []
    assert job.file_name == "reports.csv"
    session.add.assert_called_once_with(job)
    session.flush.assert_called_once()


def test_apply_progress_overwrites_snapshot() -> None:
    job = _job(IngestionJobStatus.PROCESSING, total_rows=2, processed_rows=1, successful_rows=1)
    session = MagicMock()
    session.get.return_value = job

    IngestionJobRepository(session).apply_progress(
        job_id=job.id,
        progress=JobProgress(
            status=IngestionJobStatus.COMPLETED,
            total_rows=2,
            processed_rows=2,
            successful_rows=1,
            failed_rows=1,
            error_messages=("row 2: period: is required",),
        ),
    )

    assert job.status == IngestionJobStatus.COMPLETED
    assert job.processed_rows == 2
    assert job.failed_rows == 1
    assert job.error_messages == ["row 2: period: is required"]


def test_apply_progress_unknown_job() -> None:
    session = MagicMock()
    session.get.return_value = None

    with pytest.raises(JobNotFoundError):
        IngestionJobRepository(session).apply_progress(
            job_id=uuid.uuid4(),
            progress=JobProgress(status=IngestionJobStatus.PROCESSING),
        )


def test_mark_failed_appends_message_and_keeps_counts() -> None:
    job = _job(IngestionJobStatus.PROCESSING, total_rows=4, processed_rows=2, successful_rows=2)
    job.error_messages = ["row 1: period: is required"]
    session = MagicMock()
    session.get.return_value = job

    result = IngestionJobRepository(session).mark_failed(job_id=job.id, error_message="Ingestion aborted")

    assert result is job
    assert job.status == IngestionJobStatus.FAILED
    assert job.processed_rows == 2
    assert job.error_messages == ["row 1: period: is required", "Ingestion aborted"]


def test_mark_failed_ignores_terminal_job() -> None:
    job = _job(IngestionJobStatus.COMPLETED)
    session = MagicMock()
    session.get.return_value = job

    assert IngestionJobRepository(session).mark_failed(job_id=job.id, error_message="late") is None
    assert job.status == IngestionJobStatus.COMPLETED
