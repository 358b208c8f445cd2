"""
app/services/csv_ingestion_service.py

Background pipeline that ingests one uploaded CSV of monthly impact reports.

The run is two-pass:

    1. Parse the byte stream into an ordered list of data rows. Column
       names are checked once, on the first data row; a missing column,
       an empty file or unreadable CSV fails the whole job before any row
       is written.
    2. Validate and upsert each row in source order, writing a full
       progress snapshot to the job after every row so polling clients see
       the counts advance.

Row-level problems (validation or persistence) never abort the run: the row
is counted as failed, its messages are appended, and the job still reaches
``completed``. The byte source is released exactly once on every exit path.
"""

from __future__ import annotations

import csv
import io
import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, BinaryIO, Protocol

from app.config import get_csv_ingestion_settings
from app.domain.impact_report import ImpactReportInput, IngestionSummary
from app.logging_utils import log_event
from app.validators.header_validator import project_row, validate_headers
from app.validators.report_validator import ReportValidator
from db.models.ingestion_job import IngestionJobStatus
from db.repositories.errors import ReportPersistenceError
from db.repositories.types import JobProgress

logger = logging.getLogger(__name__)

EMPTY_FILE_MESSAGE = "CSV file is empty or contains no data rows"


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


class JobStateStore(Protocol):
    def save_progress(self, job_id: uuid.UUID, progress: JobProgress) -> None:
        ...


class RecordStore(Protocol):
    def upsert_report(self, report: ImpactReportInput) -> None:
        ...


class CSVStreamError(ValueError):
    """
    Raised while parsing when the CSV text itself is malformed.
    """


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


@dataclass
class _ParsedSource:
    rows: list[tuple[int, dict[str, Any]]] = field(default_factory=list)
    failure_message: str | None = None


@dataclass
class _RunProgress:
    total_rows: int = 0
    processed_rows: int = 0
    successful_rows: int = 0
    failed_rows: int = 0
    error_messages: list[str] = field(default_factory=list)

    def snapshot(self, status: str) -> JobProgress:
        return JobProgress(
            status=status,
            total_rows=self.total_rows,
            processed_rows=self.processed_rows,
            successful_rows=self.successful_rows,
            failed_rows=self.failed_rows,
            error_messages=tuple(self.error_messages),
        )


class _OwnedSource:
    """
    Wraps the byte source so it is closed once, whichever path closes it first.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._released = False

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        try:
            self._stream.close()
        except OSError:
            logger.warning("Failed to close CSV byte source", exc_info=True)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class CSVIngestionPipeline:
    """
    Streams, validates and persists one CSV upload for one ingestion job.
    """

    def __init__(
        self,
        *,
        row_delay_seconds: float = 0.0,
        log_validation_errors: bool = True,
        validator: ReportValidator | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._row_delay_seconds = max(0.0, row_delay_seconds)
        self._log_validation_errors = log_validation_errors
        self._validator = validator or ReportValidator()
        self._sleep = sleep

    def run(
        self,
        *,
        source: BinaryIO,
        job_id: uuid.UUID,
        job_store: JobStateStore,
        record_store: RecordStore,
    ) -> IngestionSummary:
        """
        Process ``source`` to a terminal job state and return the run summary.

        The job must already exist in ``pending`` state. Nothing is raised:
        data and per-row store problems are reported through job state and
        the summary, and a fault while writing job state moves the job to
        ``failed`` with the counters reached so far.
        """

        owned_source = _OwnedSource(source)
        progress = _RunProgress()
        try:
            parsed = self._read_source(source)
            if parsed.failure_message is not None:
                owned_source.release()
                return self._reject(job_id=job_id, job_store=job_store, message=parsed.failure_message)
            if not parsed.rows:
                owned_source.release()
                return self._reject(job_id=job_id, job_store=job_store, message=EMPTY_FILE_MESSAGE)

            return self._process_rows(
                rows=parsed.rows,
                progress=progress,
                job_id=job_id,
                job_store=job_store,
                record_store=record_store,
            )
        except Exception as exc:
            return self._abort(job_id=job_id, job_store=job_store, progress=progress, exc=exc)
        finally:
            owned_source.release()

    # ------------------------------------------------------------------
    # Pass 1: parse
    # ------------------------------------------------------------------

    def _read_source(self, source: BinaryIO) -> _ParsedSource:
        text_stream = io.TextIOWrapper(source, encoding="utf-8-sig", newline="")
        try:
            return self._collect_rows(text_stream)
        except UnicodeDecodeError:
            return _ParsedSource(failure_message="CSV parse error: file must be UTF-8 encoded")
        except (csv.Error, CSVStreamError) as exc:
            return _ParsedSource(failure_message=f"CSV parse error: {exc}")
        finally:
            try:
                text_stream.detach()
            except ValueError:
                pass

    def _collect_rows(self, text_stream: io.TextIOWrapper) -> _ParsedSource:
        reader = csv.DictReader(text_stream, strict=True)
        parsed = _ParsedSource()
        column_map: dict[str, str] | None = None

        for raw_row in reader:
            if _is_blank_row(raw_row):
                continue

            expected = len(reader.fieldnames or ())
            if None in raw_row or any(value is None for value in raw_row.values()):
                found = sum(1 for key, value in raw_row.items() if key is not None and value is not None)
                found += len(raw_row.get(None) or ())
                raise CSVStreamError(
                    f"line {reader.line_num}: expected {expected} fields but found {found}"
                )

            if column_map is None:
                headers = validate_headers(reader.fieldnames or ())
                if not headers.is_valid:
                    log_event(
                        logger,
                        logging.INFO,
                        "csv_header_validation_failed",
                        headers=list(reader.fieldnames or ()),
                        missing=headers.missing_columns,
                    )
                    return _ParsedSource(failure_message=headers.error)
                column_map = headers.column_map

            parsed.rows.append((len(parsed.rows) + 1, project_row(raw_row, column_map)))

        return parsed

    # ------------------------------------------------------------------
    # Pass 2: validate + persist
    # ------------------------------------------------------------------

    def _process_rows(
        self,
        *,
        rows: list[tuple[int, dict[str, Any]]],
        progress: _RunProgress,
        job_id: uuid.UUID,
        job_store: JobStateStore,
        record_store: RecordStore,
    ) -> IngestionSummary:
        progress.total_rows = len(rows)
        job_store.save_progress(job_id, progress.snapshot(IngestionJobStatus.PROCESSING))
        log_event(logger, logging.INFO, "csv_ingestion_started", job_id=job_id, total_rows=progress.total_rows)

        for row_number, record in rows:
            if self._row_delay_seconds:
                self._sleep(self._row_delay_seconds)

            result = self._validator.validate(record, row_number)
            if result.is_valid and result.report is not None:
                try:
                    record_store.upsert_report(result.report)
                    progress.successful_rows += 1
                except ReportPersistenceError as exc:
                    self._fail_row(progress, job_id, f"row {row_number}: persistence: {exc}")
                except Exception as exc:
                    logger.exception("Unexpected record store error job=%s row=%s", job_id, row_number)
                    self._fail_row(
                        progress,
                        job_id,
                        f"row {row_number}: persistence: {type(exc).__name__}: {exc}",
                    )
            else:
                progress.failed_rows += 1
                progress.error_messages.extend(result.error_messages)
                if self._log_validation_errors:
                    for error in result.errors:
                        logger.warning(
                            "CSV validation error job=%s row=%s column=%s message=%s value=%r",
                            job_id,
                            error.row_number,
                            error.column,
                            error.message,
                            error.value,
                        )

            progress.processed_rows += 1
            status = (
                IngestionJobStatus.COMPLETED
                if progress.processed_rows == progress.total_rows
                else IngestionJobStatus.PROCESSING
            )
            job_store.save_progress(job_id, progress.snapshot(status))

        log_event(
            logger,
            logging.INFO,
            "csv_ingestion_completed",
            job_id=job_id,
            total_rows=progress.total_rows,
            successful_rows=progress.successful_rows,
            failed_rows=progress.failed_rows,
        )
        return IngestionSummary(
            status=IngestionJobStatus.COMPLETED,
            total_rows=progress.total_rows,
            successful_rows=progress.successful_rows,
            failed_rows=progress.failed_rows,
            error_messages=list(progress.error_messages),
        )

    @staticmethod
    def _fail_row(progress: _RunProgress, job_id: uuid.UUID, message: str) -> None:
        progress.failed_rows += 1
        progress.error_messages.append(message)
        logger.warning("CSV row persistence failed job=%s %s", job_id, message)

    def _reject(
        self,
        *,
        job_id: uuid.UUID,
        job_store: JobStateStore,
        message: str,
    ) -> IngestionSummary:
        job_store.save_progress(
            job_id,
            JobProgress(status=IngestionJobStatus.FAILED, error_messages=(message,)),
        )
        log_event(logger, logging.WARNING, "csv_ingestion_rejected", job_id=job_id, reason=message)
        return IngestionSummary(
            status=IngestionJobStatus.FAILED,
            total_rows=0,
            successful_rows=0,
            failed_rows=0,
            error_messages=[message],
        )

    def _abort(
        self,
        *,
        job_id: uuid.UUID,
        job_store: JobStateStore,
        progress: _RunProgress,
        exc: Exception,
    ) -> IngestionSummary:
        message = f"Ingestion aborted: {type(exc).__name__}: {exc}"
        logger.exception("CSV ingestion aborted job=%s", job_id)
        progress.error_messages.append(message)
        try:
            job_store.save_progress(job_id, progress.snapshot(IngestionJobStatus.FAILED))
        except Exception:
            logger.exception("Failed to persist aborted ingestion job state job=%s", job_id)

        log_event(
            logger,
            logging.ERROR,
            "csv_ingestion_aborted",
            job_id=job_id,
            processed_rows=progress.processed_rows,
            reason=message,
        )
        return IngestionSummary(
            status=IngestionJobStatus.FAILED,
            total_rows=progress.total_rows,
            successful_rows=progress.successful_rows,
            failed_rows=progress.failed_rows,
            error_messages=list(progress.error_messages),
        )


def _is_blank_row(row: dict[str | None, Any]) -> bool:
    for value in row.values():
        if value is None:
            continue
        if isinstance(value, list):
            if any(str(item).strip() for item in value):
                return False
            continue
        if str(value).strip():
            return False
    return True


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_csv_ingestion_pipeline() -> CSVIngestionPipeline:
    """
    Build and cache the pipeline with env-driven settings.
    """
    settings = get_csv_ingestion_settings()
    return CSVIngestionPipeline(
        row_delay_seconds=settings.row_delay_seconds,
        log_validation_errors=settings.log_validation_errors,
    )
