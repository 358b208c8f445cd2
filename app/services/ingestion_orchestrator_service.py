"""
Background dispatch of bulk CSV uploads and job-status lookup.

The request path only spools the upload and registers a pending job; every
CSV row is read later, in a background task with its own session.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import uuid
from collections.abc import Callable
from functools import lru_cache
from typing import Any, Protocol

from fastapi import BackgroundTasks, UploadFile
from sqlalchemy.orm import Session, sessionmaker

from app.services.csv_ingestion_service import CSVIngestionPipeline, get_csv_ingestion_pipeline
from app.services.ingestion_stores import SessionJobStateStore, SessionRecordStore
from db.models.ingestion_job import IngestionJob
from db.repositories.ingestion_job_repository import IngestionJobRepository

logger = logging.getLogger(__name__)

_COPY_CHUNK_BYTES = 1024 * 1024


class IngestionTaskExecutor(Protocol):
    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        ...


class FastAPIBackgroundTaskExecutor:
    """
    Runs the task after the response is sent, off the request's critical path.
    """

    def __init__(self, background_tasks: BackgroundTasks) -> None:
        self._background_tasks = background_tasks

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        self._background_tasks.add_task(task, *args, **kwargs)


class IngestionOrchestratorService:
    """
    Coordinates job creation, background execution, and failure bookkeeping.
    """

    def __init__(
        self,
        *,
        session_factory: sessionmaker[Session] | Callable[[], Session] | None = None,
        pipeline: CSVIngestionPipeline | None = None,
    ) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory = SessionLocal
        else:
            self._session_factory = session_factory

        self._pipeline = pipeline or get_csv_ingestion_pipeline()

    def enqueue_csv_upload(
        self,
        *,
        db: Session,
        executor: IngestionTaskExecutor,
        upload_file: UploadFile,
    ) -> IngestionJob:
        """
        Register a pending job for ``upload_file`` and schedule its processing.

        Returns as soon as the job row is committed; no CSV row has been read.
        """

        temp_file_path, file_size = self._persist_temp_upload(upload_file)
        repository = IngestionJobRepository(db)
        try:
            job = repository.create_job(
                job_id=uuid.uuid4(),
                file_name=upload_file.filename or "upload.csv",
                file_size_bytes=file_size,
            )
            db.commit()
        except Exception:
            db.rollback()
            self._delete_file_quietly(temp_file_path)
            raise

        try:
            executor.submit(self._run_csv_ingestion_job, job.id, temp_file_path)
        except Exception:
            self._delete_file_quietly(temp_file_path)
            repository.mark_failed(
                job_id=job.id,
                error_message="Failed to schedule CSV ingestion job.",
            )
            db.commit()
            raise

        logger.info("CSV ingestion job queued id=%s file=%s bytes=%d", job.id, job.file_name, file_size)
        return job

    def get_job_status(self, *, db: Session, job_id: uuid.UUID) -> IngestionJob | None:
        return IngestionJobRepository(db).get_job(job_id)

    def _run_csv_ingestion_job(self, job_id: uuid.UUID, temp_file_path: str) -> None:
        with self._session_factory() as db:
            try:
                file_handle = open(temp_file_path, "rb")
                summary = self._pipeline.run(
                    source=file_handle,
                    job_id=job_id,
                    job_store=SessionJobStateStore(db),
                    record_store=SessionRecordStore(db),
                )
                logger.info(
                    "CSV ingestion job finished id=%s status=%s total=%d ok=%d failed=%d",
                    job_id,
                    summary.status,
                    summary.total_rows,
                    summary.successful_rows,
                    summary.failed_rows,
                )
            except Exception as exc:
                self._mark_job_failed(db=db, job_id=job_id, exc=exc)
            finally:
                self._delete_file_quietly(temp_file_path)

    def _mark_job_failed(self, *, db: Session, job_id: uuid.UUID, exc: Exception) -> None:
        repository = IngestionJobRepository(db)
        error_message = f"Ingestion aborted: {type(exc).__name__}: {exc}"
        logger.exception("Ingestion job failed id=%s error=%s", job_id, error_message)
        try:
            db.rollback()
            failed_job = repository.mark_failed(job_id=job_id, error_message=error_message[:2000])
            if failed_job is None:
                logger.error("Unable to mark ingestion job as failed (missing or terminal) id=%s", job_id)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Failed to persist failed ingestion job state id=%s", job_id)

    def _persist_temp_upload(self, upload_file: UploadFile) -> tuple[str, int]:
        """
        Copy the request body to a temp file the background task can reopen
        after the request's own upload buffer is gone.
        """

        upload_file.file.seek(0)
        with tempfile.NamedTemporaryFile(delete=False, prefix="impact_upload_", suffix=".csv") as temp_file:
            shutil.copyfileobj(upload_file.file, temp_file, _COPY_CHUNK_BYTES)
            return temp_file.name, temp_file.tell()

    def _delete_file_quietly(self, file_path: str) -> None:
        try:
            os.remove(file_path)
        except FileNotFoundError:
            pass
        except OSError:
            logger.warning("Could not remove spooled upload path=%s", file_path, exc_info=True)


@lru_cache(maxsize=1)
def get_ingestion_orchestrator_service() -> IngestionOrchestratorService:
    return IngestionOrchestratorService()
