"""
app/api/routers/ingestion.py

Bulk CSV upload and job-status polling endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_csv_upload
from app.schemas.ingestion_job import IngestionJobData, IngestionJobStatusResponse, UploadAcceptedResponse
from app.services.ingestion_orchestrator_service import (
    FastAPIBackgroundTaskExecutor,
    IngestionOrchestratorService,
    get_ingestion_orchestrator_service,
)
from db.models.ingestion_job import IngestionJob
from db.session import get_db

router = APIRouter(prefix="/api", tags=["ingestion"])


@router.post(
    "/reports/upload",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=UploadAcceptedResponse,
)
def upload_reports_csv(
    background_tasks: BackgroundTasks,
    file: UploadFile = Depends(get_csv_upload),
    db: Session = Depends(get_db),
    orchestrator: IngestionOrchestratorService = Depends(get_ingestion_orchestrator_service),
) -> UploadAcceptedResponse:
    """
    Accept a CSV for background processing and return its job id.
    """

    try:
        job = orchestrator.enqueue_csv_upload(
            db=db,
            executor=FastAPIBackgroundTaskExecutor(background_tasks),
            upload_file=file,
        )
    finally:
        file.file.close()

    return UploadAcceptedResponse(job_id=job.id)


@router.get("/job-status/{job_id}", response_model=IngestionJobStatusResponse)
def get_job_status(
    job_id: str,
    db: Session = Depends(get_db),
    orchestrator: IngestionOrchestratorService = Depends(get_ingestion_orchestrator_service),
) -> IngestionJobStatusResponse:
    try:
        parsed_id = UUID(job_id)
    except ValueError:
        parsed_id = None

    job = orchestrator.get_job_status(db=db, job_id=parsed_id) if parsed_id is not None else None
    if job is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Job not found",
        )
    return IngestionJobStatusResponse(data=_to_job_data(job))


def _to_job_data(job: IngestionJob) -> IngestionJobData:
    return IngestionJobData(
        id=job.id,
        status=job.status,
        total_rows=job.total_rows,
        processed_rows=job.processed_rows,
        successful_rows=job.successful_rows,
        failed_rows=job.failed_rows,
        errors=list(job.error_messages or []),
        file_name=job.file_name,
        created_at=job.created_at,
        updated_at=job.updated_at,
    )
