"""
app/api/routers/reports.py

Single-report submission and report listing endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.schemas.impact_report import (
    ImpactReportData,
    ReportListResponse,
    ReportSubmissionRequest,
    ReportSubmissionResponse,
    StoredReportResponse,
)
from app.services.report_service import ReportService, get_report_service
from db.repositories.errors import ReportPersistenceError
from db.session import get_db

router = APIRouter(prefix="/api", tags=["reports"])


@router.post(
    "/report",
    status_code=status.HTTP_201_CREATED,
    response_model=ReportSubmissionResponse,
    responses={400: {"model": ReportSubmissionResponse}},
)
def submit_report(
    body: ReportSubmissionRequest,
    db: Session = Depends(get_db),
    report_service: ReportService = Depends(get_report_service),
) -> ReportSubmissionResponse | JSONResponse:
    """
    Create or replace the report for one organization and month.
    """

    try:
        result = report_service.submit_report(payload=body.model_dump(), db=db)
    except ReportPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to submit report.",
        ) from exc

    if not result.success or result.report is None:
        rejected = ReportSubmissionResponse(success=False, errors=result.errors)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=rejected.model_dump(mode="json", by_alias=True),
        )

    report = result.report
    return ReportSubmissionResponse(
        success=True,
        message="Report submitted successfully",
        data=ImpactReportData(
            entity_id=report.entity_id,
            period=report.period,
            people_helped=report.people_helped,
            events_conducted=report.events_conducted,
            funds_utilized=float(report.funds_utilized),
        ),
    )


@router.get("/reports", response_model=ReportListResponse)
def list_reports(
    month: str | None = Query(default=None, description="Optional YYYY-MM filter"),
    db: Session = Depends(get_db),
    report_service: ReportService = Depends(get_report_service),
) -> ReportListResponse:
    reports = report_service.list_reports(db=db, period=month.strip() if month else None)
    return ReportListResponse(
        data=[
            StoredReportResponse(
                entity_id=report.entity_id,
                period=report.period,
                people_helped=report.people_helped,
                events_conducted=report.events_conducted,
                funds_utilized=float(report.funds_utilized),
                created_at=report.created_at,
                updated_at=report.updated_at,
            )
            for report in reports
        ]
    )
