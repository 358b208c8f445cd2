"""
app/api/routers/dashboard.py

Aggregated and paginated dashboard read endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.schemas.dashboard import (
    DashboardData,
    DashboardFilters,
    DashboardPagination,
    DashboardReport,
    DashboardResponse,
    DashboardSummary,
)
from app.services.dashboard_service import (
    DashboardFilterError,
    DashboardQuery,
    DashboardService,
    get_dashboard_service,
)
from db.repositories.impact_report_repository import ImpactReportRepository
from db.session import get_db

router = APIRouter(prefix="/api", tags=["dashboard"])


def get_report_query_store(db: Session = Depends(get_db)) -> ImpactReportRepository:
    return ImpactReportRepository(db)


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    month: str | None = Query(default=None, description="Single YYYY-MM month; overrides the range"),
    month_from: str | None = Query(default=None, description="Inclusive YYYY-MM lower bound"),
    month_to: str | None = Query(default=None, description="Inclusive YYYY-MM upper bound"),
    ngo_id: str | None = Query(default=None, description="Partial match on organization id"),
    offset: int = Query(default=0),
    limit: int | None = Query(default=None),
    store: ImpactReportRepository = Depends(get_report_query_store),
    dashboard_service: DashboardService = Depends(get_dashboard_service),
) -> DashboardResponse:
    try:
        result = dashboard_service.get_dashboard(
            store,
            DashboardQuery(
                period=month,
                period_from=month_from,
                period_to=month_to,
                entity_id=ngo_id,
                offset=offset,
                limit=limit,
            ),
        )
    except DashboardFilterError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    aggregate = result.aggregate
    return DashboardResponse(
        data=DashboardData(
            filters=DashboardFilters(
                month_from=result.filters.period_from,
                month_to=result.filters.period_to,
                ngo_id=result.filters.entity_id_contains,
            ),
            summary=DashboardSummary(
                total_ngos_reporting=aggregate.total_entities,
                total_people_helped=aggregate.total_people_helped,
                total_events_conducted=aggregate.total_events_conducted,
                total_funds_utilized=float(aggregate.total_funds_utilized),
            ),
            reports=[
                DashboardReport(
                    entity_id=report.entity_id,
                    period=report.period,
                    people_helped=report.people_helped,
                    events_conducted=report.events_conducted,
                    funds_utilized=float(report.funds_utilized),
                    created_at=getattr(report, "created_at", None),
                    updated_at=getattr(report, "updated_at", None),
                )
                for report in result.reports
            ],
            pagination=DashboardPagination(
                offset=result.offset,
                limit=result.limit,
                total_records=result.total_records,
                has_more=result.has_more,
            ),
        )
    )
