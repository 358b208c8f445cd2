"""
db/repositories/impact_report_repository.py

Persistence layer for ImpactReport rows.

The caller controls commit/rollback; this repository never commits on its own.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from sqlalchemy import ColumnElement, Select, distinct, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.base import utc_now
from db.models.impact_report import IMPACT_REPORT_UPSERT_CONSTRAINT, ImpactReport
from db.repositories.errors import ReportPersistenceError
from db.repositories.types import ReportAggregate, ReportFilters


def build_upsert_statement(
    *,
    entity_id: str,
    period: str,
    people_helped: int,
    events_conducted: int,
    funds_utilized: Decimal,
) -> Any:
    """
    Build the ``INSERT .. ON CONFLICT (entity_id, period) DO UPDATE`` statement.

    PostgreSQL executes the conflict check and update atomically, so two
    concurrent upserts on the same key serialize at the storage layer.
    """

    stmt = insert(ImpactReport).values(
        entity_id=entity_id,
        period=period,
        people_helped=people_helped,
        events_conducted=events_conducted,
        funds_utilized=funds_utilized,
    )
    return stmt.on_conflict_do_update(
        constraint=IMPACT_REPORT_UPSERT_CONSTRAINT,
        set_={
            "people_helped": stmt.excluded.people_helped,
            "events_conducted": stmt.excluded.events_conducted,
            "funds_utilized": stmt.excluded.funds_utilized,
            "updated_at": utc_now(),
        },
    ).returning(ImpactReport)


def filter_conditions(filters: ReportFilters) -> list[ColumnElement[bool]]:
    conditions: list[ColumnElement[bool]] = []
    if filters.period_from:
        conditions.append(ImpactReport.period >= filters.period_from)
    if filters.period_to:
        conditions.append(ImpactReport.period <= filters.period_to)
    if filters.entity_id_contains:
        conditions.append(ImpactReport.entity_id.contains(filters.entity_id_contains, autoescape=True))
    return conditions


def build_aggregate_statement(filters: ReportFilters) -> Select[Any]:
    return select(
        func.count(distinct(ImpactReport.entity_id)),
        func.coalesce(func.sum(ImpactReport.people_helped), 0),
        func.coalesce(func.sum(ImpactReport.events_conducted), 0),
        func.coalesce(func.sum(ImpactReport.funds_utilized), 0),
    ).where(*filter_conditions(filters))


def build_page_statement(filters: ReportFilters, *, offset: int, limit: int) -> Select[tuple[ImpactReport]]:
    return (
        select(ImpactReport)
        .where(*filter_conditions(filters))
        .order_by(ImpactReport.period.desc(), ImpactReport.entity_id.asc())
        .offset(max(0, offset))
        .limit(max(1, limit))
    )


class ImpactReportRepository:
    """
    Repository for upserting and querying impact reports.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def upsert_report(
        self,
        *,
        entity_id: str,
        period: str,
        people_helped: int,
        events_conducted: int,
        funds_utilized: Decimal,
    ) -> ImpactReport:
        """
        Insert or replace the report for ``(entity_id, period)``.

        Runs inside a savepoint so a rejected row leaves the surrounding
        transaction usable. Database errors are re-raised as
        :class:`ReportPersistenceError`.
        """

        stmt = build_upsert_statement(
            entity_id=entity_id,
            period=period,
            people_helped=people_helped,
            events_conducted=events_conducted,
            funds_utilized=funds_utilized,
        )
        try:
            with self._session.begin_nested():
                return self._session.scalars(
                    stmt,
                    execution_options={"populate_existing": True},
                ).one()
        except SQLAlchemyError as exc:
            raise ReportPersistenceError(str(exc.__cause__ or exc).strip()) from exc

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def aggregate(self, filters: ReportFilters) -> ReportAggregate:
        row = self._session.execute(build_aggregate_statement(filters)).one()
        entities, people, events, funds = row
        return ReportAggregate(
            total_entities=int(entities or 0),
            total_people_helped=int(people or 0),
            total_events_conducted=int(events or 0),
            total_funds_utilized=Decimal(funds or 0),
        )

    def count(self, filters: ReportFilters) -> int:
        stmt = select(func.count()).select_from(ImpactReport).where(*filter_conditions(filters))
        return int(self._session.scalar(stmt) or 0)

    def list_page(self, filters: ReportFilters, *, offset: int, limit: int) -> list[ImpactReport]:
        stmt = build_page_statement(filters, offset=offset, limit=limit)
        return list(self._session.scalars(stmt).all())

    def list_reports(self, *, period: str | None = None) -> list[ImpactReport]:
        """
        Return every report, optionally restricted to one month.
        """

        stmt = select(ImpactReport)
        if period:
            stmt = stmt.where(ImpactReport.period == period).order_by(ImpactReport.entity_id.asc())
        else:
            stmt = stmt.order_by(ImpactReport.period.desc(), ImpactReport.entity_id.asc())
        return list(self._session.scalars(stmt).all())
