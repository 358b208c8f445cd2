"""
app/services/dashboard_service.py

Read side for the impact dashboard: filtered aggregate plus one page of
reports ordered by period descending, then entity id ascending.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Protocol, Sequence

from app.config import get_dashboard_settings
from app.validators.report_validator import PERIOD_PATTERN
from db.repositories.types import ReportAggregate, ReportFilters


class DashboardFilterError(ValueError):
    """
    Raised when a period filter is not in YYYY-MM form.
    """


class ReportQueryStore(Protocol):
    def aggregate(self, filters: ReportFilters) -> ReportAggregate:
        ...

    def count(self, filters: ReportFilters) -> int:
        ...

    def list_page(self, filters: ReportFilters, *, offset: int, limit: int) -> Sequence[Any]:
        ...


@dataclass(frozen=True)
class DashboardQuery:
    """
    Raw dashboard parameters as received from the caller.

    ``period`` is shorthand for ``period_from == period_to == period`` and
    takes precedence over the range bounds.
    """

    period: str | None = None
    period_from: str | None = None
    period_to: str | None = None
    entity_id: str | None = None
    offset: int | None = None
    limit: int | None = None


@dataclass(frozen=True)
class DashboardResult:
    filters: ReportFilters
    aggregate: ReportAggregate
    reports: list[Any] = field(default_factory=list)
    offset: int = 0
    limit: int = 20
    total_records: int = 0

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.reports) < self.total_records


class DashboardService:
    def __init__(self, *, default_limit: int = 20, max_limit: int = 100) -> None:
        self._max_limit = max(1, max_limit)
        self._default_limit = min(self._max_limit, max(1, default_limit))

    def build_filters(self, query: DashboardQuery) -> ReportFilters:
        if _present(query.period):
            period = _check_period("month", query.period)
            period_from, period_to = period, period
        else:
            period_from = _check_period("month_from", query.period_from) if _present(query.period_from) else None
            period_to = _check_period("month_to", query.period_to) if _present(query.period_to) else None

        entity_id = query.entity_id.strip() if _present(query.entity_id) else None
        return ReportFilters(
            period_from=period_from,
            period_to=period_to,
            entity_id_contains=entity_id,
        )

    def clamp_pagination(self, offset: int | None, limit: int | None) -> tuple[int, int]:
        resolved_offset = max(0, offset or 0)
        resolved_limit = self._default_limit if not limit else min(self._max_limit, max(1, limit))
        return resolved_offset, resolved_limit

    def get_dashboard(self, store: ReportQueryStore, query: DashboardQuery) -> DashboardResult:
        """
        Compose filters and pagination into aggregate + page reads on ``store``.
        """

        filters = self.build_filters(query)
        offset, limit = self.clamp_pagination(query.offset, query.limit)

        aggregate = store.aggregate(filters)
        total_records = store.count(filters)
        reports = list(store.list_page(filters, offset=offset, limit=limit))

        return DashboardResult(
            filters=filters,
            aggregate=aggregate,
            reports=reports,
            offset=offset,
            limit=limit,
            total_records=total_records,
        )


def _present(value: str | None) -> bool:
    return value is not None and value.strip() != ""


def _check_period(name: str, value: str | None) -> str:
    period = (value or "").strip()
    if not PERIOD_PATTERN.match(period):
        raise DashboardFilterError(f"Invalid {name} format. Use YYYY-MM")
    return period


@lru_cache(maxsize=1)
def get_dashboard_service() -> DashboardService:
    settings = get_dashboard_settings()
    return DashboardService(default_limit=settings.default_limit, max_limit=settings.max_limit)
