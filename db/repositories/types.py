"""
Typed DTOs exchanged with the repository layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class ReportFilters:
    """
    Filter set for aggregate and paginated report queries.

    Period bounds are inclusive and compared as strings; ``YYYY-MM``
    ordering equals chronological ordering. ``None`` means unbounded.
    """

    period_from: str | None = None
    period_to: str | None = None
    entity_id_contains: str | None = None


@dataclass(frozen=True)
class ReportAggregate:
    """
    Aggregate over all reports matching a filter set.
    """

    total_entities: int = 0
    total_people_helped: int = 0
    total_events_conducted: int = 0
    total_funds_utilized: Decimal = Decimal("0")


@dataclass(frozen=True)
class JobProgress:
    """
    Full progress snapshot written to an ingestion job in one update.
    """

    status: str
    total_rows: int = 0
    processed_rows: int = 0
    successful_rows: int = 0
    failed_rows: int = 0
    error_messages: tuple[str, ...] = field(default_factory=tuple)
