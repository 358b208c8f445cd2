"""
Schemas for the dashboard read endpoint.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class DashboardFilters(_CamelModel):
    month_from: str | None = None
    month_to: str | None = None
    ngo_id: str | None = None


class DashboardSummary(_CamelModel):
    total_ngos_reporting: int = 0
    total_people_helped: int = 0
    total_events_conducted: int = 0
    total_funds_utilized: float = 0.0


class DashboardReport(_CamelModel):
    entity_id: str
    period: str
    people_helped: int
    events_conducted: int
    funds_utilized: float
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DashboardPagination(_CamelModel):
    offset: int = Field(..., ge=0)
    limit: int = Field(..., ge=1)
    total_records: int = Field(..., ge=0)
    has_more: bool


class DashboardData(_CamelModel):
    filters: DashboardFilters
    summary: DashboardSummary
    reports: list[DashboardReport] = Field(default_factory=list)
    pagination: DashboardPagination


class DashboardResponse(_CamelModel):
    success: bool = True
    data: DashboardData
