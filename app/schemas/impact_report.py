"""
app/schemas/impact_report.py

Request/response schemas for single-report submission and report listing.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ReportSubmissionRequest(BaseModel):
    """
    Loosely typed on purpose: field rules live in ReportValidator so that
    every problem comes back as one message list.
    """

    entity_id: Any = Field(default=None, validation_alias=AliasChoices("entity_id", "ngo_id", "entityId", "ngoId"))
    period: Any = Field(default=None, validation_alias=AliasChoices("period", "month"))
    people_helped: Any = Field(default=None, validation_alias=AliasChoices("people_helped", "peopleHelped"))
    events_conducted: Any = Field(default=None, validation_alias=AliasChoices("events_conducted", "eventsConducted"))
    funds_utilized: Any = Field(default=None, validation_alias=AliasChoices("funds_utilized", "fundsUtilized"))


class ImpactReportData(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    entity_id: str
    period: str
    people_helped: int
    events_conducted: int
    funds_utilized: float


class StoredReportResponse(ImpactReportData):
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ReportSubmissionResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    message: str | None = None
    data: ImpactReportData | None = None
    errors: list[str] = Field(default_factory=list)


class ReportListResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    data: list[StoredReportResponse] = Field(default_factory=list)
