"""
Schemas for CSV upload acceptance and job-status polling.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UploadAcceptedResponse(_CamelModel):
    success: bool = True
    message: str = "File uploaded. Processing started."
    job_id: UUID


class IngestionJobData(_CamelModel):
    id: UUID
    status: str
    total_rows: int = Field(..., ge=0)
    processed_rows: int = Field(..., ge=0)
    successful_rows: int = Field(..., ge=0)
    failed_rows: int = Field(..., ge=0)
    errors: list[str] = Field(default_factory=list)
    file_name: str | None = None
    created_at: datetime
    updated_at: datetime


class IngestionJobStatusResponse(_CamelModel):
    success: bool = True
    data: IngestionJobData
