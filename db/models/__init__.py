"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.impact_report import ImpactReport
from db.models.ingestion_job import IngestionJob, IngestionJobStatus

__all__ = [
    "ImpactReport",
    "IngestionJob",
    "IngestionJobStatus",
]
