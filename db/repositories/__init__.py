"""
Repository layer exports.
"""

from db.repositories.errors import (
    JobNotFoundError,
    JobStateTransitionError,
    ReportPersistenceError,
    RepositoryError,
)
from db.repositories.impact_report_repository import ImpactReportRepository
from db.repositories.ingestion_job_repository import IngestionJobRepository
from db.repositories.types import JobProgress, ReportAggregate, ReportFilters

__all__ = [
    "ImpactReportRepository",
    "IngestionJobRepository",
    "JobProgress",
    "ReportAggregate",
    "ReportFilters",
    "RepositoryError",
    "ReportPersistenceError",
    "JobNotFoundError",
    "JobStateTransitionError",
]
