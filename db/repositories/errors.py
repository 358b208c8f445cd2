"""
Repository-layer exceptions for report and ingestion-job persistence.
"""

from __future__ import annotations


class RepositoryError(Exception):
    """Base exception for repository failures."""


class ReportPersistenceError(RepositoryError):
    """Raised when the record store rejects an otherwise-valid report."""


class JobNotFoundError(RepositoryError):
    """Raised when an ingestion job id is unknown."""


class JobStateTransitionError(RepositoryError):
    """Raised when a write would break the ingestion job state machine."""
