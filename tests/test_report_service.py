from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from app.services.report_service import ReportService
from db.repositories.errors import ReportPersistenceError


class InMemoryReportWriter:
    def __init__(self) -> None:
        self.records: dict[tuple[str, str], dict] = {}

    def upsert_report(self, *, entity_id, period, people_helped, events_conducted, funds_utilized):
        self.records[(entity_id, period)] = {
            "people_helped": people_helped,
            "events_conducted": events_conducted,
            "funds_utilized": funds_utilized,
        }
        return self.records[(entity_id, period)]

    def list_reports(self, *, period=None):
        return [key for key in sorted(self.records) if period is None or key[1] == period]


@pytest.fixture()
def service() -> ReportService:
    return ReportService()


def test_resubmission_replaces_stored_values(service) -> None:
    db = MagicMock()
    writer = InMemoryReportWriter()
    first = {"entity_id": "NGO001", "period": "2024-01", "people_helped": 100, "events_conducted": 5, "funds_utilized": 2500}
    second = {**first, "people_helped": 120, "funds_utilized": "2750.25"}

    service.submit_report(payload=first, db=db, repository=writer)
    result = service.submit_report(payload=second, db=db, repository=writer)

    assert result.success is True
    assert len(writer.records) == 1
    assert writer.records[("NGO001", "2024-01")]["people_helped"] == 120
    assert writer.records[("NGO001", "2024-01")]["funds_utilized"] == Decimal("2750.25")
    assert db.commit.call_count == 2


def test_invalid_payload_is_not_written(service) -> None:
    db = MagicMock()
    writer = InMemoryReportWriter()

    result = service.submit_report(
        payload={"entity_id": "", "period": "2024-1", "people_helped": 1, "events_conducted": 1, "funds_utilized": 1},
        db=db,
        repository=writer,
    )

    assert result.success is False
    assert result.errors == [
        "entity_id: is required",
        "period: must be in YYYY-MM format (e.g. 2024-01)",
    ]
    assert writer.records == {}
    db.commit.assert_not_called()


def test_persistence_error_rolls_back_and_propagates(service) -> None:
    db = MagicMock()
    writer = MagicMock()
    writer.upsert_report.side_effect = ReportPersistenceError("disk full")

    with pytest.raises(ReportPersistenceError):
        service.submit_report(
            payload={"entity_id": "NGO001", "period": "2024-01", "people_helped": 1, "events_conducted": 1, "funds_utilized": 1},
            db=db,
            repository=writer,
        )

    db.rollback.assert_called_once()
    db.commit.assert_not_called()


def test_list_reports_passes_period_through(service) -> None:
    writer = InMemoryReportWriter()
    writer.records[("NGO001", "2024-01")] = {}
    writer.records[("NGO001", "2024-02")] = {}

    assert service.list_reports(db=MagicMock(), period="2024-02", repository=writer) == [("NGO001", "2024-02")]
