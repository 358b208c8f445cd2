"""
tests/test_api_routes.py

HTTP contract tests for the report, ingestion and dashboard routers.

Each test builds a bare FastAPI app with the routers mounted and every
database-facing dependency overridden; no database or startup checks run.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.routers import dashboard_router, ingestion_router, reports_router
from app.api.routers.dashboard import get_report_query_store
from app.config import CSVIngestionSettings, get_csv_ingestion_settings
from app.services.dashboard_service import DashboardService, get_dashboard_service
from app.services.ingestion_orchestrator_service import get_ingestion_orchestrator_service
from app.services.report_service import ReportService, get_report_service
from db.models.ingestion_job import IngestionJob, IngestionJobStatus
from db.repositories.types import ReportAggregate
from db.session import get_db
from tests.fakes import make_report

NOW = datetime(2024, 2, 1, 12, 0, tzinfo=timezone.utc)


class StubOrchestrator:
    def __init__(self) -> None:
        self.jobs: dict[uuid.UUID, IngestionJob] = {}
        self.uploads: list[bytes] = []

    def enqueue_csv_upload(self, *, db, executor, upload_file):
        self.uploads.append(upload_file.file.read())
        job = IngestionJob(
            id=uuid.uuid4(),
            status=IngestionJobStatus.PENDING,
            total_rows=0,
            processed_rows=0,
            successful_rows=0,
            failed_rows=0,
            error_messages=[],
            file_name=upload_file.filename,
            created_at=NOW,
            updated_at=NOW,
        )
        self.jobs[job.id] = job
        return job

    def get_job_status(self, *, db, job_id):
        return self.jobs.get(job_id)


class StubReportWriter:
    def __init__(self) -> None:
        self.records: dict[tuple[str, str], object] = {}

    def upsert_report(self, *, entity_id, period, people_helped, events_conducted, funds_utilized):
        self.records[(entity_id, period)] = make_report(
            entity_id, period, people_helped, events_conducted, str(funds_utilized)
        )

    def list_reports(self, *, period=None):
        return [
            SimpleNamespace(**vars(report), created_at=NOW, updated_at=NOW)
            for key, report in sorted(self.records.items())
            if period is None or key[1] == period
        ]


class WriterBoundReportService(ReportService):
    def __init__(self, writer: StubReportWriter) -> None:
        super().__init__()
        self._writer = writer

    def submit_report(self, *, payload, db, repository=None):
        return super().submit_report(payload=payload, db=db, repository=self._writer)

    def list_reports(self, *, db, period=None, repository=None):
        return super().list_reports(db=db, period=period, repository=self._writer)


class StaticQueryStore:
    def __init__(self, reports) -> None:
        self.reports = reports
        self.calls: list[tuple] = []

    def aggregate(self, filters):
        return ReportAggregate(
            total_entities=len({report.entity_id for report in self.reports}),
            total_people_helped=sum(report.people_helped for report in self.reports),
            total_events_conducted=sum(report.events_conducted for report in self.reports),
            total_funds_utilized=sum(report.funds_utilized for report in self.reports),
        )

    def count(self, filters):
        return len(self.reports)

    def list_page(self, filters, *, offset, limit):
        self.calls.append((filters, offset, limit))
        return self.reports[offset : offset + limit]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def orchestrator() -> StubOrchestrator:
    return StubOrchestrator()


@pytest.fixture()
def writer() -> StubReportWriter:
    return StubReportWriter()


@pytest.fixture()
def query_store() -> StaticQueryStore:
    return StaticQueryStore([make_report(entity_id=f"NGO{index:03d}") for index in range(1, 46)])


@pytest.fixture()
def client(orchestrator, writer, query_store) -> TestClient:
    application = FastAPI()
    application.include_router(reports_router)
    application.include_router(ingestion_router)
    application.include_router(dashboard_router)

    def _db():
        yield MagicMock()

    application.dependency_overrides[get_db] = _db
    application.dependency_overrides[get_ingestion_orchestrator_service] = lambda: orchestrator
    application.dependency_overrides[get_report_service] = lambda: WriterBoundReportService(writer)
    application.dependency_overrides[get_report_query_store] = lambda: query_store
    application.dependency_overrides[get_dashboard_service] = lambda: DashboardService(default_limit=20, max_limit=100)
    application.dependency_overrides[get_csv_ingestion_settings] = lambda: CSVIngestionSettings(max_upload_bytes=1024)
    return TestClient(application)


# ---------------------------------------------------------------------------
# Single report
# ---------------------------------------------------------------------------


def test_submit_report_created(client, writer) -> None:
    response = client.post(
        "/api/report",
        json={"ngo_id": "NGO001", "month": "2024-01", "people_helped": 150, "events_conducted": 5, "funds_utilized": 2500.5},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["entityId"] == "NGO001"
    assert body["data"]["fundsUtilized"] == 2500.5
    assert ("NGO001", "2024-01") in writer.records


def test_submit_report_twice_keeps_one_record(client, writer) -> None:
    payload = {"ngoId": "NGO001", "month": "2024-01", "peopleHelped": 100, "eventsConducted": 5, "fundsUtilized": 2500}
    client.post("/api/report", json=payload)
    client.post("/api/report", json={**payload, "peopleHelped": 120})

    assert len(writer.records) == 1
    assert writer.records[("NGO001", "2024-01")].people_helped == 120


def test_submit_report_validation_errors(client, writer) -> None:
    response = client.post("/api/report", json={"ngo_id": "NGO001", "month": "2024-13-01", "people_helped": -1})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["errors"] == [
        "period: must be in YYYY-MM format (e.g. 2024-01)",
        "people_helped: must be a non-negative number",
        "events_conducted: must be a whole number",
        "funds_utilized: must be a number",
    ]
    assert writer.records == {}


def test_list_reports_by_month(client) -> None:
    client.post("/api/report", json={"ngo_id": "A", "month": "2024-01", "people_helped": 1, "events_conducted": 1, "funds_utilized": 1})
    client.post("/api/report", json={"ngo_id": "B", "month": "2024-02", "people_helped": 1, "events_conducted": 1, "funds_utilized": 1})

    response = client.get("/api/reports", params={"month": "2024-02"})

    assert response.status_code == 200
    assert [report["entityId"] for report in response.json()["data"]] == ["B"]


# ---------------------------------------------------------------------------
# Bulk upload + job status
# ---------------------------------------------------------------------------


def test_upload_returns_job_id_immediately(client, orchestrator) -> None:
    csv_body = b"ngo_id,month,people_helped,events_conducted,funds_utilized\nNGO001,2024-01,1,1,1\n"

    response = client.post("/api/reports/upload", files={"file": ("reports.csv", csv_body, "text/csv")})

    assert response.status_code == 202
    body = response.json()
    assert body["success"] is True
    assert uuid.UUID(body["jobId"]) in orchestrator.jobs
    assert orchestrator.uploads == [csv_body]


def test_upload_rejects_non_csv(client, orchestrator) -> None:
    response = client.post("/api/reports/upload", files={"file": ("notes.txt", b"hello", "text/plain")})

    assert response.status_code == 400
    assert response.json()["detail"] == "Only CSV files are allowed."
    assert orchestrator.jobs == {}


def test_upload_rejects_oversized_file(client, orchestrator) -> None:
    response = client.post("/api/reports/upload", files={"file": ("big.csv", b"x" * 2048, "text/csv")})

    assert response.status_code == 400
    assert "exceeds" in response.json()["detail"]
    assert orchestrator.jobs == {}


def test_job_status_roundtrip(client, orchestrator) -> None:
    upload = client.post("/api/reports/upload", files={"file": ("reports.csv", b"a,b\n", "text/csv")})
    job_id = upload.json()["jobId"]
    job = orchestrator.jobs[uuid.UUID(job_id)]
    job.status = IngestionJobStatus.COMPLETED
    job.total_rows = job.processed_rows = 2
    job.successful_rows = job.failed_rows = 1
    job.error_messages = ["row 2: period: is required"]

    response = client.get(f"/api/job-status/{job_id}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "completed"
    assert data["processedRows"] == 2
    assert data["successfulRows"] == 1
    assert data["errors"] == ["row 2: period: is required"]
    assert data["fileName"] == "reports.csv"


@pytest.mark.parametrize("job_id", [str(uuid.uuid4()), "not-a-uuid"])
def test_job_status_unknown(client, job_id) -> None:
    response = client.get(f"/api/job-status/{job_id}")

    assert response.status_code == 404
    assert response.json()["detail"] == "Job not found"


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


def test_dashboard_first_page(client, query_store) -> None:
    response = client.get("/api/dashboard", params={"month": "2024-01", "limit": 20})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["filters"] == {"monthFrom": "2024-01", "monthTo": "2024-01", "ngoId": None}
    assert data["summary"]["totalNgosReporting"] == 45
    assert data["summary"]["totalFundsUtilized"] == 112500.0
    assert len(data["reports"]) == 20
    assert data["pagination"] == {"offset": 0, "limit": 20, "totalRecords": 45, "hasMore": True}


def test_dashboard_last_page(client) -> None:
    response = client.get("/api/dashboard", params={"month": "2024-01", "offset": 40, "limit": 20})

    pagination = response.json()["data"]["pagination"]
    assert len(response.json()["data"]["reports"]) == 5
    assert pagination["hasMore"] is False


def test_dashboard_clamps_limit(client, query_store) -> None:
    client.get("/api/dashboard", params={"limit": 1000, "offset": -3})

    _, offset, limit = query_store.calls[-1]
    assert (offset, limit) == (0, 100)


def test_dashboard_rejects_bad_month(client) -> None:
    response = client.get("/api/dashboard", params={"month_from": "2024-1"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid month_from format. Use YYYY-MM"
