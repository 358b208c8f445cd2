from __future__ import annotations

import pytest

from tests.fakes import FakeJobStore, FakeRecordStore


@pytest.fixture()
def job_store() -> FakeJobStore:
    return FakeJobStore()


@pytest.fixture()
def record_store() -> FakeRecordStore:
    return FakeRecordStore()
