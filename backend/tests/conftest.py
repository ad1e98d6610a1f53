"""
Shared fixtures: in-memory services and a TestClient.
"""
import itertools

import pytest
from fastapi.testclient import TestClient

from careledger.access import AccessControl
from careledger.main import app, get_service
from careledger.service import RecordService
from careledger.storage import InMemoryStore


# ── Helpers / Fakes ──────────────────────────────────────────────────

class SequentialIds:
    """Predictable identifiers: id-1, id-2, ..."""
    def __init__(self):
        self._counter = itertools.count(1)

    def __call__(self):
        return f"id-{next(self._counter)}"


# ── Fixtures ─────────────────────────────────────────────────────────

@pytest.fixture
def service():
    return RecordService.in_memory(id_factory=SequentialIds())


@pytest.fixture
def strict_service():
    return RecordService.in_memory(
        id_factory=SequentialIds(),
        access=AccessControl(enforce_all_mutations=True),
    )


@pytest.fixture
def full_doctor(service):
    return service.create_doctor("Dr. A", "FullAccess", "Cardio")


@pytest.fixture
def read_only_doctor(service):
    return service.create_doctor("Dr. R", "ReadOnly", "Radiology")


@pytest.fixture
def patient(service, full_doctor):
    return service.create_patient("P1", 40, None, "rest", full_doctor.doctor_id)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def audit_store():
    return InMemoryStore()
