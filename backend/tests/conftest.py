"""
Shared fixtures: a temporary SQLite database, a controllable clock and a
TestClient whose app runs on in-memory storage.
"""

import asyncio
import os
import tempfile
from datetime import datetime, timedelta, timezone

_DB_DIR = tempfile.mkdtemp(prefix="vitalguard-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ["AI_PROVIDER"] = "stub"
os.environ["STORAGE_PATH"] = ""

import pytest
from fastapi.testclient import TestClient

from vitalguard.config import get_settings
from vitalguard.database import Base, engine
from vitalguard.main import app
from vitalguard.schemas.enums import ApprovalStatus, Role
from vitalguard.schemas.identity import Identity
from vitalguard.services.registry import build_registry
from vitalguard.services.summary_service import TemplateCareAI
from vitalguard.storage import InMemoryStorage

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def make_identity(role: Role, name: str = "Test User", assigned=None, uid: str = None) -> Identity:
    return Identity(
        uid=uid or f"{role.value[:3]}-0001",
        role=role,
        name=name,
        email=f"{name.lower().replace(' ', '.')}@example.com",
        approval_status=ApprovalStatus.APPROVED,
        assigned_patient_ids=list(assigned or []),
    )


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def registry(storage, clock):
    return build_registry(get_settings(), storage=storage, clock=clock, ai=TemplateCareAI())


async def _drop_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def client(registry):
    app.state.registry = registry
    with TestClient(app) as test_client:
        yield test_client
    app.state.registry = None
    asyncio.run(_drop_tables())


def signup_and_login(client, name: str, email: str, role: str, admin_headers: dict = None) -> dict:
    """Create an account (approving staff through the admin) and return auth headers."""
    response = client.post("/api/auth/signup", json={"name": name, "email": email, "role": role})
    assert response.status_code == 201, response.text
    if role in ("DOCTOR", "NURSE"):
        approved = client.post(
            "/api/auth/approve", json={"email": email, "role": role}, headers=admin_headers
        )
        assert approved.status_code == 200, approved.text
    response = client.post("/api/auth/login", json={"email": email, "role": role})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['accessToken']}"}


@pytest.fixture
def admin_headers(client):
    return signup_and_login(client, "Ward Admin", "admin@example.com", "ADMIN")


@pytest.fixture
def patient_payload():
    return {
        "name": "John Doe",
        "age": 45,
        "gender": "Male",
        "room": "101",
        "condition": "Post-operative recovery",
        "diagnosis": "Appendectomy",
        "care_mode": "live_monitoring",
        "notes": "Recovering well",
    }
