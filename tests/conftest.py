import pytest
from beanie import init_beanie
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from main import app
from onboarding.core.auth_dependencies import get_current_user
from onboarding.database.models import DOCUMENT_MODELS
from onboarding.services.audit_service import audit_service


def make_user(role="OPERADOR", username="operador1"):
    return {
        "id": "64b000000000000000000001",
        "username": username,
        "email": f"{username}@example.com",
        "first_name": "Test",
        "last_name": "User",
        "role": role,
        "status": "active",
    }


@pytest.fixture(autouse=True)
def no_audit(monkeypatch):
    async def fake_record(*args, **kwargs):
        return None

    monkeypatch.setattr(audit_service, "record", fake_record)


@pytest.fixture
def login_as():
    def _login(role="OPERADOR"):
        app.dependency_overrides[get_current_user] = lambda: make_user(role, username=role.lower())
    yield _login
    app.dependency_overrides = {}


@pytest.fixture
def api():
    # Not used as a context manager so the lifespan (DB init) does not run
    return TestClient(app)


@pytest.fixture
async def memory_db():
    # In-memory Motor backend; unique indexes are created as in production
    client = AsyncMongoMockClient()
    database = client["onboarding_test"]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
    yield database
