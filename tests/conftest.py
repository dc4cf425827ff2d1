"""
Pytest fixtures for the cheque registry test suite.

Tests run against a throwaway SQLite file so no database server is needed.
The environment is configured before any `app` module is imported because
settings and the engine are created at import time.
"""

import os
import tempfile
from datetime import date
from decimal import Decimal
from pathlib import Path

_DB_DIR = Path(tempfile.mkdtemp(prefix="cheque-registry-tests-"))
_DB_PATH = _DB_DIR / "test.db"

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_PATH}"
os.environ["ENVIRONMENT"] = "testing"
os.environ["SECRET_KEY"] = "test-secret-key-of-sufficient-length-for-hs256"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient

from app.core.config import get_settings
from app.core.database import Base, async_session_factory, create_tables, engine
import app.models.cheque  # noqa: F401
import app.models.user  # noqa: F401

ADMIN_EMAIL = get_settings().SEED_ADMIN_EMAIL
ADMIN_PASSWORD = get_settings().SEED_ADMIN_PASSWORD
USER_EMAIL = get_settings().SEED_USER_EMAIL
USER_PASSWORD = get_settings().SEED_USER_PASSWORD


def cheque_payload(**overrides) -> dict:
    data = {
        "number": "A1",
        "payee_name": "Bob",
        "amount": Decimal("100.00"),
        "currency": "JOD",
        "issue_date": date(2024, 1, 1),
        "due_date": date(2024, 2, 1),
    }
    data.update(overrides)
    return data


def _remove_database() -> None:
    if _DB_PATH.exists():
        _DB_PATH.unlink()


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def db_session():
    """A session on freshly created tables; committed work is visible to other sessions."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await create_tables()
    async with async_session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def client():
    _remove_database()
    from app.main import app

    with TestClient(app) as c:
        yield c


def login(client: TestClient, email: str, password: str) -> TestClient:
    response = client.post(
        "/login",
        data={"email": email, "password": password, "next": "/cheques"},
        follow_redirects=False,
    )
    assert response.status_code == 303, response.text
    return client


@pytest.fixture
def admin_client(client):
    return login(client, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def user_client(client):
    return login(client, USER_EMAIL, USER_PASSWORD)


@pytest.fixture
def admin_headers(client):
    response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def user_headers(client):
    response = client.post("/api/auth/login", json={"email": USER_EMAIL, "password": USER_PASSWORD})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
