from pathlib import Path
import os
import tempfile
import uuid

import pytest

# Point the app at a fresh SQLite file before `taskboard.main` is imported.
_DB_DIR = Path(tempfile.mkdtemp(prefix="taskboard-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR / 'test.db'}"
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DB_CONNECT_RETRY_DELAY", "0")


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:10]}@example.com"


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from taskboard.main import app

    return TestClient(app)


@pytest.fixture
def auth_headers(client):
    """Register a fresh user and return bearer headers for it."""
    r = client.post('/auth/register', json={'name': 'Tester', 'email': unique_email(), 'password': 'pass123'})
    assert r.status_code == 201
    return {'Authorization': f"Bearer {r.json()['access_token']}"}
