"""
Pytest configuration for signin_api. In-memory SQLite and fixed LinkedIn credentials,
set before any signin_api module is imported.
"""
import os

os.environ["SIGNIN_DATABASE_URL"] = "sqlite:///:memory:"
os.environ["LINKEDIN_CLIENT_ID"] = "test-client-id"
os.environ["LINKEDIN_CLIENT_SECRET"] = "test-client-secret"
os.environ["SITE_ORIGIN"] = "http://127.0.0.1:5173"
os.environ.pop("LINKEDIN_REDIRECT_URI", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from signin_api.database import SessionLocal, init_db  # noqa: E402
from signin_api.main import app  # noqa: E402
from signin_api.models import AuditLog  # noqa: E402
from signin_api.rate_limit import limiter  # noqa: E402


@pytest.fixture
def client():
    init_db()
    return TestClient(app)


@pytest.fixture(autouse=True)
def fresh_state():
    """Each test starts with an empty audit table and unspent rate-limit budgets."""
    init_db()
    limiter.reset()
    db = SessionLocal()
    try:
        db.query(AuditLog).delete()
        db.commit()
    finally:
        db.close()
    yield
    limiter.reset()


class MockResponse:
    """Stand-in for httpx.Response with the attributes the endpoints read."""

    def __init__(self, status_code=200, body=None, text="", content_type="application/json"):
        self.status_code = status_code
        self._body = body if body is not None else {}
        self.text = text
        self.headers = {"content-type": content_type} if content_type else {}

    def json(self):
        return self._body


@pytest.fixture
def mock_response():
    return MockResponse
