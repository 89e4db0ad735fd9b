from pathlib import Path
import os
import tempfile
import uuid

import pytest

# Point the app at a throwaway database and media folder before it is imported.
_TMP = Path(tempfile.mkdtemp(prefix="storefront-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP / 'test.db'}"
os.environ["MEDIA_ROOT"] = str(_TMP / "media")
os.environ["ANON_THROTTLE_RATE"] = "100000/min"
os.environ["USER_THROTTLE_RATE"] = "100000/min"

from fastapi.testclient import TestClient  # noqa: E402

from storefront.main import app  # noqa: E402
from storefront.utils.rate_limit import limiter  # noqa: E402


@pytest.fixture(autouse=True)
def reset_throttle():
    """Each test starts with an empty rate limiter."""
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_user(client):
    """Register a fresh user and return `(user_json, auth_headers)`."""
    def _make(password: str = "secret123"):
        username = f"user_{uuid.uuid4().hex[:10]}"
        r = client.post("/auth/register", json={"username": username, "password": password})
        assert r.status_code == 201
        login = client.post("/auth/login", json={"username": username, "password": password})
        assert login.status_code == 200
        return r.json(), {"Authorization": f"Bearer {login.json()['access_token']}"}
    return _make


@pytest.fixture
def make_product(client):
    def _make(headers, name="Widget", description="A useful widget"):
        r = client.post("/api/products", json={"name": name, "description": description}, headers=headers)
        assert r.status_code == 201
        return r.json()
    return _make
