"""
Integration test conftest -- per-test database and FastAPI TestClient.
"""
import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

os.environ.setdefault("SECRET_KEY", "integration-test-secret-key")

from starlette.testclient import TestClient

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
from __mocks__.fixtures import make_customer_data, make_scheme_data


@pytest.fixture
def test_db(tmp_path):
    """Path of a fresh SQLite database for one test."""
    return tmp_path / "chitfund_integration.db"


@pytest.fixture
def app(test_db):
    from chitfund.main import create_app
    return create_app(database_path=test_db)


@pytest.fixture
def client(app):
    """Anonymous TestClient; startup opens and initializes the store."""
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def auth_client(client):
    """TestClient logged in as the seeded admin (session cookie set)."""
    response = client.post("/auth/login", json={"username": "admin", "password": "admin123"})
    assert response.status_code == 200, response.text
    return client


@pytest.fixture
def create_scheme(auth_client):
    """Helper to create a scheme through the API."""
    def _create(**overrides):
        response = auth_client.post("/schemes", json=make_scheme_data(**overrides))
        assert response.status_code == 200, response.text
        return response.json()["scheme"]
    return _create


@pytest.fixture
def create_customer(auth_client):
    """Helper to create a customer through the API."""
    def _create(**overrides):
        response = auth_client.post("/customers", json=make_customer_data(**overrides))
        assert response.status_code == 200, response.text
        return response.json()["customer"]
    return _create
