import pytest
from fastapi.testclient import TestClient

from incident_portal.core.config import settings
from incident_portal.main import app


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'portal.db'}")
    monkeypatch.setattr(settings, "SMTP_HOST", "")
    monkeypatch.setattr(settings, "EXPOSE_RESET_URL", True)
    # Startup creates the schema and seeds the category catalog.
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


def register(client, email, role=None, password="secret123", full_name="Test User"):
    payload = {"email": email, "password": password, "full_name": full_name}
    if role:
        payload["role"] = role
    response = client.post("/auth/register", json=payload)
    assert response.status_code == 201, response.text
    body = response.json()
    return {
        "id": body["user"]["id"],
        "email": email,
        "token": body["token"],
        "headers": {"Authorization": f"Bearer {body['token']}"},
    }


@pytest.fixture
def citizen(client):
    return register(client, "alice@example.com", full_name="Alice Citizen")


@pytest.fixture
def other_citizen(client):
    return register(client, "carol@example.com", full_name="Carol Citizen")


@pytest.fixture
def authority(client):
    return register(client, "bob@police.example", role="authority", full_name="Bob Officer")


@pytest.fixture
def category_id(client, citizen):
    response = client.get("/categories", headers=citizen["headers"])
    assert response.status_code == 200
    return response.json()[0]["id"]


@pytest.fixture
def make_incident(client, category_id):
    def _make(owner, **overrides):
        payload = {
            "category_id": category_id,
            "title": "Broken streetlight",
            "description": "Light out on the corner of 5th and Main",
            "incident_date": "2024-05-01T21:30:00Z",
        }
        payload.update(overrides)
        response = client.post("/incidents", json=payload, headers=owner["headers"])
        assert response.status_code == 201, response.text
        return response.json()

    return _make
