import asyncio
from urllib.parse import parse_qs, urlparse

from conftest import register

from incident_portal.core import mailer, security
from incident_portal.core.config import settings
from incident_portal.services import accounts


def reset_token(client, email):
    response = client.post("/auth/request-reset", json={"email": email})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    fragment = urlparse(body["reset_url"]).fragment
    return parse_qs(urlparse(fragment).query)["token"][0]


def login(client, email, password):
    return client.post("/auth/login", json={"email": email, "password": password})


def test_register_defaults_to_citizen(client):
    response = client.post(
        "/auth/register",
        json={"email": "dana@example.com", "password": "pw123456", "full_name": "Dana", "phone": "555-0101"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["user"]["role"] == "citizen"
    assert body["user"]["phone"] == "555-0101"
    assert body["token"]
    assert "password_hash" not in body["user"]


def test_register_missing_fields(client):
    response = client.post("/auth/register", json={"email": "x@example.com"})
    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields", "kind": "bad_request"}


def test_register_rejects_unknown_role(client):
    response = client.post(
        "/auth/register",
        json={"email": "x@example.com", "password": "pw", "full_name": "X", "role": "admin"},
    )
    assert response.status_code == 400
    assert response.json()["kind"] == "bad_request"


def test_duplicate_email_conflicts_and_keeps_first_account(client):
    first = register(client, "dup@example.com", password="original-pw", full_name="First")

    response = client.post(
        "/auth/register",
        json={"email": "dup@example.com", "password": "other-pw", "full_name": "Second"},
    )
    assert response.status_code == 409
    assert response.json()["kind"] == "conflict"

    assert login(client, "dup@example.com", "original-pw").status_code == 200
    assert login(client, "dup@example.com", "other-pw").status_code == 401
    me = client.get("/profiles/me", headers=first["headers"]).json()
    assert me["full_name"] == "First"


def test_login_returns_user_and_token(client, authority):
    response = login(client, "bob@police.example", "secret123")
    assert response.status_code == 200
    body = response.json()
    assert body["user"]["id"] == authority["id"]
    assert body["user"]["role"] == "authority"
    assert body["token"]


def test_login_failures_are_indistinguishable(client, citizen):
    wrong_password = login(client, "alice@example.com", "nope")
    unknown_email = login(client, "nobody@example.com", "secret123")
    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"error": "Invalid credentials", "kind": "unauthorized"}


def test_login_missing_fields(client):
    response = client.post("/auth/login", json={"email": "alice@example.com"})
    assert response.status_code == 400


def test_request_reset_for_unknown_email_still_succeeds(client):
    response = client.post("/auth/request-reset", json={"email": "ghost@example.com"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["reset_url"]


def test_request_reset_can_hide_url(client, citizen, monkeypatch):
    monkeypatch.setattr(settings, "EXPOSE_RESET_URL", False)
    response = client.post("/auth/request-reset", json={"email": citizen["email"]})
    assert response.status_code == 200
    assert response.json() == {"success": True, "reset_url": None}


def test_unknown_email_token_cannot_reset(client):
    token = reset_token(client, "ghost@example.com")
    response = client.post("/auth/reset", json={"token": token, "password": "new-pw"})
    assert response.status_code == 400
    assert response.json()["kind"] == "invalid_token"


def test_reset_tokens_are_single_use(client, citizen):
    first = reset_token(client, citizen["email"])
    second = reset_token(client, citizen["email"])
    assert first != second

    response = client.post("/auth/reset", json={"token": first, "password": "brand-new"})
    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert login(client, citizen["email"], "brand-new").status_code == 200
    assert login(client, citizen["email"], "secret123").status_code == 401

    reuse = client.post("/auth/reset", json={"token": first, "password": "again"})
    assert reuse.status_code == 400
    assert reuse.json()["kind"] == "invalid_token"

    # The other outstanding token is unaffected.
    response = client.post("/auth/reset", json={"token": second, "password": "third-pw"})
    assert response.status_code == 200
    assert login(client, citizen["email"], "third-pw").status_code == 200


def test_expired_reset_token_is_rejected(client, citizen, monkeypatch):
    monkeypatch.setattr(settings, "PASSWORD_RESET_TTL_HOURS", -1)
    token = reset_token(client, citizen["email"])
    response = client.post("/auth/reset", json={"token": token, "password": "new-pw"})
    assert response.status_code == 400
    assert login(client, citizen["email"], "secret123").status_code == 200


def test_reset_requires_token_and_password(client):
    response = client.post("/auth/reset", json={"token": "abc"})
    assert response.status_code == 400
    assert response.json()["kind"] == "bad_request"


def test_mail_failure_does_not_fail_reset_request(client, citizen, monkeypatch):
    sent = []

    def broken_delivery(to, subject, html):
        sent.append(to)
        raise OSError("connection refused")

    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.example.com")
    monkeypatch.setattr(mailer, "_deliver", broken_delivery)

    response = client.post("/auth/request-reset", json={"email": citizen["email"]})
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert sent == [citizen["email"]]


def test_bcrypt_runs_off_the_event_loop(client, citizen, monkeypatch):
    threads = []

    def on_worker_thread():
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return True
        return False

    def tracking_hash(password):
        threads.append(("hash", on_worker_thread()))
        return security.get_password_hash(password)

    def tracking_verify(password, hashed):
        threads.append(("verify", on_worker_thread()))
        return security.verify_password(password, hashed)

    monkeypatch.setattr(accounts, "get_password_hash", tracking_hash)
    monkeypatch.setattr(accounts, "verify_password", tracking_verify)

    register(client, "dana@example.com")
    assert login(client, "dana@example.com", "secret123").status_code == 200
    token = reset_token(client, citizen["email"])
    assert client.post("/auth/reset", json={"token": token, "password": "brand-new"}).status_code == 200

    assert threads == [("hash", True), ("verify", True), ("hash", True)]
