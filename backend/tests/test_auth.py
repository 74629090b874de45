from datetime import timedelta

import structlog
from fastapi.testclient import TestClient
from structlog.testing import capture_logs

from app.core.security import create_access_token
from app.services import auth_service

from .utils import DEFAULT_PASSWORD, register_user


def test_register_returns_token_and_user(client: TestClient):
    resp = client.post(
        "/api/auth/register",
        json={
            "username": "alice",
            "email": "Alice@Example.com",
            "password": "secret123",
            "first_name": "Alice",
        },
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "User registered successfully"
    assert body["token"]
    user = body["user"]
    assert user["email"] == "alice@example.com"
    assert user["username"] == "alice"
    assert user["role"] == "member"
    assert user["is_active"] is True
    assert "password" not in user
    assert "hashed_password" not in user


def test_register_duplicate_email_and_username_rejected(client: TestClient):
    register_user(client, "alice")

    dup_email = client.post(
        "/api/auth/register",
        json={"username": "alice2", "email": "alice@example.com", "password": "secret123"},
    )
    assert dup_email.status_code == 400
    assert dup_email.json()["field"] == "email"

    dup_username = client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "other@example.com", "password": "secret123"},
    )
    assert dup_username.status_code == 400
    assert dup_username.json()["field"] == "username"


def test_register_validation_errors_are_400(client: TestClient):
    resp = client.post(
        "/api/auth/register",
        json={"username": "al", "email": "not-an-email", "password": "123"},
    )
    assert resp.status_code == 400
    assert resp.json()["errors"]


def test_login_success_and_failures(client: TestClient):
    register_user(client, "bob")

    ok = client.post("/api/auth/login", json={"email": "bob@example.com", "password": DEFAULT_PASSWORD})
    assert ok.status_code == 200
    assert ok.json()["message"] == "Login successful"
    assert ok.json()["user"]["username"] == "bob"

    wrong_password = client.post("/api/auth/login", json={"email": "bob@example.com", "password": "nope123"})
    assert wrong_password.status_code == 401
    assert wrong_password.json()["detail"] == "Invalid email or password"

    unknown = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "secret123"})
    assert unknown.status_code == 401
    assert unknown.json()["detail"] == "Invalid email or password"


def test_token_endpoint_uses_email_as_username(client: TestClient):
    register_user(client, "carol")
    resp = client.post(
        "/api/auth/token",
        data={"username": "carol@example.com", "password": DEFAULT_PASSWORD},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["token_type"] == "bearer"

    profile = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert profile.status_code == 200
    assert profile.json()["user"]["email"] == "carol@example.com"


def test_protected_route_requires_valid_token(client: TestClient):
    assert client.get("/api/projects").status_code == 401

    garbage = client.get("/api/projects", headers={"Authorization": "Bearer not-a-jwt"})
    assert garbage.status_code == 401
    assert garbage.json()["detail"] == "Invalid token"
    assert garbage.headers["www-authenticate"] == "Bearer"


def test_expired_token_rejected(client: TestClient):
    user_id, _ = register_user(client, "dave")
    token = create_access_token(
        {"sub": str(user_id), "id": user_id, "email": "dave@example.com", "role": "member"},
        expires_delta=timedelta(minutes=-1),
    )
    resp = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Token expired"


def test_token_for_missing_user_rejected(client: TestClient):
    token = create_access_token({"sub": "999", "id": 999, "email": "x@example.com", "role": "member"})
    resp = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "User not found"


def test_change_password(client: TestClient):
    _, headers = register_user(client, "erin")

    bad = client.post(
        "/api/auth/change-password",
        json={"old_password": "wrong-one", "new_password": "newsecret"},
        headers=headers,
    )
    assert bad.status_code == 400

    ok = client.post(
        "/api/auth/change-password",
        json={"old_password": DEFAULT_PASSWORD, "new_password": "newsecret"},
        headers=headers,
    )
    assert ok.status_code == 200

    old_login = client.post("/api/auth/login", json={"email": "erin@example.com", "password": DEFAULT_PASSWORD})
    assert old_login.status_code == 401
    new_login = client.post("/api/auth/login", json={"email": "erin@example.com", "password": "newsecret"})
    assert new_login.status_code == 200


def test_health_endpoints(client: TestClient):
    assert client.get("/health").json()["status"] == "ok"
    ready = client.get("/health/ready")
    assert ready.status_code == 200
    assert ready.json()["database"] == "connected"
    assert "x-request-id" in ready.headers


def test_register_race_on_unique_email_is_400(client: TestClient, monkeypatch):
    register_user(client, "alice")
    # Pretend the duplicate check ran before the first insert committed
    monkeypatch.setattr(auth_service, "find_conflicting_user", lambda db, email, username: None)

    resp = client.post(
        "/api/auth/register",
        json={"username": "alice2", "email": "alice@example.com", "password": DEFAULT_PASSWORD},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "A user with this email or username already exists"

    # The session is usable again afterwards
    ok = client.post(
        "/api/auth/register",
        json={"username": "bob", "email": "bob@example.com", "password": DEFAULT_PASSWORD},
    )
    assert ok.status_code == 201


def test_service_logs_carry_caller_identity(client: TestClient):
    user_id, headers = register_user(client, "logger")

    with capture_logs(processors=[structlog.contextvars.merge_contextvars]) as logs:
        resp = client.post("/api/projects", json={"name": "Logged project"}, headers=headers)
    assert resp.status_code == 201

    created = [entry for entry in logs if entry["event"] == "project_created"]
    assert len(created) == 1
    assert created[0]["user_id"] == user_id
    assert created[0]["role"] == "member"
    assert "request_id" in created[0]
