from fastapi.testclient import TestClient

from app import models
from app.db import SessionLocal

DEFAULT_PASSWORD = "secret123"


def register_user(client: TestClient, username: str, password: str = DEFAULT_PASSWORD) -> tuple[int, dict]:
    """Register ``username`` and return its id with ready-to-use auth headers."""
    resp = client.post(
        "/api/auth/register",
        json={
            "username": username,
            "email": f"{username}@example.com",
            "password": password,
            "first_name": username.title(),
        },
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    return body["user"]["id"], {"Authorization": f"Bearer {body['token']}"}


def create_project(client: TestClient, headers: dict, name: str = "Test Project", **extra) -> dict:
    payload = {"name": name, "description": "desc"}
    payload.update(extra)
    resp = client.post("/api/projects", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["project"]


def add_member(client: TestClient, headers: dict, project_id: int, user_id: int) -> None:
    resp = client.post(
        f"/api/projects/{project_id}/members", json={"user_id": user_id}, headers=headers
    )
    assert resp.status_code == 200, resp.text


def create_task(client: TestClient, headers: dict, project_id: int, title: str = "Test task", **extra) -> dict:
    payload = {"title": title, "project_id": project_id}
    payload.update(extra)
    resp = client.post("/api/tasks", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["task"]


def promote_to_admin(user_id: int) -> None:
    with SessionLocal() as db:
        user = db.get(models.User, user_id)
        user.role = "admin"
        db.commit()
