from fastapi.testclient import TestClient

from app import models
from app.db import SessionLocal

from .utils import create_project, create_task, register_user


def test_create_and_list_my_projects(client: TestClient):
    user_id, headers = register_user(client, "owner")

    for i in range(2):
        resp = client.post(
            "/api/projects",
            json={"name": f"Project {i + 1}", "description": "Test project"},
            headers=headers,
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["message"] == "Project created successfully"
        assert body["project"]["owner_id"] == user_id
        assert body["project"]["owner"]["username"] == "owner"
        assert body["project"]["status"] == "not_started"
        assert body["project"]["priority"] == "medium"

    list_resp = client.get("/api/projects", headers=headers)
    assert list_resp.status_code == 200
    list_body = list_resp.json()
    assert list_body["count"] == 2
    # Newest first
    assert [p["name"] for p in list_body["projects"]] == ["Project 2", "Project 1"]


def test_create_project_drops_unknown_members_and_owner(client: TestClient):
    owner_id, headers = register_user(client, "owner")
    member_id, _ = register_user(client, "member")

    project = create_project(client, headers, members=[member_id, owner_id, 9999])
    assert [m["id"] for m in project["members"]] == [member_id]


def test_create_project_rejects_short_name(client: TestClient):
    _, headers = register_user(client, "owner")
    resp = client.post("/api/projects", json={"name": "ab"}, headers=headers)
    assert resp.status_code == 400


def test_visibility_is_owner_or_member_only(client: TestClient):
    _, owner_headers = register_user(client, "owner")
    member_id, member_headers = register_user(client, "member")
    _, outsider_headers = register_user(client, "outsider")

    project = create_project(client, owner_headers, members=[member_id])
    create_project(client, outsider_headers, name="Outsider project")

    member_list = client.get("/api/projects", headers=member_headers).json()
    assert [p["id"] for p in member_list["projects"]] == [project["id"]]

    outsider_list = client.get("/api/projects", headers=outsider_headers).json()
    assert [p["name"] for p in outsider_list["projects"]] == ["Outsider project"]

    assert client.get(f"/api/projects/{project['id']}", headers=member_headers).status_code == 200
    denied = client.get(f"/api/projects/{project['id']}", headers=outsider_headers)
    assert denied.status_code == 403
    assert denied.json()["reason"] == "not_project_member"


def test_owner_with_membership_row_is_listed_once(client: TestClient):
    owner_id, headers = register_user(client, "owner")
    project = create_project(client, headers)

    # Rows like this can only come from outside the API
    with SessionLocal() as db:
        db.add(models.ProjectMember(project_id=project["id"], user_id=owner_id))
        db.commit()

    body = client.get("/api/projects", headers=headers).json()
    assert body["count"] == 1


def test_list_projects_filters(client: TestClient):
    _, headers = register_user(client, "owner")
    create_project(client, headers, name="Website redesign", status="in_progress", priority="high")
    create_project(client, headers, name="Mobile app", description="Build the website companion")
    create_project(client, headers, name="Office move", priority="low")

    by_status = client.get("/api/projects", params={"status": "in_progress"}, headers=headers).json()
    assert [p["name"] for p in by_status["projects"]] == ["Website redesign"]

    by_priority = client.get("/api/projects", params={"priority": "low"}, headers=headers).json()
    assert [p["name"] for p in by_priority["projects"]] == ["Office move"]

    by_search = client.get("/api/projects", params={"search": "website"}, headers=headers).json()
    assert {p["name"] for p in by_search["projects"]} == {"Website redesign", "Mobile app"}


def test_get_project_not_found_precedes_forbidden(client: TestClient):
    _, headers = register_user(client, "owner")
    assert client.get("/api/projects/12345", headers=headers).status_code == 404
    assert client.get("/api/projects/not-a-number", headers=headers).status_code == 404


def test_get_project_includes_tasks(client: TestClient):
    owner_id, headers = register_user(client, "owner")
    project = create_project(client, headers)
    create_task(client, headers, project["id"], title="First task", assignee_id=owner_id)

    body = client.get(f"/api/projects/{project['id']}", headers=headers).json()["project"]
    assert [t["title"] for t in body["tasks"]] == ["First task"]
    assert body["tasks"][0]["assignee"]["id"] == owner_id


def test_update_project_partial_and_members_replaced(client: TestClient):
    _, headers = register_user(client, "owner")
    first_id, _ = register_user(client, "first")
    second_id, _ = register_user(client, "second")

    project = create_project(
        client,
        headers,
        members=[first_id],
        start_date="2024-01-01T00:00:00Z",
    )

    resp = client.put(
        f"/api/projects/{project['id']}",
        json={"status": "in_progress", "members": [second_id]},
        headers=headers,
    )
    assert resp.status_code == 200
    updated = resp.json()["project"]
    assert updated["status"] == "in_progress"
    assert updated["name"] == project["name"]
    assert updated["description"] == "desc"
    assert updated["start_date"] is not None
    assert [m["id"] for m in updated["members"]] == [second_id]

    emptied = client.put(
        f"/api/projects/{project['id']}", json={"description": ""}, headers=headers
    ).json()["project"]
    assert emptied["description"] == ""
    assert emptied["name"] == project["name"]
    assert emptied["status"] == "in_progress"

    cleared = client.put(
        f"/api/projects/{project['id']}",
        json={"description": None, "start_date": None, "name": None},
        headers=headers,
    ).json()["project"]
    assert cleared["description"] is None
    assert cleared["start_date"] is None
    assert cleared["name"] == project["name"]


def test_only_owner_updates_and_deletes(client: TestClient):
    _, owner_headers = register_user(client, "owner")
    member_id, member_headers = register_user(client, "member")
    project = create_project(client, owner_headers, members=[member_id])

    update = client.put(f"/api/projects/{project['id']}", json={"name": "Hijacked"}, headers=member_headers)
    assert update.status_code == 403
    assert update.json()["reason"] == "not_project_owner"

    delete = client.delete(f"/api/projects/{project['id']}", headers=member_headers)
    assert delete.status_code == 403

    assert client.put("/api/projects/777", json={"name": "Nope"}, headers=member_headers).status_code == 404


def test_delete_project_cascades(client: TestClient):
    owner_id, headers = register_user(client, "owner")
    member_id, member_headers = register_user(client, "member")
    project = create_project(client, headers, members=[member_id])
    task_ids = [
        create_task(client, headers, project["id"], title=f"Task {i}", assignee_id=member_id)["id"]
        for i in range(3)
    ]
    other = create_project(client, headers, name="Survivor")
    survivor_task = create_task(client, headers, other["id"], title="Keep me")

    resp = client.delete(f"/api/projects/{project['id']}", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Project and its tasks deleted successfully"

    assert client.get(f"/api/projects/{project['id']}", headers=headers).status_code == 404
    for task_id in task_ids:
        assert client.get(f"/api/tasks/{task_id}", headers=headers).status_code == 404
    assert client.get(f"/api/tasks/{survivor_task['id']}", headers=headers).status_code == 200
    assert client.get("/api/projects", headers=member_headers).json()["count"] == 0

    with SessionLocal() as db:
        assert db.query(models.ProjectMember).filter_by(project_id=project["id"]).count() == 0
        assert db.query(models.Task).filter_by(project_id=project["id"]).count() == 0


def test_project_ids_out_of_range(client: TestClient):
    _, headers = register_user(client, "owner")
    project = create_project(client, headers)
    assert project["id"] == 1

    for raw in ("99999999999999999999", "0_1", "+1", "²"):
        assert client.get(f"/api/projects/{raw}", headers=headers).status_code == 404, raw
        assert client.delete(f"/api/projects/{raw}", headers=headers).status_code == 404, raw

    resp = client.post("/api/projects", json={"name": "Too big", "members": [10**20]}, headers=headers)
    assert resp.status_code == 400
    resp = client.put(f"/api/projects/{project['id']}", json={"members": [2**63]}, headers=headers)
    assert resp.status_code == 400

    with SessionLocal() as db:
        assert db.query(models.Project).count() == 1
