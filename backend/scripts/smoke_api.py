import json
import sys
import time
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any, Dict, Optional


DEFAULT_BASE_URL = "http://127.0.0.1:8000"
DEMO_EMAIL = "alice@example.com"
DEMO_PASSWORD = "demo123"


@dataclass
class SmokeResult:
    name: str
    status: int
    ok: bool
    detail: str = ""


def _request(
    path: str,
    method: str = "GET",
    payload: Optional[Dict[str, Any]] = None,
    base_url: str = DEFAULT_BASE_URL,
    token: Optional[str] = None,
):
    url = f"{base_url.rstrip('/')}{path}"
    data = None
    headers = {}
    if payload is not None:
        data = json.dumps(payload).encode("utf-8")
        headers["Content-Type"] = "application/json"
    if token:
        headers["Authorization"] = f"Bearer {token}"

    req = urllib.request.Request(url, data=data, method=method, headers=headers)
    try:
        with urllib.request.urlopen(req, timeout=5) as resp:
            body = resp.read().decode("utf-8")
            return resp.status, body
    except urllib.error.HTTPError as exc:
        body = exc.read().decode("utf-8") if hasattr(exc, "read") else ""
        return exc.code, body
    except (urllib.error.URLError, OSError) as exc:
        return 0, str(exc)


def _parse_json(body: str) -> Any:
    try:
        return json.loads(body)
    except ValueError:
        return None


def _print_results(checks: list[SmokeResult]) -> int:
    failures = [c for c in checks if not c.ok]
    for check in checks:
        status_str = "OK" if check.ok else "FAIL"
        print(f"[{status_str}] {check.name} -> {check.status} {check.detail}")

    if failures:
        print(f"FAIL ({len(failures)}/{len(checks)}) smoke checks failed")
        return 1

    print(f"PASS ({len(checks)}) smoke checks passed")
    return 0


def run_smoke(base_url: str = DEFAULT_BASE_URL) -> int:
    """Walk a seeded server through login, project listing and a task lifecycle."""
    checks: list[SmokeResult] = []

    def add_check(name: str, status: int, ok: bool, detail: str) -> None:
        checks.append(SmokeResult(name=name, status=status, ok=ok, detail=detail))

    status, body = _request("/health", base_url=base_url)
    add_check("GET /health", status, status == 200, "ok" if status == 200 else body)
    if status != 200:
        return _print_results(checks)

    status, body = _request(
        "/api/auth/login",
        method="POST",
        payload={"email": DEMO_EMAIL, "password": DEMO_PASSWORD},
        base_url=base_url,
    )
    login_json = _parse_json(body)
    token = login_json.get("token") if isinstance(login_json, dict) else None
    add_check("POST /api/auth/login", status, token is not None, "token issued" if token else body)
    if not token:
        return _print_results(checks)

    status, body = _request("/api/projects", base_url=base_url, token=token)
    projects_json = _parse_json(body)
    projects = projects_json.get("projects") if isinstance(projects_json, dict) else None
    ok_projects = status == 200 and isinstance(projects, list) and len(projects) > 0
    add_check(
        "GET /api/projects",
        status,
        ok_projects,
        f"count={len(projects)}" if ok_projects else "no projects returned; seed demo data first",
    )
    if not ok_projects:
        return _print_results(checks)
    project_id = projects[0]["id"]

    status, body = _request("/api/tasks/summary", base_url=base_url, token=token)
    summary_json = _parse_json(body)
    total_before = (
        summary_json.get("summary", {}).get("total") if isinstance(summary_json, dict) else None
    )
    add_check("GET /api/tasks/summary", status, isinstance(total_before, int), f"total={total_before}")
    if not isinstance(total_before, int):
        return _print_results(checks)

    status, body = _request(
        "/api/tasks",
        method="POST",
        payload={"title": "smoke-auto", "project_id": project_id, "priority": "high"},
        base_url=base_url,
        token=token,
    )
    task_json = _parse_json(body)
    task = task_json.get("task") if isinstance(task_json, dict) else None
    add_check("POST /api/tasks", status, status == 201 and task is not None, body if task is None else f"id={task['id']}")
    if task is None:
        return _print_results(checks)

    status, body = _request(
        f"/api/tasks/{task['id']}",
        method="PUT",
        payload={"status": "completed"},
        base_url=base_url,
        token=token,
    )
    updated = _parse_json(body)
    completed_at = updated.get("task", {}).get("completed_at") if isinstance(updated, dict) else None
    add_check(f"PUT /api/tasks/{task['id']}", status, completed_at is not None, f"completed_at={completed_at}")

    status, body = _request(f"/api/tasks/{task['id']}", method="DELETE", base_url=base_url, token=token)
    add_check(f"DELETE /api/tasks/{task['id']}", status, status == 200, body)

    status, body = _request("/api/tasks/summary", base_url=base_url, token=token)
    summary_after = _parse_json(body)
    total_after = (
        summary_after.get("summary", {}).get("total") if isinstance(summary_after, dict) else None
    )
    add_check(
        "summary total unchanged after cleanup",
        status,
        total_after == total_before,
        f"before={total_before}, after={total_after}",
    )

    return _print_results(checks)


if __name__ == "__main__":
    base = DEFAULT_BASE_URL
    if len(sys.argv) > 1 and sys.argv[1]:
        base = sys.argv[1]
    # give the server a brief moment if it was just started
    time.sleep(0.2)
    sys.exit(run_smoke(base))
