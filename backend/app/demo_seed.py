from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict

from app import models
from app.core.security import hash_password
from app.db import Base, SessionLocal, engine

DEMO_PASSWORD = "demo123"

DEMO_USERS = [
    {"username": "admin", "first_name": "Ada", "last_name": "Admin", "role": "admin"},
    {"username": "alice", "first_name": "Alice", "last_name": "Lead", "role": "member"},
    {"username": "bob", "first_name": "Bob", "last_name": "Builder", "role": "member"},
    {"username": "carol", "first_name": "Carol", "last_name": "Tester", "role": "member"},
]


def seed_users(db) -> Dict[str, models.User]:
    users: Dict[str, models.User] = {}
    created_any = False
    for data in DEMO_USERS:
        user = db.query(models.User).filter_by(username=data["username"]).first()
        if not user:
            user = models.User(
                email=f"{data['username']}@example.com",
                hashed_password=hash_password(DEMO_PASSWORD),
                is_active=True,
                **data,
            )
            db.add(user)
            db.flush()
            created_any = True
        users[data["username"]] = user

    if created_any:
        db.commit()
        print("Demo users created successfully.")
    else:
        print("Demo users already present, skipping.")
    return users


def seed_projects(db, users: Dict[str, models.User]) -> Dict[str, models.Project]:
    projects_data = [
        {
            "name": "Website relaunch",
            "description": "New marketing site and blog",
            "status": "in_progress",
            "priority": "high",
            "owner": "alice",
            "members": ["bob", "carol"],
        },
        {
            "name": "Internal tooling",
            "description": "Scripts and dashboards for the support team",
            "status": "not_started",
            "priority": "medium",
            "owner": "bob",
            "members": ["alice"],
        },
    ]

    projects: Dict[str, models.Project] = {}
    created_any = False
    for data in projects_data:
        project = db.query(models.Project).filter_by(name=data["name"]).first()
        if not project:
            project = models.Project(
                name=data["name"],
                description=data["description"],
                status=data["status"],
                priority=data["priority"],
                owner_id=users[data["owner"]].id,
            )
            for username in data["members"]:
                project.member_links.append(models.ProjectMember(user_id=users[username].id))
            db.add(project)
            db.flush()
            created_any = True
        projects[data["name"]] = project

    if created_any:
        db.commit()
        print("Demo projects created successfully.")
    else:
        print("Demo projects already present, skipping.")
    return projects


def seed_tasks(db, users: Dict[str, models.User], projects: Dict[str, models.Project]) -> None:
    now = datetime.now(timezone.utc)
    tasks_data = [
        ("Website relaunch", "Draft page copy", "completed", "medium", "carol", "alice", -3),
        ("Website relaunch", "Build landing page", "in_progress", "high", "bob", "alice", 5),
        ("Website relaunch", "Review accessibility", "review", "high", "carol", "bob", 7),
        ("Website relaunch", "Set up analytics", "to_do", "low", None, "alice", None),
        ("Internal tooling", "Collect requirements", "to_do", "medium", "alice", "bob", 10),
    ]

    created_any = False
    for project_name, title, status, priority, assignee, creator, due_in_days in tasks_data:
        project = projects[project_name]
        exists = db.query(models.Task).filter_by(project_id=project.id, title=title).first()
        if exists:
            continue
        db.add(
            models.Task(
                title=title,
                status=status,
                priority=priority,
                project_id=project.id,
                assignee_id=users[assignee].id if assignee else None,
                created_by_id=users[creator].id,
                due_date=now + timedelta(days=due_in_days) if due_in_days is not None else None,
                completed_at=now if status == "completed" else None,
            )
        )
        created_any = True

    if created_any:
        db.commit()
        print("Demo tasks created successfully.")
    else:
        print("Demo tasks already present, skipping.")


def seed_demo_data() -> None:
    db = SessionLocal()
    try:
        Base.metadata.create_all(bind=engine)

        users = seed_users(db)
        projects = seed_projects(db, users)
        seed_tasks(db, users, projects)

        print(f"Demo data seeded successfully. Every demo account uses the password '{DEMO_PASSWORD}'.")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_demo_data()
