from . import auth, projects, tasks, users

__all__ = [
    "auth",
    "projects",
    "tasks",
    "users",
]
