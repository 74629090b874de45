from .project import Project
from .project_member import ProjectMember
from .task import Task
from .user import User

__all__ = [
    "User",
    "Project",
    "ProjectMember",
    "Task",
]
