# Enums for TaskCollab
from enum import Enum


class UserRole(str, Enum):
    """Global role of a user account"""

    MEMBER = "member"
    ADMIN = "admin"


class ProjectStatus(str, Enum):
    """Lifecycle state of a project"""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"


class TaskStatus(str, Enum):
    """Workflow state of a task"""

    TO_DO = "to_do"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    COMPLETED = "completed"


class Priority(str, Enum):
    """Priority shared by projects and tasks, lowest first"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


__all__ = [
    "UserRole",
    "ProjectStatus",
    "TaskStatus",
    "Priority",
]
