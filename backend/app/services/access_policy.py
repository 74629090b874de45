"""
Access policy for projects and tasks.

Every authorization decision in the service layer goes through ``evaluate``,
which is a pure function of the principal, the loaded resource and the
requested action. Resources must be loaded with their ownership context:
a ``Project`` with ``member_links``, a ``Task`` with ``project.member_links``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from app import models
from app.core.security import Principal


class Action(str, Enum):
    PROJECT_READ = "project:read"
    PROJECT_UPDATE = "project:update"
    PROJECT_DELETE = "project:delete"
    PROJECT_MANAGE_MEMBERS = "project:manage_members"
    PROJECT_CREATE_TASK = "project:create_task"
    TASK_READ = "task:read"
    TASK_UPDATE = "task:update"
    TASK_DELETE = "task:delete"


# Permit reasons
OWNER = "owner"
MEMBER = "member"
TASK_CREATOR = "task_creator"
TASK_ASSIGNEE = "task_assignee"

# Deny reasons
NOT_PROJECT_MEMBER = "not_project_member"
NOT_PROJECT_OWNER = "not_project_owner"
NO_TASK_ACCESS = "no_task_access"
NOT_TASK_EDITOR = "not_task_editor"
NOT_TASK_DELETER = "not_task_deleter"
UNSUPPORTED = "unsupported_action"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str

    def __bool__(self) -> bool:
        return self.allowed


Resource = Union[models.Project, models.Task]

_PROJECT_ACTIONS = {
    Action.PROJECT_READ,
    Action.PROJECT_UPDATE,
    Action.PROJECT_DELETE,
    Action.PROJECT_MANAGE_MEMBERS,
    Action.PROJECT_CREATE_TASK,
}
_TASK_ACTIONS = {Action.TASK_READ, Action.TASK_UPDATE, Action.TASK_DELETE}


def _permit(reason: str) -> Decision:
    return Decision(True, reason)


def _deny(reason: str) -> Decision:
    return Decision(False, reason)


def is_owner(user_id: int, project: models.Project) -> bool:
    return project.owner_id == user_id


def is_member(user_id: int, project: models.Project) -> bool:
    return user_id in project.member_ids


def has_project_access(user_id: int, project: models.Project) -> bool:
    return is_owner(user_id, project) or is_member(user_id, project)


def can_be_assigned(project: models.Project, user_id: int) -> bool:
    """Only the owner or a current member may hold a task of the project."""
    return has_project_access(user_id, project)


def _evaluate_project(principal: Principal, project: models.Project, action: Action) -> Decision:
    if is_owner(principal.id, project):
        return _permit(OWNER)
    if action in (Action.PROJECT_READ, Action.PROJECT_CREATE_TASK):
        if is_member(principal.id, project):
            return _permit(MEMBER)
        return _deny(NOT_PROJECT_MEMBER)
    return _deny(NOT_PROJECT_OWNER)


def _evaluate_task(principal: Principal, task: models.Task, action: Action) -> Decision:
    project = task.project
    if is_owner(principal.id, project):
        return _permit(OWNER)
    if task.created_by_id == principal.id:
        return _permit(TASK_CREATOR)

    if action is Action.TASK_DELETE:
        return _deny(NOT_TASK_DELETER)

    if task.assignee_id is not None and task.assignee_id == principal.id:
        return _permit(TASK_ASSIGNEE)

    if action is Action.TASK_UPDATE:
        # Plain members can read but not edit
        return _deny(NOT_TASK_EDITOR)

    if is_member(principal.id, project):
        return _permit(MEMBER)
    return _deny(NO_TASK_ACCESS)


def evaluate(principal: Principal, resource: Resource, action: Action) -> Decision:
    """Decide whether ``principal`` may perform ``action`` on ``resource``."""
    if isinstance(resource, models.Project) and action in _PROJECT_ACTIONS:
        return _evaluate_project(principal, resource, action)
    if isinstance(resource, models.Task) and action in _TASK_ACTIONS:
        return _evaluate_task(principal, resource, action)
    return _deny(UNSUPPORTED)
