from datetime import datetime, timezone

import pytest

from app import models
from app.core.security import Principal
from app.services import access_policy
from app.services.access_policy import Action
from app.services.task_service import completion_timestamp

OWNER_ID = 1
MEMBER_ID = 2
CREATOR_ID = 3
ASSIGNEE_ID = 4
OUTSIDER_ID = 5


def _principal(user_id: int) -> Principal:
    return Principal(id=user_id, email=f"user{user_id}@example.com", role="member")


@pytest.fixture()
def project() -> models.Project:
    project = models.Project(id=10, name="Policy", owner_id=OWNER_ID)
    for user_id in (MEMBER_ID, CREATOR_ID, ASSIGNEE_ID):
        project.member_links.append(models.ProjectMember(user_id=user_id))
    return project


@pytest.fixture()
def task(project: models.Project) -> models.Task:
    return models.Task(
        id=20, title="Policy task", project=project, created_by_id=CREATOR_ID, assignee_id=ASSIGNEE_ID
    )


@pytest.mark.parametrize(
    "user_id, action, allowed, reason",
    [
        (OWNER_ID, Action.PROJECT_READ, True, "owner"),
        (OWNER_ID, Action.PROJECT_DELETE, True, "owner"),
        (OWNER_ID, Action.PROJECT_MANAGE_MEMBERS, True, "owner"),
        (MEMBER_ID, Action.PROJECT_READ, True, "member"),
        (MEMBER_ID, Action.PROJECT_CREATE_TASK, True, "member"),
        (MEMBER_ID, Action.PROJECT_UPDATE, False, "not_project_owner"),
        (MEMBER_ID, Action.PROJECT_DELETE, False, "not_project_owner"),
        (MEMBER_ID, Action.PROJECT_MANAGE_MEMBERS, False, "not_project_owner"),
        (OUTSIDER_ID, Action.PROJECT_READ, False, "not_project_member"),
        (OUTSIDER_ID, Action.PROJECT_CREATE_TASK, False, "not_project_member"),
    ],
)
def test_project_rules(project, user_id, action, allowed, reason):
    decision = access_policy.evaluate(_principal(user_id), project, action)
    assert decision.allowed is allowed
    assert decision.reason == reason
    assert bool(decision) is allowed


@pytest.mark.parametrize(
    "user_id, action, allowed, reason",
    [
        (OWNER_ID, Action.TASK_DELETE, True, "owner"),
        (OWNER_ID, Action.TASK_UPDATE, True, "owner"),
        (CREATOR_ID, Action.TASK_UPDATE, True, "task_creator"),
        (CREATOR_ID, Action.TASK_DELETE, True, "task_creator"),
        (ASSIGNEE_ID, Action.TASK_READ, True, "task_assignee"),
        (ASSIGNEE_ID, Action.TASK_UPDATE, True, "task_assignee"),
        (ASSIGNEE_ID, Action.TASK_DELETE, False, "not_task_deleter"),
        (MEMBER_ID, Action.TASK_READ, True, "member"),
        (MEMBER_ID, Action.TASK_UPDATE, False, "not_task_editor"),
        (MEMBER_ID, Action.TASK_DELETE, False, "not_task_deleter"),
        (OUTSIDER_ID, Action.TASK_READ, False, "no_task_access"),
    ],
)
def test_task_rules(task, user_id, action, allowed, reason):
    decision = access_policy.evaluate(_principal(user_id), task, action)
    assert decision.allowed is allowed
    assert decision.reason == reason


def test_creator_and_assignee_need_no_membership(project):
    former_creator, former_assignee = 6, 7
    task = models.Task(
        id=21, title="Left behind", project=project, created_by_id=former_creator, assignee_id=former_assignee
    )
    assert not access_policy.is_member(former_creator, project)
    assert not access_policy.is_member(former_assignee, project)

    creator = _principal(former_creator)
    assert access_policy.evaluate(creator, task, Action.TASK_READ).reason == "task_creator"
    assert access_policy.evaluate(creator, task, Action.TASK_UPDATE).allowed
    assert access_policy.evaluate(creator, task, Action.TASK_DELETE).allowed

    assignee = _principal(former_assignee)
    read = access_policy.evaluate(assignee, task, Action.TASK_READ)
    assert read.allowed and read.reason == "task_assignee"
    assert access_policy.evaluate(assignee, task, Action.TASK_UPDATE).allowed
    assert not access_policy.evaluate(assignee, task, Action.TASK_DELETE).allowed

    assert not access_policy.evaluate(_principal(OUTSIDER_ID), task, Action.TASK_READ).allowed


def test_action_not_matching_resource_is_denied(project, task):
    assert access_policy.evaluate(_principal(OWNER_ID), project, Action.TASK_READ).reason == "unsupported_action"
    assert access_policy.evaluate(_principal(OWNER_ID), task, Action.PROJECT_READ).reason == "unsupported_action"


def test_can_be_assigned(project):
    assert access_policy.can_be_assigned(project, OWNER_ID)
    assert access_policy.can_be_assigned(project, MEMBER_ID)
    assert not access_policy.can_be_assigned(project, OUTSIDER_ID)


def test_completion_timestamp_transitions():
    stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert completion_timestamp("to_do", "completed", None) is not None
    assert completion_timestamp("completed", "completed", stamp) == stamp
    assert completion_timestamp("completed", "review", stamp) is None
    assert completion_timestamp("to_do", "in_progress", None) is None
