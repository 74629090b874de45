from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import case, false, func, or_
from sqlalchemy.orm import Query, Session, joinedload, selectinload

from app import models
from app.core.exceptions import InvalidAssignee, raise_not_found, raise_permission_denied
from app.core.ids import is_decimal_string, parse_id
from app.core.logging import get_logger
from app.core.security import Principal
from app.db import transaction
from app.schemas import PriorityBuckets, StatusBuckets, TaskCreate, TaskSummaryResponse, TaskUpdate
from app.schemas.enums import Priority, TaskStatus
from app.services import access_policy
from app.services.access_policy import Action
from app.services.project_service import get_project_or_404, require_project_permission
from app.services.visibility import visible_project_ids

logger = get_logger(__name__)

ASSIGNEE_ME = "me"
ASSIGNEE_UNASSIGNED = "unassigned"

PROJECT_FORBIDDEN_MESSAGE = "You don't have access to this project"
ASSIGNEE_INVALID_MESSAGE = "The assignee must be the project owner or a project member"

_DENIED_MESSAGES = {
    Action.TASK_READ: "You don't have access to this task",
    Action.TASK_UPDATE: "You are not allowed to update this task",
    Action.TASK_DELETE: "You are not allowed to delete this task",
}

# high > medium > low; higher rank sorts first
_PRIORITY_RANK = case(
    {Priority.LOW.value: 1, Priority.MEDIUM.value: 2, Priority.HIGH.value: 3},
    value=models.Task.priority,
    else_=0,
)

_REQUIRED_FIELDS = ("title", "status", "priority")
_NULLABLE_FIELDS = ("description", "due_date", "assignee_id")


@dataclass
class TaskFilters:
    status: Optional[str] = None
    priority: Optional[str] = None
    project_id: Optional[str] = None
    search: Optional[str] = None
    assignee: Optional[str] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _read_options():
    return (
        joinedload(models.Task.assignee),
        joinedload(models.Task.creator),
        joinedload(models.Task.project).selectinload(models.Project.member_links),
    )


def _get_task_or_404(db: Session, task_id) -> models.Task:
    task_pk = parse_id(task_id)
    if task_pk is None:
        raise_not_found("Task", task_id, "Task not found")
    task = db.query(models.Task).options(*_read_options()).filter(models.Task.id == task_pk).first()
    if task is None:
        raise_not_found("Task", task_pk, "Task not found")
    return task


def _require_task_permission(principal: Principal, task: models.Task, action: Action) -> None:
    decision = access_policy.evaluate(principal, task, action)
    if not decision:
        logger.info(
            "task_access_denied", task_id=task.id, action=action.value, reason=decision.reason
        )
        raise_permission_denied(_DENIED_MESSAGES[action], reason=decision.reason)


def _check_assignee(project: models.Project, assignee_id: int) -> None:
    if not access_policy.can_be_assigned(project, assignee_id):
        raise InvalidAssignee(ASSIGNEE_INVALID_MESSAGE, {"field": "assignee_id"})


def _apply_assignee_filter(query: Query, principal: Principal, assignee: Optional[str]) -> Query:
    if not assignee:
        return query
    if assignee == ASSIGNEE_ME:
        return query.filter(models.Task.assignee_id == principal.id)
    if assignee == ASSIGNEE_UNASSIGNED:
        return query.filter(models.Task.assignee_id.is_(None))
    if is_decimal_string(assignee):
        user_pk = parse_id(assignee)
        if user_pk is None:
            # Well-formed but no user can have it
            return query.filter(false())
        return query.filter(models.Task.assignee_id == user_pk)
    # Anything else is not a selector; ignore it
    return query


def list_tasks(db: Session, principal: Principal, filters: TaskFilters) -> list[models.Task]:
    project_ids = visible_project_ids(db, principal)
    if not project_ids:
        return []

    query = db.query(models.Task)
    if filters.project_id:
        requested = parse_id(filters.project_id)
        if requested is None or requested not in project_ids:
            raise_permission_denied(PROJECT_FORBIDDEN_MESSAGE, reason=access_policy.NOT_PROJECT_MEMBER)
        query = query.filter(models.Task.project_id == requested)
    else:
        query = query.filter(models.Task.project_id.in_(project_ids))

    if filters.status:
        query = query.filter(models.Task.status == filters.status)
    if filters.priority:
        query = query.filter(models.Task.priority == filters.priority)
    if filters.search:
        pattern = f"%{filters.search}%"
        query = query.filter(
            or_(models.Task.title.like(pattern), models.Task.description.like(pattern))
        )
    query = _apply_assignee_filter(query, principal, filters.assignee)

    return (
        query.options(*_read_options())
        .order_by(
            _PRIORITY_RANK.desc(),
            models.Task.due_date.asc().nullslast(),
            models.Task.created_at.desc(),
            models.Task.id.desc(),
        )
        .all()
    )


def get_task(db: Session, task_id, principal: Principal) -> models.Task:
    task = _get_task_or_404(db, task_id)
    _require_task_permission(principal, task, Action.TASK_READ)
    return task


def create_task(db: Session, principal: Principal, payload: TaskCreate) -> models.Task:
    project = get_project_or_404(db, payload.project_id)
    require_project_permission(principal, project, Action.PROJECT_CREATE_TASK)
    if payload.assignee_id is not None:
        _check_assignee(project, payload.assignee_id)

    with transaction(db):
        task = models.Task(
            title=payload.title,
            description=payload.description,
            status=payload.status.value,
            priority=payload.priority.value,
            due_date=payload.due_date,
            project_id=project.id,
            assignee_id=payload.assignee_id,
            created_by_id=principal.id,
            completed_at=_utcnow() if payload.status is TaskStatus.COMPLETED else None,
        )
        db.add(task)

    logger.info("task_created", task_id=task.id, project_id=project.id)
    return _get_task_or_404(db, task.id)


def completion_timestamp(
    previous_status: str, new_status: str, current: Optional[datetime]
) -> Optional[datetime]:
    """completed_at after a status change, derived only from the before/after statuses."""
    completed = TaskStatus.COMPLETED.value
    if new_status == completed and previous_status != completed:
        return _utcnow()
    if new_status != completed and previous_status == completed:
        return None
    return current


def update_task(db: Session, task_id, principal: Principal, payload: TaskUpdate) -> models.Task:
    task = _get_task_or_404(db, task_id)
    _require_task_permission(principal, task, Action.TASK_UPDATE)

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("assignee_id") is not None:
        _check_assignee(task.project, changes["assignee_id"])

    previous_status = task.status
    with transaction(db):
        for field in _REQUIRED_FIELDS:
            value = changes.get(field)
            if value is not None:
                setattr(task, field, getattr(value, "value", value))
        for field in _NULLABLE_FIELDS:
            if field in changes:
                setattr(task, field, changes[field])
        task.completed_at = completion_timestamp(previous_status, task.status, task.completed_at)

    logger.info(
        "task_updated",
        task_id=task.id,
        fields=sorted(changes),
        previous_status=previous_status,
    )
    return _get_task_or_404(db, task.id)


def delete_task(db: Session, task_id, principal: Principal) -> None:
    task = _get_task_or_404(db, task_id)
    _require_task_permission(principal, task, Action.TASK_DELETE)
    pk = task.id
    with transaction(db):
        db.delete(task)
    logger.info("task_deleted", task_id=pk)


def summarize(db: Session, principal: Principal, project_id=None) -> TaskSummaryResponse:
    project_ids = visible_project_ids(db, principal)
    if project_id not in (None, ""):
        requested = parse_id(project_id)
        if requested is None or requested not in project_ids:
            raise_permission_denied(PROJECT_FORBIDDEN_MESSAGE, reason=access_policy.NOT_PROJECT_MEMBER)
        project_ids = [requested]
    if not project_ids:
        return TaskSummaryResponse()

    scope = models.Task.project_id.in_(project_ids)

    status_rows = (
        db.query(models.Task.status, func.count(models.Task.id))
        .filter(scope)
        .group_by(models.Task.status)
        .all()
    )
    summary = StatusBuckets()
    for status_value, count in status_rows:
        if status_value in StatusBuckets.model_fields and status_value != "total":
            setattr(summary, status_value, count)
        summary.total += count

    priority_rows = (
        db.query(models.Task.priority, func.count(models.Task.id))
        .filter(scope)
        .group_by(models.Task.priority)
        .all()
    )
    by_priority = PriorityBuckets()
    for priority_value, count in priority_rows:
        if priority_value in PriorityBuckets.model_fields:
            setattr(by_priority, priority_value, count)

    def _count(*criteria) -> int:
        return (
            db.query(func.count(models.Task.id)).filter(scope, *criteria).scalar()
        ) or 0

    return TaskSummaryResponse(
        summary=summary,
        by_priority=by_priority,
        assigned_to_me=_count(models.Task.assignee_id == principal.id),
        created_by_me=_count(models.Task.created_by_id == principal.id),
        unassigned=_count(models.Task.assignee_id.is_(None)),
    )
