from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app import models
from app.core.exceptions import Conflict, raise_bad_request, raise_not_found, raise_permission_denied
from app.core.ids import parse_id
from app.core.logging import get_logger
from app.core.security import Principal
from app.db import transaction
from app.schemas import ProjectCreate, ProjectUpdate
from app.services import access_policy
from app.services.access_policy import Action
from app.services.visibility import visible_project_clause

logger = get_logger(__name__)

# Columns a partial update may touch. Non-nullable ones ignore an explicit null.
_REQUIRED_FIELDS = ("name", "status", "priority")
_NULLABLE_FIELDS = ("description", "start_date", "end_date")

_DENIED_MESSAGES = {
    Action.PROJECT_READ: "You don't have access to this project",
    Action.PROJECT_UPDATE: "You are not allowed to update this project",
    Action.PROJECT_DELETE: "You are not allowed to delete this project",
    Action.PROJECT_MANAGE_MEMBERS: "You are not allowed to manage members of this project",
}


def _detail_options():
    return (
        selectinload(models.Project.owner),
        selectinload(models.Project.member_links),
        selectinload(models.Project.members),
        selectinload(models.Project.tasks).selectinload(models.Task.assignee),
    )


def get_project_or_404(db: Session, project_id, *, with_details: bool = False) -> models.Project:
    project_pk = parse_id(project_id)
    if project_pk is None:
        raise_not_found("Project", project_id, "Project not found")
    query = db.query(models.Project).filter(models.Project.id == project_pk)
    if with_details:
        query = query.options(*_detail_options())
    project = query.first()
    if project is None:
        raise_not_found("Project", project_pk, "Project not found")
    return project


def require_project_permission(
    principal: Principal, project: models.Project, action: Action
) -> None:
    decision = access_policy.evaluate(principal, project, action)
    if not decision:
        logger.info(
            "project_access_denied",
            project_id=project.id,
            action=action.value,
            reason=decision.reason,
        )
        raise_permission_denied(_DENIED_MESSAGES.get(action), reason=decision.reason)


def _resolve_member_ids(
    db: Session, member_ids: Iterable[int], owner_id: int
) -> list[int]:
    """Keep ids that resolve to real users; unknown ids are dropped without error."""
    wanted = {int(member_id) for member_id in member_ids if member_id != owner_id}
    if not wanted:
        return []
    rows = db.query(models.User.id).filter(models.User.id.in_(wanted)).all()
    return sorted(row[0] for row in rows)


def list_visible_projects(
    db: Session,
    principal: Principal,
    *,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    search: Optional[str] = None,
) -> list[models.Project]:
    query = db.query(models.Project).filter(visible_project_clause(principal))
    if status:
        query = query.filter(models.Project.status == status)
    if priority:
        query = query.filter(models.Project.priority == priority)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                models.Project.name.like(pattern),
                models.Project.description.like(pattern),
            )
        )
    return (
        query.options(*_detail_options())
        .order_by(models.Project.created_at.desc(), models.Project.id.desc())
        .all()
    )


def get_project(db: Session, project_id, principal: Principal) -> models.Project:
    project = get_project_or_404(db, project_id, with_details=True)
    require_project_permission(principal, project, Action.PROJECT_READ)
    return project


def create_project(db: Session, principal: Principal, payload: ProjectCreate) -> models.Project:
    with transaction(db):
        project = models.Project(
            name=payload.name,
            description=payload.description,
            start_date=payload.start_date,
            end_date=payload.end_date,
            status=payload.status.value,
            priority=payload.priority.value,
            owner_id=principal.id,
        )
        db.add(project)
        db.flush()
        for user_id in _resolve_member_ids(db, payload.members or [], principal.id):
            db.add(models.ProjectMember(project_id=project.id, user_id=user_id))

    logger.info("project_created", project_id=project.id)
    return get_project_or_404(db, project.id, with_details=True)


def update_project(
    db: Session, project_id, principal: Principal, payload: ProjectUpdate
) -> models.Project:
    project = get_project_or_404(db, project_id, with_details=True)
    require_project_permission(principal, project, Action.PROJECT_UPDATE)

    changes = payload.model_dump(exclude_unset=True)
    with transaction(db):
        for field in _REQUIRED_FIELDS:
            value = changes.get(field)
            if value is not None:
                setattr(project, field, getattr(value, "value", value))
        for field in _NULLABLE_FIELDS:
            if field in changes:
                setattr(project, field, changes[field])

        if "members" in changes and changes["members"] is not None:
            # Replace, never merge
            new_ids = set(_resolve_member_ids(db, changes["members"], project.owner_id))
            for link in list(project.member_links):
                if link.user_id not in new_ids:
                    project.member_links.remove(link)
            current = project.member_ids
            for user_id in sorted(new_ids - current):
                project.member_links.append(models.ProjectMember(user_id=user_id))

    logger.info("project_updated", project_id=project.id, fields=sorted(changes))
    return get_project_or_404(db, project.id, with_details=True)


def delete_project(db: Session, project_id, principal: Principal) -> None:
    project = get_project_or_404(db, project_id)
    require_project_permission(principal, project, Action.PROJECT_DELETE)

    pk = project.id
    with transaction(db):
        tasks_deleted = (
            db.query(models.Task)
            .filter(models.Task.project_id == pk)
            .delete(synchronize_session=False)
        )
        db.query(models.ProjectMember).filter(models.ProjectMember.project_id == pk).delete(
            synchronize_session=False
        )
        db.expire(project)
        db.delete(project)

    logger.info("project_deleted", project_id=pk, tasks_deleted=tasks_deleted)


def add_member(db: Session, project_id, principal: Principal, user_id: Optional[int]) -> models.User:
    if user_id is None:
        raise_bad_request("user_id is required")

    project = get_project_or_404(db, project_id)
    require_project_permission(principal, project, Action.PROJECT_MANAGE_MEMBERS)

    user = db.get(models.User, user_id)
    if user is None:
        raise_not_found("User", user_id, "User not found")
    if user.id == project.owner_id:
        raise Conflict("User is already the project owner")
    if access_policy.is_member(user.id, project):
        raise Conflict("User is already a member of this project")

    try:
        with transaction(db):
            db.add(models.ProjectMember(project_id=project.id, user_id=user.id))
    except IntegrityError as exc:
        # Lost a race with a concurrent add of the same member
        raise Conflict("User is already a member of this project") from exc

    logger.info("member_added", project_id=project.id, member_id=user.id)
    return user


def remove_member(db: Session, project_id, principal: Principal, member_id) -> int:
    """Drop a membership and unassign the member's tasks in that project. Returns tasks unassigned."""
    project = get_project_or_404(db, project_id)
    require_project_permission(principal, project, Action.PROJECT_MANAGE_MEMBERS)

    member_pk = parse_id(member_id)
    membership = (
        db.get(models.ProjectMember, (project.id, member_pk)) if member_pk is not None else None
    )
    if membership is None:
        raise_not_found("ProjectMember", member_id, "User is not a member of this project")

    with transaction(db):
        db.delete(membership)
        unassigned = (
            db.query(models.Task)
            .filter(models.Task.project_id == project.id, models.Task.assignee_id == member_pk)
            .update({models.Task.assignee_id: None}, synchronize_session=False)
        )

    logger.info(
        "member_removed", project_id=project.id, member_id=member_pk, tasks_unassigned=unassigned
    )
    return unassigned
