from __future__ import annotations

from sqlalchemy import or_, select
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from app import models
from app.core.security import Principal


def visible_project_clause(principal: Principal) -> ColumnElement[bool]:
    """
    WHERE clause matching projects the principal owns or is a member of.

    Membership is tested through an IN subquery rather than a join, so a
    project shows up once even if its owner also has a membership row.
    """
    member_of = select(models.ProjectMember.project_id).where(
        models.ProjectMember.user_id == principal.id
    )
    return or_(
        models.Project.owner_id == principal.id,
        models.Project.id.in_(member_of),
    )


def visible_project_ids(db: Session, principal: Principal) -> list[int]:
    rows = db.execute(
        select(models.Project.id)
        .where(visible_project_clause(principal))
        .order_by(models.Project.id)
    )
    return list(rows.scalars())
