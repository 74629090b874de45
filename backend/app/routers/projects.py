from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.security import Principal
from app.db import get_db
from app.routers.auth import get_current_principal
from app.schemas import (
    MessageResponse,
    Priority,
    ProjectCreate,
    ProjectDetail,
    ProjectEnvelope,
    ProjectListResponse,
    ProjectMemberAddRequest,
    ProjectMemberAddResponse,
    ProjectMutationResponse,
    ProjectRead,
    ProjectStatus,
    ProjectUpdate,
    UserBrief,
)
from app.services import project_service

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.get("", response_model=ProjectListResponse)
def list_projects(
    status_filter: Optional[ProjectStatus] = Query(default=None, alias="status"),
    priority: Optional[Priority] = Query(default=None),
    search: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ProjectListResponse:
    """
    List projects the caller owns or is a member of.

    - **status**: exact match on project status
    - **priority**: exact match on project priority
    - **search**: substring of the name or the description
    """
    projects = project_service.list_visible_projects(
        db,
        principal,
        status=status_filter.value if status_filter else None,
        priority=priority.value if priority else None,
        search=search,
    )
    return ProjectListResponse(
        count=len(projects),
        projects=[ProjectDetail.model_validate(p, from_attributes=True) for p in projects],
    )


@router.get("/{project_id}", response_model=ProjectEnvelope)
def get_project(
    project_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ProjectEnvelope:
    project = project_service.get_project(db, project_id, principal)
    return ProjectEnvelope(project=ProjectDetail.model_validate(project, from_attributes=True))


@router.post("", response_model=ProjectMutationResponse, status_code=status.HTTP_201_CREATED)
def create_project(
    payload: ProjectCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ProjectMutationResponse:
    project = project_service.create_project(db, principal, payload)
    return ProjectMutationResponse(
        message="Project created successfully",
        project=ProjectRead.model_validate(project, from_attributes=True),
    )


@router.put("/{project_id}", response_model=ProjectMutationResponse)
def update_project(
    project_id: str,
    payload: ProjectUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ProjectMutationResponse:
    project = project_service.update_project(db, project_id, principal, payload)
    return ProjectMutationResponse(
        message="Project updated successfully",
        project=ProjectRead.model_validate(project, from_attributes=True),
    )


@router.delete("/{project_id}", response_model=MessageResponse)
def delete_project(
    project_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> MessageResponse:
    project_service.delete_project(db, project_id, principal)
    return MessageResponse(message="Project and its tasks deleted successfully")


@router.post("/{project_id}/members", response_model=ProjectMemberAddResponse)
def add_project_member(
    project_id: str,
    payload: ProjectMemberAddRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ProjectMemberAddResponse:
    user = project_service.add_member(db, project_id, principal, payload.user_id)
    return ProjectMemberAddResponse(
        message="Member added to project successfully",
        member=UserBrief.model_validate(user, from_attributes=True),
    )


@router.delete("/{project_id}/members/{member_id}", response_model=MessageResponse)
def remove_project_member(
    project_id: str,
    member_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> MessageResponse:
    project_service.remove_member(db, project_id, principal, member_id)
    return MessageResponse(message="Member removed from project successfully")
