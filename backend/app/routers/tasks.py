from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.security import Principal
from app.db import get_db
from app.routers.auth import get_current_principal
from app.schemas import (
    MessageResponse,
    Priority,
    TaskCreate,
    TaskEnvelope,
    TaskListResponse,
    TaskMutationResponse,
    TaskRead,
    TaskStatus,
    TaskSummaryResponse,
    TaskUpdate,
)
from app.services import task_service
from app.services.task_service import TaskFilters

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.get("", response_model=TaskListResponse)
def list_tasks(
    status_filter: Optional[TaskStatus] = Query(default=None, alias="status"),
    priority: Optional[Priority] = Query(default=None),
    project_id: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    assignee: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> TaskListResponse:
    """
    List tasks of every project visible to the caller.

    Ordered by priority (high first), then due date (earliest first, undated
    last), then newest first.

    - **assignee**: `me`, `unassigned` or a user id
    """
    filters = TaskFilters(
        status=status_filter.value if status_filter else None,
        priority=priority.value if priority else None,
        project_id=project_id,
        search=search,
        assignee=assignee,
    )
    tasks = task_service.list_tasks(db, principal, filters)
    return TaskListResponse(
        count=len(tasks),
        tasks=[TaskRead.model_validate(t, from_attributes=True) for t in tasks],
    )


@router.get("/summary", response_model=TaskSummaryResponse)
def get_tasks_summary(
    project_id: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> TaskSummaryResponse:
    return task_service.summarize(db, principal, project_id)


@router.get("/{task_id}", response_model=TaskEnvelope)
def get_task(
    task_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> TaskEnvelope:
    task = task_service.get_task(db, task_id, principal)
    return TaskEnvelope(task=TaskRead.model_validate(task, from_attributes=True))


@router.post("", response_model=TaskMutationResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> TaskMutationResponse:
    task = task_service.create_task(db, principal, payload)
    return TaskMutationResponse(
        message="Task created successfully",
        task=TaskRead.model_validate(task, from_attributes=True),
    )


@router.put("/{task_id}", response_model=TaskMutationResponse)
def update_task(
    task_id: str,
    payload: TaskUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> TaskMutationResponse:
    task = task_service.update_task(db, task_id, principal, payload)
    return TaskMutationResponse(
        message="Task updated successfully",
        task=TaskRead.model_validate(task, from_attributes=True),
    )


@router.delete("/{task_id}", response_model=MessageResponse)
def delete_task(
    task_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> MessageResponse:
    task_service.delete_task(db, task_id, principal)
    return MessageResponse(message="Task deleted successfully")
