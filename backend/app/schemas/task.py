from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.core.ids import EntityId
from app.schemas.enums import Priority, TaskStatus
from app.schemas.project import ProjectBrief
from app.schemas.user import UserBrief


class TaskCreate(BaseModel):
    title: str = Field(min_length=3, max_length=100)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TO_DO
    priority: Priority = Priority.MEDIUM
    due_date: Optional[datetime] = None
    project_id: EntityId
    assignee_id: Optional[EntityId] = None


class TaskUpdate(BaseModel):
    """Partial update; ``assignee_id: null`` unassigns, an absent key leaves it alone."""

    title: Optional[str] = Field(default=None, min_length=3, max_length=100)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[Priority] = None
    due_date: Optional[datetime] = None
    assignee_id: Optional[EntityId] = None


class TaskRead(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: Priority
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    project_id: int
    assignee_id: Optional[int] = None
    created_by_id: int
    assignee: Optional[UserBrief] = None
    creator: Optional[UserBrief] = None
    project: Optional[ProjectBrief] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaskListResponse(BaseModel):
    count: int
    tasks: List[TaskRead]


class TaskEnvelope(BaseModel):
    task: TaskRead


class TaskMutationResponse(BaseModel):
    message: str
    task: TaskRead


class StatusBuckets(BaseModel):
    to_do: int = 0
    in_progress: int = 0
    review: int = 0
    completed: int = 0
    total: int = 0


class PriorityBuckets(BaseModel):
    low: int = 0
    medium: int = 0
    high: int = 0


class TaskSummaryResponse(BaseModel):
    summary: StatusBuckets = Field(default_factory=StatusBuckets)
    by_priority: PriorityBuckets = Field(default_factory=PriorityBuckets)
    assigned_to_me: int = 0
    created_by_me: int = 0
    unassigned: int = 0
