from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.core.ids import EntityId
from app.schemas.enums import Priority, ProjectStatus, TaskStatus
from app.schemas.user import UserBrief


class ProjectBase(BaseModel):
    name: str = Field(min_length=3, max_length=100)
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: ProjectStatus = ProjectStatus.NOT_STARTED
    priority: Priority = Priority.MEDIUM


class ProjectCreate(ProjectBase):
    members: Optional[List[EntityId]] = None


class ProjectUpdate(BaseModel):
    """
    Partial update. Only fields present in the request body are applied;
    ``model_fields_set`` tells "absent" apart from an explicit null or "".
    """

    name: Optional[str] = Field(default=None, min_length=3, max_length=100)
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[ProjectStatus] = None
    priority: Optional[Priority] = None
    members: Optional[List[EntityId]] = None


class ProjectBrief(BaseModel):
    id: int
    name: str
    status: ProjectStatus
    priority: Priority

    model_config = {"from_attributes": True}


class TaskBrief(BaseModel):
    """Task as listed inside a project."""

    id: int
    title: str
    status: TaskStatus
    priority: Priority
    due_date: Optional[datetime] = None
    assignee_id: Optional[int] = None
    assignee: Optional[UserBrief] = None

    model_config = {"from_attributes": True}


class ProjectRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: ProjectStatus
    priority: Priority
    owner_id: int
    owner: UserBrief
    members: List[UserBrief] = []
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectDetail(ProjectRead):
    tasks: List[TaskBrief] = []


class ProjectListResponse(BaseModel):
    count: int
    projects: List[ProjectDetail]


class ProjectEnvelope(BaseModel):
    project: ProjectDetail


class ProjectMutationResponse(BaseModel):
    message: str
    project: ProjectRead


class ProjectMemberAddRequest(BaseModel):
    # Optional so a missing id is reported by the service, not the validator
    user_id: Optional[EntityId] = None


class ProjectMemberAddResponse(BaseModel):
    message: str
    member: UserBrief


class MessageResponse(BaseModel):
    message: str
