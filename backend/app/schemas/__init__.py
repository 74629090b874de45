from .enums import Priority, ProjectStatus, TaskStatus, UserRole
from .user import (
    AuthResponse,
    ChangePasswordRequest,
    ProfileResponse,
    Token,
    UserBrief,
    UserCreate,
    UserListResponse,
    UserLogin,
    UserRead,
    UserStatusResponse,
    UserStatusUpdate,
)
from .project import (
    MessageResponse,
    ProjectBrief,
    ProjectCreate,
    ProjectDetail,
    ProjectEnvelope,
    ProjectListResponse,
    ProjectMemberAddRequest,
    ProjectMemberAddResponse,
    ProjectMutationResponse,
    ProjectRead,
    ProjectUpdate,
    TaskBrief,
)
from .task import (
    PriorityBuckets,
    StatusBuckets,
    TaskCreate,
    TaskEnvelope,
    TaskListResponse,
    TaskMutationResponse,
    TaskRead,
    TaskSummaryResponse,
    TaskUpdate,
)

__all__ = [
    "Priority",
    "ProjectStatus",
    "TaskStatus",
    "UserRole",
    "AuthResponse",
    "ChangePasswordRequest",
    "ProfileResponse",
    "Token",
    "UserBrief",
    "UserCreate",
    "UserListResponse",
    "UserLogin",
    "UserRead",
    "UserStatusResponse",
    "UserStatusUpdate",
    "MessageResponse",
    "ProjectBrief",
    "ProjectCreate",
    "ProjectDetail",
    "ProjectEnvelope",
    "ProjectListResponse",
    "ProjectMemberAddRequest",
    "ProjectMemberAddResponse",
    "ProjectMutationResponse",
    "ProjectRead",
    "ProjectUpdate",
    "TaskBrief",
    "PriorityBuckets",
    "StatusBuckets",
    "TaskCreate",
    "TaskEnvelope",
    "TaskListResponse",
    "TaskMutationResponse",
    "TaskRead",
    "TaskSummaryResponse",
    "TaskUpdate",
]
