from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.rate_limit import RATE_LIMITS, limiter
from app.core.security import Principal
from app.db import get_db
from app.routers.auth import get_current_admin
from app.schemas import UserListResponse, UserRead, UserStatusResponse, UserStatusUpdate
from app.services import auth_service

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=UserListResponse)
def list_users(
    db: Session = Depends(get_db),
    admin: Principal = Depends(get_current_admin),
) -> UserListResponse:
    users = auth_service.list_users(db)
    return UserListResponse(
        count=len(users),
        users=[UserRead.model_validate(u, from_attributes=True) for u in users],
    )


@router.put("/{user_id}/status", response_model=UserStatusResponse)
@limiter.limit(RATE_LIMITS["admin_operations"])
def set_user_status(
    request: Request,
    user_id: str,
    payload: UserStatusUpdate,
    db: Session = Depends(get_db),
    admin: Principal = Depends(get_current_admin),
) -> UserStatusResponse:
    """Activate or deactivate an account. Deactivated users can no longer authenticate."""
    user = auth_service.set_user_active(db, user_id, payload.is_active)
    state = "activated" if user.is_active else "deactivated"
    return UserStatusResponse(
        message=f"User {state} successfully",
        user=UserRead.model_validate(user, from_attributes=True),
    )
