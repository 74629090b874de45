from fastapi import APIRouter, Depends, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from app.core.exceptions import raise_permission_denied
from app.core.logging import bind_principal
from app.core.rate_limit import RATE_LIMITS, limiter
from app.core.security import Principal
from app.db import get_db
from app.schemas import (
    AuthResponse,
    ChangePasswordRequest,
    MessageResponse,
    ProfileResponse,
    Token,
    UserCreate,
    UserLogin,
    UserRead,
)
from app.services import auth_service

router = APIRouter(prefix="/api/auth", tags=["auth"])
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token")


async def get_current_principal(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> Principal:
    """Resolve the bearer token and bind the caller to the request's log context."""
    # Must stay async: contextvars bound inside a sync dependency's worker thread are lost
    principal = await run_in_threadpool(auth_service.resolve_principal, db, token)
    bind_principal(principal.id, principal.role)
    return principal


def get_current_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    if not principal.is_admin:
        raise_permission_denied("Administrator rights required", reason="not_admin")
    return principal


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["auth_operations"])
def register_user(request: Request, payload: UserCreate, db: Session = Depends(get_db)) -> AuthResponse:
    user = auth_service.register_user(db, payload)
    return AuthResponse(
        message="User registered successfully",
        token=auth_service.issue_token(user),
        user=UserRead.model_validate(user, from_attributes=True),
    )


@router.post("/login", response_model=AuthResponse)
@limiter.limit(RATE_LIMITS["auth_operations"])
def login_user(request: Request, payload: UserLogin, db: Session = Depends(get_db)) -> AuthResponse:
    user = auth_service.authenticate(db, payload.email, payload.password)
    return AuthResponse(
        message="Login successful",
        token=auth_service.issue_token(user),
        user=UserRead.model_validate(user, from_attributes=True),
    )


@router.post("/token", response_model=Token)
@limiter.limit(RATE_LIMITS["auth_operations"])
def login_for_access_token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
) -> Token:
    """OAuth2 password flow for the interactive docs; ``username`` carries the email."""
    user = auth_service.authenticate(db, form_data.username.strip().lower(), form_data.password)
    return Token(access_token=auth_service.issue_token(user), token_type="bearer")


@router.get("/profile", response_model=ProfileResponse)
def read_profile(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ProfileResponse:
    user = auth_service.get_profile(db, principal)
    return ProfileResponse(user=UserRead.model_validate(user, from_attributes=True))


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    payload: ChangePasswordRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> MessageResponse:
    auth_service.change_password(db, principal, payload.old_password, payload.new_password)
    return MessageResponse(message="Password changed successfully")
