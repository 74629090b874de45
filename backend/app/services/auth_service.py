"""
Identity store and authentication gate.

Tokens are stateless HS256 JWTs carrying ``{id, email, role}``; resolving one
always reloads the user so deactivated or deleted accounts are rejected.
"""

from __future__ import annotations

import jwt
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app import models
from app.core.exceptions import (
    AccountDisabled,
    AuthenticationFailed,
    Conflict,
    InvalidInput,
    InvalidToken,
    TokenExpired,
    UnknownPrincipal,
    raise_not_found,
)
from app.core.ids import parse_id
from app.core.logging import get_logger
from app.core.security import (
    Principal,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from app.schemas import UserCreate

logger = get_logger(__name__)


def issue_token(user: models.User) -> str:
    return create_access_token(
        data={"sub": str(user.id), "id": user.id, "email": user.email, "role": user.role}
    )


def resolve_principal(db: Session, token: str) -> Principal:
    try:
        payload = decode_access_token(token)
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpired("Token expired") from exc
    except jwt.PyJWTError as exc:
        raise InvalidToken("Invalid token") from exc

    user_id = payload.get("id")
    if not isinstance(user_id, int) or parse_id(user_id) is None:
        raise InvalidToken("Invalid token")

    user = db.get(models.User, user_id)
    if user is None:
        raise UnknownPrincipal("User not found")
    if not user.is_active:
        raise AccountDisabled("Account is disabled")
    return Principal(id=user.id, email=user.email, role=user.role)


def get_user_by_email(db: Session, email: str) -> models.User | None:
    return db.query(models.User).filter(func.lower(models.User.email) == email.lower()).first()


def find_conflicting_user(db: Session, email: str, username: str) -> models.User | None:
    return (
        db.query(models.User)
        .filter(
            or_(
                func.lower(models.User.email) == email.lower(),
                models.User.username == username,
            )
        )
        .first()
    )


def register_user(db: Session, payload: UserCreate) -> models.User:
    existing = find_conflicting_user(db, payload.email, payload.username)
    if existing is not None:
        field = "email" if existing.email.lower() == payload.email.lower() else "username"
        raise Conflict(f"A user with this {field} already exists", {"field": field})

    user = models.User(
        username=payload.username,
        email=payload.email,
        hashed_password=hash_password(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        role="member",
        is_active=True,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # A concurrent registration took the email or username first
        db.rollback()
        raise Conflict("A user with this email or username already exists") from exc
    db.refresh(user)
    logger.info("user_registered", user_id=user.id)
    return user


def authenticate(db: Session, email: str, password: str) -> models.User:
    user = get_user_by_email(db, email)
    if user is None:
        logger.info("login_failed", reason="unknown_email")
        raise AuthenticationFailed("Invalid email or password")
    if not user.is_active:
        logger.info("login_failed", reason="account_disabled", user_id=user.id)
        raise AccountDisabled("Account is disabled")
    if not verify_password(password, user.hashed_password):
        logger.info("login_failed", reason="bad_password", user_id=user.id)
        raise AuthenticationFailed("Invalid email or password")
    return user


def get_profile(db: Session, principal: Principal) -> models.User:
    user = db.get(models.User, principal.id)
    if user is None:
        raise_not_found("User", principal.id, "User not found")
    return user


def change_password(
    db: Session, principal: Principal, old_password: str, new_password: str
) -> None:
    user = get_profile(db, principal)
    if not verify_password(old_password, user.hashed_password):
        raise InvalidInput("Incorrect old password")
    user.hashed_password = hash_password(new_password)
    db.commit()
    logger.info("password_changed", user_id=user.id)


def list_users(db: Session) -> list[models.User]:
    return db.query(models.User).order_by(models.User.id).all()


def set_user_active(db: Session, user_id, is_active: bool) -> models.User:
    user_pk = parse_id(user_id)
    user = db.get(models.User, user_pk) if user_pk is not None else None
    if user is None:
        raise_not_found("User", user_id, "User not found")
    user.is_active = is_active
    db.commit()
    db.refresh(user)
    logger.info("user_status_changed", target_user_id=user.id, is_active=is_active)
    return user
