"""
Custom exception classes and error handling utilities for TaskCollab.

Services raise these; ``register_exception_handlers`` turns them into JSON
responses carrying a human readable ``detail``.
"""

import traceback
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.logging import get_logger
from app.core.settings import settings

logger = get_logger(__name__)


class TaskCollabException(Exception):
    """Base exception for TaskCollab application."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ResourceNotFound(TaskCollabException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class PermissionDenied(TaskCollabException):
    """Raised when user doesn't have permission to perform action."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(message, {"reason": reason} if reason else None)
        self.reason = reason


class InvalidInput(TaskCollabException):
    """Raised when input validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidAssignee(InvalidInput):
    """Assignee is neither the project owner nor one of its members."""


class Conflict(TaskCollabException):
    """Duplicate resource. Reported as 400 to keep the public contract."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationFailed(TaskCollabException):
    """Base for every way a bearer token can fail to resolve."""

    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidToken(AuthenticationFailed):
    pass


class TokenExpired(AuthenticationFailed):
    pass


class UnknownPrincipal(AuthenticationFailed):
    pass


class AccountDisabled(AuthenticationFailed):
    pass


def raise_not_found(resource_type: str, identifier: Any = None, message: str = None) -> None:
    """
    Raise ResourceNotFound with a descriptive message.

    Args:
        resource_type: Type of resource (e.g., "Project", "User", "Task")
        identifier: The ID that was not found
        message: Custom message (overrides default)
    """
    if message:
        detail = message
    elif identifier is not None:
        detail = f"{resource_type} with id '{identifier}' not found"
    else:
        detail = f"{resource_type} not found"

    raise ResourceNotFound(detail)


def raise_permission_denied(message: str = None, action: str = None, reason: str = None) -> None:
    """
    Raise PermissionDenied with a descriptive message.

    Args:
        message: Custom message
        action: The action that was denied (e.g., "edit project", "delete task")
        reason: Machine readable reason code from the access policy
    """
    if message:
        detail = message
    elif action:
        detail = f"You don't have permission to {action}"
    else:
        detail = "Permission denied"

    raise PermissionDenied(detail, reason=reason)


def raise_bad_request(message: str, field: str = None) -> None:
    """
    Raise InvalidInput with a descriptive message.

    Args:
        message: Description of what's invalid
        field: Field name that's invalid (optional)
    """
    if field:
        detail = f"Invalid value for '{field}': {message}"
    else:
        detail = message

    raise InvalidInput(detail, {"field": field} if field else None)


def _auth_headers(exc: TaskCollabException) -> dict[str, str] | None:
    if isinstance(exc, AuthenticationFailed):
        return {"WWW-Authenticate": "Bearer"}
    return None


def register_exception_handlers(app: FastAPI) -> None:
    """Attach JSON renderers for domain, validation and unexpected errors."""

    @app.exception_handler(TaskCollabException)
    async def _handle_domain_error(request: Request, exc: TaskCollabException) -> JSONResponse:
        content: dict[str, Any] = {"detail": exc.message}
        if exc.details:
            content.update(exc.details)
        return JSONResponse(
            status_code=exc.status_code, content=content, headers=_auth_headers(exc)
        )

    @app.exception_handler(RequestValidationError)
    async def _handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = jsonable_encoder(exc.errors())
        first = errors[0] if errors else {}
        field = ".".join(str(part) for part in first.get("loc", []) if part != "body")
        message = first.get("msg", "Invalid request")
        detail = f"{field}: {message}" if field else message
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": detail, "errors": errors},
        )

    @app.exception_handler(Exception)
    async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        content: dict[str, Any] = {"detail": "Internal server error", "error": str(exc)}
        if not settings.is_production:
            content["trace"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)
