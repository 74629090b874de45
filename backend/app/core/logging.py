"""
Structured logging configuration for TaskCollab.

Uses structlog for JSON-formatted logs in production,
and colored console output in development.
"""

import logging
import sys
from typing import Any

import structlog
from app.core.settings import settings


def configure_logging() -> None:
    """Configure structured logging based on environment."""

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.app_debug and not settings.is_production:
        processors = shared_processors + [structlog.dev.ConsoleRenderer(colors=True)]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    log_level = logging.DEBUG if settings.app_debug else logging.INFO
    if settings.testing:
        log_level = logging.WARNING

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    # Third-party noise
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("argon2").setLevel(logging.WARNING)


def bind_principal(user_id: int, role: str) -> None:
    """Attach the authenticated principal to every log line of the current request."""
    structlog.contextvars.bind_contextvars(user_id=user_id, role=role)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Example:
        >>> from app.core.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("task_created", task_id=12, project_id=3)
    """
    return structlog.get_logger(name)
