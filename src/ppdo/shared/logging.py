"""Structured logging configuration."""

import logging
import sys
from typing import Any, cast

import structlog

from ppdo.config import get_settings

_QUIET_LOGGERS = ("uvicorn", "uvicorn.access", "httpx", "httpcore", "sqlalchemy.engine")


def setup_logging() -> None:
    """Configure structlog and the stdlib root logger once per process."""
    settings = get_settings()
    log_level = logging.DEBUG if settings.app_debug else logging.INFO

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_development:
        renderer: list[Any] = [structlog.dev.ConsoleRenderer(colors=True)]
    else:
        renderer = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=shared_processors + renderer,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    for logger_name in _QUIET_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def bind_request_user(user_id: str, role: str, department_id: str | None) -> None:
    """Attach the caller to every log line emitted for the current request."""
    structlog.contextvars.bind_contextvars(
        user_id=user_id,
        user_role=role,
        department_id=department_id,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance."""
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
