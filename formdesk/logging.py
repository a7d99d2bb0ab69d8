"""structlog setup and per-request log context."""

from __future__ import annotations

import logging
import uuid

import structlog

REQUEST_ID_HEADER = "X-Request-ID"


def configure_logging(level: int | str = logging.INFO) -> None:
    """Emit one JSON object per event on stdout at ``level`` and above."""

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(level=level, format="%(message)s", handlers=[logging.StreamHandler()])
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_request_context(method: str, path: str, request_id: str | None = None) -> str:
    """Start a fresh log context for one HTTP request and return its id."""

    request_id = (request_id or "").strip()[:64] or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, method=method, path=path)
    return request_id


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


logger = structlog.get_logger()

__all__ = [
    "REQUEST_ID_HEADER",
    "bind_request_context",
    "clear_request_context",
    "configure_logging",
    "logger",
]
