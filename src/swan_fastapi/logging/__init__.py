"""Structured logging, request context and database log storage."""

from swan_fastapi.logging.config import configure_logging
from swan_fastapi.logging.context import (
    clear_request_context,
    get_request_context,
    set_request_context,
    update_request_context,
)
from swan_fastapi.logging.handler import DatabaseLogHandler, add_database_logging
from swan_fastapi.logging.middleware import (
    RequestContextMiddleware,
    RequestLoggingMiddleware,
    get_client_ip,
)
from swan_fastapi.logging.models import LogEntryMixin


__all__ = [
    "DatabaseLogHandler",
    "LogEntryMixin",
    "RequestContextMiddleware",
    "RequestLoggingMiddleware",
    "add_database_logging",
    "clear_request_context",
    "configure_logging",
    "get_client_ip",
    "get_request_context",
    "set_request_context",
    "update_request_context",
]
