"""Logging handler that stores log records through the ORM.

Each record becomes one row of the application's log model, enriched
with the current request's user agent, client address, user and path
(see ``RequestContextMiddleware``). Records are written with a
short-lived session of their own, outside of any request transaction.
"""

import logging
from collections.abc import Callable
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy.orm import Session

from swan_fastapi.constants import (
    DATABASE_LOGGER_PREFIXES,
    MAX_IPV6_LENGTH,
    MAX_LOG_MESSAGE_LENGTH,
    MAX_THREAD_LENGTH,
    MAX_URL_LENGTH,
    MAX_USER_AGENT_LENGTH,
    MAX_USER_ID_LENGTH,
)
from swan_fastapi.logging.context import get_request_context
from swan_fastapi.logging.models import LogEntryMixin


LogFilter = Callable[[str, int], bool]

# Set while a record is being written, so the write itself is never logged
_emitting: ContextVar[bool] = ContextVar("database_log_emitting", default=False)

_traceback_formatter = logging.Formatter()

# Keys structlog adds that have their own column
_STRUCTLOG_META_KEYS = ("level", "logger", "timestamp", "exc_info", "stack")


def _trim(value: str | None, length: int) -> str | None:
    if value is None:
        return None
    return value[:length]


def _render_record(record: logging.LogRecord) -> tuple[str, str | None]:
    """Extract message and traceback from a stdlib or structlog record.

    structlog events routed through ``ProcessorFormatter.wrap_for_formatter``
    carry the event dict as ``record.msg``; the event name becomes the
    message and the remaining keys are appended as ``key=value`` pairs.
    """
    if isinstance(record.msg, dict):
        event = structlog.processors.format_exc_info(
            None, record.levelname.lower(), dict(record.msg)
        )
        exception = event.pop("exception", None)
        message = str(event.pop("event", ""))
        pairs = " ".join(
            f"{key}={value!r}"
            for key, value in event.items()
            if key not in _STRUCTLOG_META_KEYS and not key.startswith("_")
        )
        return f"{message} {pairs}".strip(), exception

    exception = None
    if record.exc_info:
        exception = _traceback_formatter.formatException(record.exc_info)
    return record.getMessage(), exception


class DatabaseLogHandler(logging.Handler):
    """Write log records as rows of ``log_model``.

    Records from SQLAlchemy's own loggers are ignored, as is anything
    logged while a record is being written.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        log_model: type[LogEntryMixin],
        log_filter: LogFilter | None = None,
        level: int = logging.NOTSET,
    ) -> None:
        """Initialize the handler.

        Args:
            session_factory: Creates a sync session, e.g. a ``sessionmaker``
            log_model: Mapped class combining ``LogEntryMixin``
            log_filter: Optional ``(logger_name, level) -> bool``; records
                for which it returns False are not stored
            level: Minimum level handled
        """
        super().__init__(level)
        self.session_factory = session_factory
        self.log_model = log_model
        self.log_filter = log_filter

    def is_enabled(self, logger_name: str, level: int) -> bool:
        """Check whether records of ``logger_name`` at ``level`` are stored."""
        if logger_name.startswith(DATABASE_LOGGER_PREFIXES):
            return False
        if self.log_filter is None:
            return True
        return self.log_filter(logger_name, level)

    def build_entry(self, record: logging.LogRecord) -> Any:
        """Create an unsaved log model instance for ``record``."""
        message, exception = _render_record(record)
        context = get_request_context()

        entry = self.log_model()
        entry.date = datetime.fromtimestamp(record.created, tz=UTC)
        entry.thread = _trim(record.threadName, MAX_THREAD_LENGTH)
        entry.level = record.levelname
        entry.logger = record.name
        entry.message = _trim(message, MAX_LOG_MESSAGE_LENGTH) or ""
        entry.exception = exception
        entry.browser = _trim(context.get("user_agent"), MAX_USER_AGENT_LENGTH)
        entry.host_address = _trim(context.get("ip_address"), MAX_IPV6_LENGTH)
        entry.user_name = _trim(
            context.get("user_name") or context.get("user_id"), MAX_USER_ID_LENGTH
        )
        entry.url = _trim(context.get("url"), MAX_URL_LENGTH)
        return entry

    def emit(self, record: logging.LogRecord) -> None:
        """Store the record in its own session and transaction."""
        if _emitting.get():
            return

        token = _emitting.set(True)
        try:
            if not self.is_enabled(record.name, record.levelno):
                return
            entry = self.build_entry(record)
            with self.session_factory() as session:
                session.add(entry)
                session.commit()
        except Exception:
            self.handleError(record)
        finally:
            _emitting.reset(token)


def add_database_logging(
    session_factory: Callable[[], Session],
    log_model: type[LogEntryMixin],
    log_filter: LogFilter | None = None,
    logger: logging.Logger | None = None,
    level: int = logging.NOTSET,
) -> DatabaseLogHandler:
    """Attach a ``DatabaseLogHandler`` to ``logger`` (the root logger by default).

    Usage:
        SessionLocal = sessionmaker(bind=engine)
        add_database_logging(SessionLocal, LogEntry)

    Returns:
        The attached handler, so it can be removed again
    """
    handler = DatabaseLogHandler(
        session_factory,
        log_model,
        log_filter=log_filter,
        level=level,
    )
    (logger or logging.getLogger()).addHandler(handler)
    return handler
