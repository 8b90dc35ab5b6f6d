"""Log entry columns for ``DatabaseLogHandler``.

    class LogEntry(Base, UUIDMixin, LogEntryMixin):
        __tablename__ = "log_entries"
"""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from swan_fastapi.constants import (
    MAX_IPV6_LENGTH,
    MAX_LOG_LEVEL_LENGTH,
    MAX_LOGGER_NAME_LENGTH,
    MAX_THREAD_LENGTH,
    MAX_URL_LENGTH,
    MAX_USER_AGENT_LENGTH,
    MAX_USER_ID_LENGTH,
)


class LogEntryMixin:
    """Columns of one stored log record.

    Attributes:
        date: When the record was created (UTC)
        thread: Name of the emitting thread
        level: Level name (INFO, WARNING...)
        logger: Name of the emitting logger
        message: Rendered message, trimmed to MAX_LOG_MESSAGE_LENGTH
        exception: Formatted traceback, if any
        browser: User agent of the current request
        host_address: Client IP of the current request
        user_name: Authenticated user of the current request
        url: Path of the current request
    """

    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    thread: Mapped[str | None] = mapped_column(
        String(MAX_THREAD_LENGTH),
        nullable=True,
    )
    level: Mapped[str] = mapped_column(
        String(MAX_LOG_LEVEL_LENGTH),
        nullable=False,
        index=True,
    )
    logger: Mapped[str] = mapped_column(
        String(MAX_LOGGER_NAME_LENGTH),
        nullable=False,
        index=True,
    )
    message: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    exception: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    browser: Mapped[str | None] = mapped_column(
        String(MAX_USER_AGENT_LENGTH),
        nullable=True,
    )
    host_address: Mapped[str | None] = mapped_column(
        String(MAX_IPV6_LENGTH),
        nullable=True,
    )
    user_name: Mapped[str | None] = mapped_column(
        String(MAX_USER_ID_LENGTH),
        nullable=True,
    )
    url: Mapped[str | None] = mapped_column(
        String(MAX_URL_LENGTH),
        nullable=True,
    )
