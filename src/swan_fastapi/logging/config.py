"""structlog configuration.

structlog events are routed through the standard library ``logging``
module so that every handler attached there, including
``DatabaseLogHandler``, receives them.
"""

import logging
from typing import Any

import structlog

from swan_fastapi.config import settings


CONSOLE_HANDLER_NAME = "swan_console"


def _shared_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]


def configure_logging(
    log_level: str | None = None,
    json_logs: bool | None = None,
) -> None:
    """Configure structlog and the root logger.

    Safe to call more than once; the console handler is replaced, not
    duplicated.

    Args:
        log_level: Level name, defaults to ``SWAN_LOG_LEVEL``
        json_logs: Render JSON instead of console output, defaults to
            production-only JSON
    """
    level_name = (log_level or settings.log_level).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    if json_logs is None:
        json_logs = settings.use_json_logs

    shared_processors = _shared_processors()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            (
                structlog.processors.JSONRenderer()
                if json_logs
                else structlog.dev.ConsoleRenderer()
            ),
        ],
    )

    handler = logging.StreamHandler()
    handler.set_name(CONSOLE_HANDLER_NAME)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == CONSOLE_HANDLER_NAME:
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)
