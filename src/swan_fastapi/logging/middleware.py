"""Request context and request logging middleware.

``RequestContextMiddleware`` assigns each request an ID and publishes
client details for the logging handler; ``RequestLoggingMiddleware``
logs every request and response with structlog, reading the request ID,
client address and user from that same context.

Install the logging middleware inside the context middleware (add it
first), and authentication inside both, so the user it resolves is
part of the completion event.
"""

import time
import uuid
from collections.abc import Callable, Sequence
from typing import Any

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from swan_fastapi.constants import DEFAULT_LOG_EXCLUDED_PATHS
from swan_fastapi.http.fallback import starts_with_segments
from swan_fastapi.logging.context import (
    clear_request_context,
    get_request_context,
    set_request_context,
)


logger = structlog.get_logger()

# Checked in order; the first address of the first present header wins
FORWARDING_HEADERS = ("X-Forwarded-For", "X-Real-IP")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware that adds a unique request ID and request context.

    The request ID is added to:
    - request.state.request_id (and trace_id, used by error responses)
    - Response header X-Request-ID
    - Structlog context

    Client address, user agent and path go to the request context read
    by ``DatabaseLogHandler`` and ``RequestLoggingMiddleware``.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        request.state.request_id = request_id
        request.state.trace_id = request_id

        structlog.contextvars.bind_contextvars(request_id=request_id)
        set_request_context(
            request_id=request_id,
            ip_address=get_client_ip(request),
            user_agent=request.headers.get("User-Agent"),
            url=request.url.path,
        )

        try:
            response = await call_next(request)
        finally:
            clear_request_context()
            structlog.contextvars.unbind_contextvars("request_id", "user_id")

        response.headers["X-Request-ID"] = request_id
        return response


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


def _request_fields(request: Request) -> dict[str, Any]:
    context = get_request_context()
    fields: dict[str, Any] = {
        "method": request.method,
        "path": request.url.path,
        "client_ip": context.get("ip_address") or get_client_ip(request),
    }
    if request.url.query:
        fields["query"] = str(request.url.query)
    if context.get("request_id"):
        fields["request_id"] = context["request_id"]
    return fields


def _user_fields() -> dict[str, Any]:
    context = get_request_context()
    return {
        key: context[key]
        for key in ("user_id", "user_name")
        if context.get(key) is not None
    }


def _log_method_for(status_code: int) -> Callable[..., Any]:
    if status_code >= 500:
        return logger.error
    if status_code >= 400:
        return logger.warning
    return logger.info


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware that logs a start and a completion event per request.

    Completion events carry the status code, the duration and, for
    authenticated requests, the user from the request context. 5xx
    responses are logged as errors and 4xx as warnings.
    """

    def __init__(
        self,
        app: Any,
        exclude_paths: Sequence[str] | None = None,
    ) -> None:
        """Initialize the middleware.

        Args:
            app: The ASGI application
            exclude_paths: Path prefixes (whole segments) that are not logged
        """
        super().__init__(app)
        self.exclude_paths = tuple(
            DEFAULT_LOG_EXCLUDED_PATHS if exclude_paths is None else exclude_paths
        )

    def is_excluded(self, path: str) -> bool:
        """Check whether requests for ``path`` are left out of the log."""
        return any(starts_with_segments(path, prefix) for prefix in self.exclude_paths)

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if self.is_excluded(request.url.path):
            return await call_next(request)

        fields = _request_fields(request)
        logger.info("request_started", **fields)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request_failed",
                **fields,
                **_user_fields(),
                duration_ms=_elapsed_ms(start),
            )
            raise

        _log_method_for(response.status_code)(
            "request_completed",
            **fields,
            **_user_fields(),
            status_code=response.status_code,
            duration_ms=_elapsed_ms(start),
        )
        return response


def get_client_ip(request: Request) -> str | None:
    """Client address of a request, honoring proxy headers.

    Returns:
        The first address of the first forwarding header present, else
        the socket peer, else None
    """
    for header in FORWARDING_HEADERS:
        value = request.headers.get(header)
        if value:
            return value.split(",", 1)[0].strip()
    return request.client.host if request.client else None
