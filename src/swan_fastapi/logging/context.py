"""Per-request context shared by the logging handler and the auth middleware.

Stored in a ContextVar so concurrent requests each see their own values.
"""

from contextvars import ContextVar
from typing import Any


_request_context: ContextVar[dict[str, Any] | None] = ContextVar(
    "request_context", default=None
)


def set_request_context(
    request_id: str | None = None,
    user_id: str | None = None,
    user_name: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    url: str | None = None,
) -> None:
    """Start a fresh context for the current request.

    Args:
        request_id: Request correlation ID
        user_id: Current user ID
        user_name: Current user name
        ip_address: Client IP address
        user_agent: Client user agent
        url: Request path
    """
    _request_context.set(
        {
            "request_id": request_id,
            "user_id": user_id,
            "user_name": user_name,
            "ip_address": ip_address,
            "user_agent": user_agent,
            "url": url,
        }
    )


def update_request_context(**values: Any) -> None:
    """Merge values into the current request's context.

    Every task serving one request shares its context dict, so values
    added downstream (by authentication, say) are visible to outer
    middleware once the inner call returns.
    """
    current = _request_context.get()
    if current is None:
        _request_context.set(dict(values))
    else:
        current.update(values)


def clear_request_context() -> None:
    """Clear the context after the request completes."""
    _request_context.set(None)


def get_request_context() -> dict[str, Any]:
    """Get the current request context.

    Returns:
        Shallow copy of the context dict, or empty dict if not set
    """
    ctx = _request_context.get()
    if ctx is None:
        return {}
    return ctx.copy()
