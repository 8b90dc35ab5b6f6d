"""Fallback routing for single-page applications.

Requests for client-side routes (``/orders/42``) have no matching file
or endpoint. When such a request ends in 404 it is dispatched again to
the fallback page, typically ``/index.html``, so the browser app can
render the route itself.
"""

from collections.abc import Callable
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

import structlog

from swan_fastapi.config import settings


if TYPE_CHECKING:
    from fastapi import FastAPI
    from starlette.types import ASGIApp, Message, Receive, Scope, Send


logger = structlog.get_logger()

PathCheck = Callable[[str], bool]


def starts_with_segments(path: str, prefix: str) -> bool:
    """Check whether ``path`` starts with the whole segments of ``prefix``.

    ``/api`` matches ``/api`` and ``/api/users`` but not ``/apiary``.
    """
    prefix = prefix.rstrip("/")
    if not prefix:
        return True
    path, prefix = path.lower(), prefix.lower()
    return path == prefix or path.startswith(prefix + "/")


def has_extension(path: str) -> bool:
    """Check whether the last path segment has a file extension."""
    return bool(PurePosixPath(path).suffix)


def outside_api(path: str) -> bool:
    """Default ignore check: anything not under ``SWAN_API_PREFIX``."""
    return not starts_with_segments(path, settings.api_prefix)


class FallbackMiddleware:
    """ASGI middleware re-dispatching unmatched page requests.

    A request is retried with ``fallback_path`` when the application
    answered 404, ``ignore_check`` accepts the path, and the path has no
    file extension. The original 404 is discarded in that case.
    """

    def __init__(
        self,
        app: "ASGIApp",
        fallback_path: str = settings.fallback_path,
        ignore_check: PathCheck | None = None,
    ) -> None:
        self.app = app
        self.fallback_path = fallback_path
        self.ignore_check = ignore_check or outside_api

    def can_fall_back(self, path: str) -> bool:
        """Check whether a 404 on ``path`` should be retried."""
        return (
            path != self.fallback_path
            and self.ignore_check(path)
            and not has_extension(path)
        )

    async def __call__(self, scope: "Scope", receive: "Receive", send: "Send") -> None:
        if scope["type"] != "http" or not self.can_fall_back(scope["path"]):
            await self.app(scope, receive, send)
            return

        not_found = False

        async def send_unless_not_found(message: "Message") -> None:
            nonlocal not_found
            if message["type"] == "http.response.start" and message["status"] == 404:
                not_found = True
            if not not_found:
                await send(message)

        await self.app(scope, receive, send_unless_not_found)

        if not_found:
            logger.debug(
                "fallback_dispatched",
                path=scope["path"],
                fallback_path=self.fallback_path,
            )
            fallback_scope = {
                **scope,
                "path": self.fallback_path,
                "raw_path": self.fallback_path.encode(),
            }
            await self.app(fallback_scope, receive, send)


def use_fallback(
    app: "FastAPI",
    fallback_path: str | None = None,
    ignore_check: PathCheck | None = None,
) -> "FastAPI":
    """Serve ``fallback_path`` for unmatched, extension-less page requests.

    Args:
        app: The application to configure
        fallback_path: Path dispatched instead, defaults to ``SWAN_FALLBACK_PATH``
        ignore_check: Returns True for paths eligible for the fallback;
            by default everything outside ``SWAN_API_PREFIX``

    Returns:
        The same application, for chaining
    """
    app.add_middleware(
        FallbackMiddleware,
        fallback_path=fallback_path or settings.fallback_path,
        ignore_check=ignore_check,
    )
    return app
