"""Bearer token middleware.

This module provides middleware for:
- Issuing tokens from a username/password form post
- Authenticating requests that carry a bearer token
"""

from typing import TYPE_CHECKING

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import PlainTextResponse

from swan_fastapi.auth.backend import authenticate_token, create_token
from swan_fastapi.auth.schemas import TokenProviderOptions, TokenValidationParameters
from swan_fastapi.constants import FORM_MIME_TYPES, JSON_MIME_TYPE
from swan_fastapi.logging.context import update_request_context
from swan_fastapi.serializers import serialize


if TYPE_CHECKING:
    from starlette.types import ASGIApp


logger = structlog.get_logger()


def _has_form_content_type(request: Request) -> bool:
    content_type = request.headers.get("Content-Type", "")
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type in FORM_MIME_TYPES


class TokenProviderMiddleware(BaseHTTPMiddleware):
    """Middleware that issues bearer tokens.

    A POST of ``username``, ``password``, ``grant_type`` and
    ``client_id`` form fields to the configured path is passed to the
    identity resolver. A resolved identity gets a signed JWT back as
    ``{"access_token": ..., "expires_in": <seconds>}``; every other
    outcome is a 400 with a plain-text reason. Other paths pass through.
    """

    def __init__(self, app: "ASGIApp", options: TokenProviderOptions) -> None:
        super().__init__(app)
        self.options = options

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if request.url.path != self.options.path:
            return await call_next(request)

        if self.options.force_https and request.url.scheme != "https":
            logger.warning("token_request_rejected", reason="https_required")
            return PlainTextResponse("HTTPS is required.", status_code=400)

        if request.method != "POST" or not _has_form_content_type(request):
            logger.warning(
                "token_request_rejected",
                reason="bad_request",
                method=request.method,
            )
            return PlainTextResponse("Bad request.", status_code=400)

        return await self.generate_token(request)

    async def generate_token(self, request: Request) -> Response:
        """Resolve the posted credentials and write the token response."""
        form = await request.form()
        username = str(form.get("username") or "")
        password = str(form.get("password") or "")
        grant_type = str(form.get("grant_type") or "")
        client_id = str(form.get("client_id") or "")

        identity = await self.options.identity_resolver(
            request, grant_type, username, password, client_id
        )
        if identity is None:
            logger.warning(
                "token_request_rejected",
                reason="invalid_credentials",
                username=username,
            )
            return PlainTextResponse("Invalid username or password.", status_code=400)

        access_token = create_token(
            identity,
            username,
            self.options.parameters,
            self.options.expiration,
        )
        payload = await self.options.bearer_token_resolver(
            identity,
            {
                "access_token": access_token,
                "expires_in": int(self.options.expiration.total_seconds()),
            },
        )

        logger.info("token_issued", username=username, grant_type=grant_type)

        return Response(
            content=serialize(payload),
            media_type=JSON_MIME_TYPE,
        )


class AuthenticateSchemeMiddleware(BaseHTTPMiddleware):
    """Middleware that authenticates requests carrying a bearer token.

    A valid token sets ``request.state.identity`` and
    ``request.state.user_id``, binds the user to the structlog and
    request contexts, and lets the request through. Requests without a
    valid token continue anonymously with ``identity`` set to None.
    """

    def __init__(
        self,
        app: "ASGIApp",
        parameters: TokenValidationParameters,
    ) -> None:
        super().__init__(app)
        self.parameters = parameters

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request.state.identity = None
        request.state.user_id = None

        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            token = auth_header.split(" ", 1)[1]
            identity = authenticate_token(token, self.parameters)

            if identity:
                request.state.identity = identity
                request.state.user_id = identity.user_id

                structlog.contextvars.bind_contextvars(user_id=identity.user_id)
                update_request_context(
                    user_id=identity.user_id,
                    user_name=identity.name,
                )
            else:
                logger.debug("bearer_token_rejected", path=request.url.path)

        return await call_next(request)
