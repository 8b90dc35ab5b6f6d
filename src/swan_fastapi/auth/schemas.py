"""Schemas for bearer token issuance and validation."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from pydantic import BaseModel, Field
from starlette.requests import Request

from swan_fastapi.config import settings
from swan_fastapi.constants import DEFAULT_TOKEN_PATH


class ClaimsIdentity(BaseModel):
    """An authenticated principal and its claims.

    Attributes:
        name: Display or login name of the principal
        claims: Claims to embed in issued tokens (roles, ids...)
        authentication_type: How the identity was established; None
            means anonymous
    """

    name: str | None = None
    claims: dict[str, Any] = Field(default_factory=dict)
    authentication_type: str | None = None

    @property
    def is_authenticated(self) -> bool:
        """Whether the identity was established by some authentication."""
        return bool(self.authentication_type)

    @property
    def user_id(self) -> str | None:
        """The ``sub`` claim, falling back to the name."""
        subject = self.claims.get("sub")
        if subject is not None:
            return str(subject)
        return self.name


class TokenValidationParameters(BaseModel):
    """How bearer tokens are signed and validated.

    Attributes:
        signing_key: Symmetric key used to sign and verify tokens
        issuer: Expected ``iss`` claim; not checked when None
        audience: Expected ``aud`` claim; not checked when None
        algorithm: HMAC algorithm (HS256 by default)
        validate_lifetime: Reject expired tokens
        leeway_seconds: Clock skew tolerated on ``exp``/``nbf``
    """

    signing_key: str
    issuer: str | None = None
    audience: str | None = None
    algorithm: str = settings.jwt_algorithm
    validate_lifetime: bool = True
    leeway_seconds: int = 0


IdentityResolver = Callable[
    [Request, str, str, str, str],
    Awaitable[ClaimsIdentity | None],
]
"""``(request, grant_type, username, password, client_id) -> identity | None``"""

BearerTokenResolver = Callable[
    [ClaimsIdentity, dict[str, Any]],
    Awaitable[dict[str, Any]],
]
"""``(identity, token_payload) -> token_payload`` run before the response is sent."""


async def passthrough_bearer_token_resolver(
    _identity: ClaimsIdentity, payload: dict[str, Any]
) -> dict[str, Any]:
    """Default bearer token resolver: return the payload unchanged."""
    return payload


@dataclass(frozen=True)
class TokenProviderOptions:
    """Configuration of ``TokenProviderMiddleware``."""

    parameters: TokenValidationParameters
    identity_resolver: IdentityResolver
    bearer_token_resolver: BearerTokenResolver = passthrough_bearer_token_resolver
    expiration: timedelta = timedelta(minutes=settings.token_expiration_minutes)
    force_https: bool = settings.force_https
    path: str = DEFAULT_TOKEN_PATH
