"""FastAPI dependencies for bearer token authentication.

This module provides FastAPI dependency injection functions for:
- Reading the validation parameters configured on the app
- Getting the current authenticated identity
- Getting the current user ID (e.g. for ``use_audit_trail``)
"""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from swan_fastapi.auth.backend import authenticate_token
from swan_fastapi.auth.schemas import ClaimsIdentity, TokenValidationParameters
from swan_fastapi.errors import AppException, UnauthorizedError


# HTTP Bearer token security scheme
bearer_scheme = HTTPBearer(auto_error=False)

VALIDATION_PARAMETERS_STATE_KEY = "token_validation_parameters"


def get_validation_parameters(request: Request) -> TokenValidationParameters:
    """Get the parameters registered by ``add_bearer_token_authentication``.

    Raises:
        AppException: If bearer authentication was never configured
    """
    parameters = getattr(request.app.state, VALIDATION_PARAMETERS_STATE_KEY, None)
    if parameters is None:
        raise AppException(
            "Bearer token authentication is not configured",
            error_code="authentication_not_configured",
        )
    return parameters


def _resolve_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
) -> ClaimsIdentity | None:
    identity = getattr(request.state, "identity", None)
    if identity is not None:
        return identity
    if not credentials:
        return None
    return authenticate_token(credentials.credentials, get_validation_parameters(request))


async def get_current_identity(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> ClaimsIdentity:
    """Get the identity of the bearer token on the request.

    Args:
        request: The incoming request
        credentials: Bearer token credentials from the request

    Returns:
        The authenticated identity

    Raises:
        UnauthorizedError: If the token is missing or invalid
    """
    if not credentials and getattr(request.state, "identity", None) is None:
        raise UnauthorizedError(
            "Missing authentication token",
            error_code="missing_token",
        )

    identity = _resolve_identity(request, credentials)
    if identity is None:
        raise UnauthorizedError(
            "Invalid or expired token",
            error_code="invalid_token",
        )

    return identity


async def get_optional_identity(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> ClaimsIdentity | None:
    """Get the identity if authenticated, None otherwise."""
    return _resolve_identity(request, credentials)


async def get_current_user_id(
    identity: Annotated[ClaimsIdentity | None, Depends(get_optional_identity)],
) -> str | None:
    """Get the current user's ID, None for anonymous requests."""
    if identity is None:
        return None
    return identity.user_id


CurrentIdentity = Annotated[ClaimsIdentity, Depends(get_current_identity)]
OptionalIdentity = Annotated[ClaimsIdentity | None, Depends(get_optional_identity)]
CurrentUserId = Annotated[str | None, Depends(get_current_user_id)]
