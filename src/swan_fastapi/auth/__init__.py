"""Bearer token (JWT) issuance and authentication."""

from swan_fastapi.auth.backend import (
    authenticate_token,
    create_token,
    decode_token,
    identity_from_claims,
)
from swan_fastapi.auth.bearer import (
    add_bearer_token_authentication,
    use_bearer_token_authentication,
)
from swan_fastapi.auth.dependencies import (
    CurrentIdentity,
    CurrentUserId,
    OptionalIdentity,
    get_current_identity,
    get_current_user_id,
    get_optional_identity,
)
from swan_fastapi.auth.middleware import (
    AuthenticateSchemeMiddleware,
    TokenProviderMiddleware,
)
from swan_fastapi.auth.schemas import (
    ClaimsIdentity,
    TokenProviderOptions,
    TokenValidationParameters,
)


__all__ = [
    # Middleware
    "AuthenticateSchemeMiddleware",
    # Schemas
    "ClaimsIdentity",
    # Dependencies
    "CurrentIdentity",
    "CurrentUserId",
    "OptionalIdentity",
    "TokenProviderMiddleware",
    "TokenProviderOptions",
    "TokenValidationParameters",
    # Setup
    "add_bearer_token_authentication",
    # Token utilities
    "authenticate_token",
    "create_token",
    "decode_token",
    "get_current_identity",
    "get_current_user_id",
    "get_optional_identity",
    "identity_from_claims",
    "use_bearer_token_authentication",
]
