"""JWT creation and validation for bearer token authentication."""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from swan_fastapi.auth.schemas import ClaimsIdentity, TokenValidationParameters
from swan_fastapi.constants import TOKEN_JTI_LENGTH


BEARER_AUTHENTICATION_TYPE = "Bearer"

# Claims set by the token issuer; identity claims never override them
REGISTERED_CLAIMS = ("jti", "iat", "nbf", "exp", "iss", "aud")


def create_token(
    identity: ClaimsIdentity,
    username: str,
    parameters: TokenValidationParameters,
    expiration: timedelta,
    now: datetime | None = None,
) -> str:
    """Create a signed JWT for an identity.

    The token carries the identity's claims plus ``sub`` (the username,
    unless the identity supplies its own, stored as a string), ``name``
    (the identity's name, same rule), a unique ``jti``, and the
    ``iat``/``nbf``/``exp`` lifetime claims. ``iss`` and ``aud`` are
    taken from the validation parameters.

    Args:
        identity: The resolved identity
        username: Username the token was requested for
        parameters: Signing key, algorithm, issuer and audience
        expiration: Token lifetime
        now: Issue time, defaults to the current UTC time

    Returns:
        Encoded JWT
    """
    issued_at = now or datetime.now(UTC)

    to_encode: dict[str, Any] = {
        key: value
        for key, value in identity.claims.items()
        if key not in REGISTERED_CLAIMS
    }
    to_encode.setdefault("sub", username)
    # RFC 7519 subjects are strings; jose rejects anything else on decode
    to_encode["sub"] = str(to_encode["sub"])
    if identity.name:
        to_encode.setdefault("name", identity.name)
    to_encode.update(
        {
            "jti": secrets.token_urlsafe(TOKEN_JTI_LENGTH),
            "iat": int(issued_at.timestamp()),
            "nbf": issued_at,
            "exp": issued_at + expiration,
        }
    )
    if parameters.issuer:
        to_encode["iss"] = parameters.issuer
    if parameters.audience:
        to_encode["aud"] = parameters.audience

    return jwt.encode(
        to_encode,
        parameters.signing_key,
        algorithm=parameters.algorithm,
    )


def decode_token(
    token: str,
    parameters: TokenValidationParameters,
) -> dict[str, Any] | None:
    """Decode and validate a JWT.

    Args:
        token: The encoded token
        parameters: Validation parameters

    Returns:
        The token claims if valid, None if invalid or expired
    """
    try:
        return jwt.decode(
            token,
            parameters.signing_key,
            algorithms=[parameters.algorithm],
            audience=parameters.audience,
            issuer=parameters.issuer,
            options={
                "verify_exp": parameters.validate_lifetime,
                "verify_nbf": parameters.validate_lifetime,
                "verify_aud": parameters.audience is not None,
                "leeway": parameters.leeway_seconds,
            },
        )
    except (JWTError, ValueError):
        return None


def identity_from_claims(claims: dict[str, Any]) -> ClaimsIdentity:
    """Build an authenticated identity from validated token claims."""
    name = claims.get("name") or claims.get("sub")
    return ClaimsIdentity(
        name=str(name) if name is not None else None,
        claims=claims,
        authentication_type=BEARER_AUTHENTICATION_TYPE,
    )


def authenticate_token(
    token: str,
    parameters: TokenValidationParameters,
) -> ClaimsIdentity | None:
    """Validate a token and return its identity, or None if invalid."""
    claims = decode_token(token, parameters)
    if claims is None:
        return None
    return identity_from_claims(claims)
