"""Bearer token authentication setup for FastAPI applications."""

from datetime import timedelta

import structlog
from fastapi import FastAPI

from swan_fastapi.auth.dependencies import VALIDATION_PARAMETERS_STATE_KEY
from swan_fastapi.auth.middleware import (
    AuthenticateSchemeMiddleware,
    TokenProviderMiddleware,
)
from swan_fastapi.auth.schemas import (
    BearerTokenResolver,
    IdentityResolver,
    TokenProviderOptions,
    TokenValidationParameters,
    passthrough_bearer_token_resolver,
)
from swan_fastapi.config import settings


logger = structlog.get_logger()


def add_bearer_token_authentication(
    app: FastAPI,
    parameters: TokenValidationParameters,
) -> FastAPI:
    """Register the parameters used to validate bearer tokens.

    Enables the ``CurrentIdentity``/``OptionalIdentity`` dependencies.

    Args:
        app: The application to configure
        parameters: Signing key, algorithm, issuer and audience

    Returns:
        The same application, for chaining
    """
    setattr(app.state, VALIDATION_PARAMETERS_STATE_KEY, parameters)
    return app


def use_bearer_token_authentication(
    app: FastAPI,
    parameters: TokenValidationParameters,
    identity_resolver: IdentityResolver,
    bearer_token_resolver: BearerTokenResolver | None = None,
    expiration: timedelta | None = None,
    force_https: bool | None = None,
    path: str | None = None,
) -> FastAPI:
    """Issue and authenticate bearer tokens.

    Installs ``TokenProviderMiddleware`` in front of
    ``AuthenticateSchemeMiddleware`` and registers the validation
    parameters on the app.

    Usage:
        async def resolve(request, grant_type, username, password, client_id):
            user = await check_credentials(username, password)
            if user is None:
                return None
            return ClaimsIdentity(name=username, claims={"sub": str(user.id)})

        use_bearer_token_authentication(app, parameters, resolve)

    Args:
        app: The application to configure
        parameters: Signing key, algorithm, issuer and audience
        identity_resolver: Resolves posted credentials to an identity
        bearer_token_resolver: Adjusts the token response payload
        expiration: Token lifetime, ``SWAN_TOKEN_EXPIRATION_MINUTES``
            (20 minutes) when None or zero
        force_https: Reject token requests over plain HTTP, defaults to
            ``SWAN_FORCE_HTTPS``
        path: Token endpoint path, defaults to ``SWAN_TOKEN_PATH``

    Returns:
        The same application, for chaining
    """
    if not expiration:
        expiration = timedelta(minutes=settings.token_expiration_minutes)

    options = TokenProviderOptions(
        parameters=parameters,
        identity_resolver=identity_resolver,
        bearer_token_resolver=bearer_token_resolver or passthrough_bearer_token_resolver,
        expiration=expiration,
        force_https=settings.force_https if force_https is None else force_https,
        path=path or settings.token_path,
    )

    add_bearer_token_authentication(app, parameters)

    # Starlette runs the last added middleware first
    app.add_middleware(AuthenticateSchemeMiddleware, parameters=parameters)
    app.add_middleware(TokenProviderMiddleware, options=options)

    logger.info(
        "bearer_token_authentication_configured",
        path=options.path,
        expires_in=int(options.expiration.total_seconds()),
        force_https=options.force_https,
    )

    return app
