"""JSON exception handlers with RFC 7807 Problem Details.

Every error that reaches the application's exception pipeline is
rendered as ``application/json`` instead of the framework's plain-text
default.

See: https://tools.ietf.org/html/rfc7807
"""

from functools import partial
from typing import TYPE_CHECKING, Any, cast

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from swan_fastapi.config import settings
from swan_fastapi.constants import JSON_MIME_TYPE, UNHANDLED_EXCEPTION_MESSAGE
from swan_fastapi.errors.exceptions import AppException


if TYPE_CHECKING:
    from starlette.types import ExceptionHandler


logger = structlog.get_logger()

HTTP_422_UNPROCESSABLE = 422


class FieldError(BaseModel):
    """Represents a single field validation error."""

    field: str
    message: str
    type: str | None = None


class ProblemDetail(BaseModel):
    """RFC 7807 Problem Details response schema.

    Attributes:
        type: URI reference identifying the problem type
        title: Short human-readable summary
        status: HTTP status code
        detail: Human-readable explanation specific to this occurrence
        instance: URI reference identifying this specific occurrence
        errors: List of field-level errors (for validation errors)
        trace_id: Request trace ID for debugging
    """

    type: str
    title: str
    status: int
    detail: str
    instance: str | None = None
    errors: list[FieldError] | None = None
    trace_id: str | None = None

    model_config = {"extra": "allow"}


def _get_trace_id(request: Request) -> str | None:
    """Extract trace ID from request state if available."""
    return getattr(request.state, "trace_id", None)


def _get_error_type_uri(error_code: str) -> str:
    """Generate a URI for the error type."""
    return f"{settings.api_docs_base_url}/errors/{error_code}"


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Convert AppException subclasses to Problem Details responses."""
    logger.warning(
        "app_exception",
        error_code=exc.error_code,
        message=exc.message,
        status_code=exc.status_code,
        path=str(request.url.path),
        details=exc.details,
    )

    content: dict[str, Any] = ProblemDetail(
        type=_get_error_type_uri(exc.error_code),
        title=exc.error_code.replace("_", " ").title(),
        status=exc.status_code,
        detail=exc.message,
        instance=str(request.url.path),
        trace_id=_get_trace_id(request),
    ).model_dump(exclude_none=True)

    for key, value in exc.details.items():
        if key not in content:
            content[key] = value

    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        media_type=JSON_MIME_TYPE,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert request validation errors to Problem Details with field errors."""
    errors: list[FieldError] = []

    for error in exc.errors():
        loc = error.get("loc", ())
        # Skip "body" prefix in field path
        field_parts = [str(part) for part in loc if part != "body"]
        field = ".".join(field_parts) if field_parts else "unknown"

        errors.append(
            FieldError(
                field=field,
                message=error.get("msg", "Invalid value"),
                type=error.get("type"),
            )
        )

    logger.warning(
        "validation_error",
        path=str(request.url.path),
        error_count=len(errors),
    )

    return JSONResponse(
        status_code=HTTP_422_UNPROCESSABLE,
        content=ProblemDetail(
            type=_get_error_type_uri("validation_error"),
            title="Validation Error",
            status=HTTP_422_UNPROCESSABLE,
            detail="Request validation failed",
            instance=str(request.url.path),
            errors=errors,
            trace_id=_get_trace_id(request),
        ).model_dump(exclude_none=True),
        media_type=JSON_MIME_TYPE,
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception,
    include_details: bool = True,
) -> JSONResponse:
    """Render any unhandled exception as a JSON 500 response.

    With ``include_details`` the exception type and message are part of
    the body; otherwise only a generic message is returned and the
    details go to the log.
    """
    logger.exception(
        "unhandled_exception",
        path=str(request.url.path),
        error_type=type(exc).__name__,
    )

    if include_details:
        detail = str(exc) or UNHANDLED_EXCEPTION_MESSAGE
    else:
        detail = "An unexpected error occurred"

    content: dict[str, Any] = ProblemDetail(
        type=_get_error_type_uri("internal_error"),
        title="Internal Server Error",
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail,
        instance=str(request.url.path),
        trace_id=_get_trace_id(request),
    ).model_dump(exclude_none=True)

    if include_details:
        content["exception"] = type(exc).__name__

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
        media_type=JSON_MIME_TYPE,
    )


def register_exception_handlers(app: FastAPI, include_details: bool = True) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: The application to configure
        include_details: Expose exception type and message for unhandled errors
    """
    app.add_exception_handler(
        AppException, cast("ExceptionHandler", app_exception_handler)
    )
    app.add_exception_handler(
        RequestValidationError, cast("ExceptionHandler", validation_exception_handler)
    )
    app.add_exception_handler(
        Exception,
        cast(
            "ExceptionHandler",
            partial(generic_exception_handler, include_details=include_details),
        ),
    )


def use_json_exception_handler(
    app: FastAPI,
    include_details: bool | None = None,
) -> FastAPI:
    """Make every error response of ``app`` a JSON document.

    Usage:
        app = use_json_exception_handler(FastAPI())

    Args:
        app: The application to configure
        include_details: Override ``SWAN_EXPOSE_EXCEPTION_DETAILS``

    Returns:
        The same application, for chaining
    """
    if include_details is None:
        include_details = settings.expose_exception_details

    register_exception_handlers(app, include_details=include_details)
    return app
