"""Library exceptions.

HTTP-facing errors are converted to RFC 7807 Problem Details responses by
the exception handlers. Configuration and persistence errors propagate to
the caller like any other exception.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all library errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for clients
        status_code: HTTP status code for the response
        details: Additional error details
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)


class InvalidArgumentError(AppException, ValueError):
    """Raised when a configuration call receives an unsupported argument.

    Example:
        raise InvalidArgumentError(
            "Unsupported action", details={"argument": "action", "value": 3}
        )
    """

    message = "Invalid argument"
    error_code = "invalid_argument"

    def __init__(
        self,
        message: str | None = None,
        argument: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if argument:
            details["argument"] = argument
            details["value"] = repr(value)
        super().__init__(message=message, details=details, **kwargs)


class SerializationError(AppException):
    """Raised when a value cannot be converted to its JSON representation.

    The original error is chained as ``__cause__``.
    """

    message = "Value could not be serialized"
    error_code = "serialization_failure"


class UnauthorizedError(AppException):
    """Raised when authentication is required but not provided or invalid.

    Example:
        raise UnauthorizedError("Invalid access token")
    """

    message = "Authentication required"
    error_code = "unauthorized"
    status_code = 401
