"""Error handling module with JSON Problem Details responses."""

from swan_fastapi.errors.exceptions import (
    AppException,
    InvalidArgumentError,
    SerializationError,
    UnauthorizedError,
)
from swan_fastapi.errors.handlers import (
    FieldError,
    ProblemDetail,
    register_exception_handlers,
    use_json_exception_handler,
)


__all__ = [
    # Exceptions
    "AppException",
    # Handlers
    "FieldError",
    "InvalidArgumentError",
    "ProblemDetail",
    "SerializationError",
    "UnauthorizedError",
    "register_exception_handlers",
    "use_json_exception_handler",
]
