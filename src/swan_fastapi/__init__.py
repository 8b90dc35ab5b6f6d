"""Extension helpers for FastAPI and SQLAlchemy applications.

- JSON exception responses (``use_json_exception_handler``)
- Bearer token issuance and authentication (``use_bearer_token_authentication``)
- Entity audit trail on SQLAlchemy sessions (``use_audit_trail``)
- Log records stored through the ORM (``add_database_logging``)
- JSON helpers for httpx (``get_json``, ``read_as_json``)
- SPA fallback routing (``use_fallback``)
"""

from swan_fastapi.audit import AuditTrailController, AuditTrailMixin, use_audit_trail
from swan_fastapi.auth import (
    ClaimsIdentity,
    CurrentIdentity,
    CurrentUserId,
    OptionalIdentity,
    TokenValidationParameters,
    add_bearer_token_authentication,
    use_bearer_token_authentication,
)
from swan_fastapi.constants import JSON_MIME_TYPE
from swan_fastapi.database import (
    ActionFlags,
    BusinessRulesController,
    BusinessSession,
    business_rule,
)
from swan_fastapi.errors import (
    AppException,
    InvalidArgumentError,
    SerializationError,
    use_json_exception_handler,
)
from swan_fastapi.http import get_json, read_as_json, use_fallback
from swan_fastapi.logging import (
    DatabaseLogHandler,
    LogEntryMixin,
    add_database_logging,
    configure_logging,
)


__version__ = "0.1.0"

__all__ = [
    "JSON_MIME_TYPE",
    "ActionFlags",
    "AppException",
    "AuditTrailController",
    "AuditTrailMixin",
    "BusinessRulesController",
    "BusinessSession",
    "ClaimsIdentity",
    "CurrentIdentity",
    "CurrentUserId",
    "DatabaseLogHandler",
    "InvalidArgumentError",
    "LogEntryMixin",
    "OptionalIdentity",
    "SerializationError",
    "TokenValidationParameters",
    "add_bearer_token_authentication",
    "add_database_logging",
    "business_rule",
    "configure_logging",
    "get_json",
    "read_as_json",
    "use_audit_trail",
    "use_bearer_token_authentication",
    "use_fallback",
    "use_json_exception_handler",
]
