"""Library-wide constants.

This module defines constants shared by the extension helpers
to avoid magic numbers and ensure consistency.
"""

# Content types
JSON_MIME_TYPE = "application/json"
FORM_MIME_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

# Token issuance
DEFAULT_TOKEN_PATH = "/api/token"
DEFAULT_TOKEN_EXPIRATION_MINUTES = 20
DEFAULT_JWT_ALGORITHM = "HS256"
TOKEN_JTI_LENGTH = 32

# Fallback routing
DEFAULT_FALLBACK_PATH = "/index.html"
DEFAULT_API_PREFIX = "/api"

# String field lengths
MAX_TABLE_NAME_LENGTH = 255
MAX_USER_ID_LENGTH = 255
MAX_LOG_MESSAGE_LENGTH = 4000
MAX_LOGGER_NAME_LENGTH = 255
MAX_LOG_LEVEL_LENGTH = 20
MAX_THREAD_LENGTH = 100
MAX_USER_AGENT_LENGTH = 512
MAX_IPV6_LENGTH = 45
MAX_URL_LENGTH = 2048

# Request logging
DEFAULT_LOG_EXCLUDED_PATHS = ("/docs", "/redoc", "/openapi.json")

# Loggers whose records are never written back through the ORM
DATABASE_LOGGER_PREFIXES = ("sqlalchemy",)

# Fallback message for exceptions without one
UNHANDLED_EXCEPTION_MESSAGE = "Unhandled Exception"
