"""Database layer - business-rules session and model mixins."""

from swan_fastapi.database.base import UUIDMixin
from swan_fastapi.database.business import (
    ActionFlags,
    BusinessRule,
    BusinessRulesController,
    BusinessSession,
    business_rule,
    get_business_session,
)


__all__ = [
    "ActionFlags",
    "BusinessRule",
    "BusinessRulesController",
    "BusinessSession",
    "UUIDMixin",
    "business_rule",
    "get_business_session",
]
