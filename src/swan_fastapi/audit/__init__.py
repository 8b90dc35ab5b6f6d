"""Audit trail for entity changes.

Provides:
- AuditTrailMixin columns for the application's audit table
- AuditTrailController business rules writing one entry per change
- use_audit_trail to attach the controller to a session
"""

from swan_fastapi.audit.controller import AuditTrailController, use_audit_trail
from swan_fastapi.audit.models import AuditTrailMixin
from swan_fastapi.database.business import ActionFlags


__all__ = [
    "ActionFlags",
    "AuditTrailController",
    "AuditTrailMixin",
    "use_audit_trail",
]
