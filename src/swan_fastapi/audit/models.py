"""Audit trail entry columns.

Applications declare their own audit table by combining this mixin with
their declarative base and a primary key:

    class AuditEntry(Base, UUIDMixin, AuditTrailMixin):
        __tablename__ = "audit_trail"
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from swan_fastapi.constants import MAX_TABLE_NAME_LENGTH, MAX_USER_ID_LENGTH
from swan_fastapi.database.business import ActionFlags


class AuditTrailMixin:
    """Columns of one audit trail entry.

    Attributes:
        table_name: Class name of the affected entity
        date_created: When the change was staged (UTC)
        action: ``ActionFlags`` value of the change
        user_id: Identifier of the user who made the change
        json_body: JSON snapshot of the entity at that moment
    """

    table_name: Mapped[str] = mapped_column(
        String(MAX_TABLE_NAME_LENGTH),
        nullable=False,
        index=True,
    )
    date_created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    action: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(MAX_USER_ID_LENGTH),
        nullable=False,
        index=True,
    )
    json_body: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    @property
    def action_flag(self) -> ActionFlags:
        """The stored action as an ``ActionFlags`` member."""
        return ActionFlags(self.action)

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__}(table_name={self.table_name}, "
            f"action={self.action}, user_id={self.user_id})>"
        )
