"""Common mixins for the models the library writes to."""

from uuid import UUID, uuid4

from sqlalchemy.orm import Mapped, mapped_column


class UUIDMixin:
    """Mixin that adds a UUID primary key."""

    id: Mapped[UUID] = mapped_column(
        primary_key=True,
        default=uuid4,
        index=True,
    )
