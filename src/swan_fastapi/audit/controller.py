"""Audit trail recorded through business rules.

``AuditTrailController`` turns the create, update and delete events of a
``BusinessSession`` into audit entries. Each entry is added to the same
session as the change that produced it, so the audit row and the change
commit or roll back together.

Which entity types are audited is decided per action. An empty list for
an action audits every type; once a type is registered for an action,
only registered types are audited for it.
"""

from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from swan_fastapi.audit.models import AuditTrailMixin
from swan_fastapi.database.business import (
    ActionFlags,
    BusinessRulesController,
    BusinessSession,
    business_rule,
    get_business_session,
)
from swan_fastapi.errors.exceptions import InvalidArgumentError
from swan_fastapi.serializers import serialize


EntryT = TypeVar("EntryT", bound=AuditTrailMixin)

AUDITED_ACTIONS = (ActionFlags.CREATE, ActionFlags.UPDATE, ActionFlags.DELETE)


class AuditTrailController(BusinessRulesController, Generic[EntryT]):
    """Business rules controller that writes audit trail entries.

    Attributes:
        entry_factory: Builds an empty audit entry (usually the model class)
        current_user_id: User responsible for the session's changes
    """

    def __init__(
        self,
        session: BusinessSession,
        entry_factory: Callable[[], EntryT],
        current_user_id: str | None,
    ) -> None:
        """Initialize the controller.

        Args:
            session: Session the entries are added to
            entry_factory: Zero-argument callable returning a new entry
            current_user_id: Id of the acting user; no entry is written
                while it is empty
        """
        super().__init__(session)
        self.entry_factory = entry_factory
        self.current_user_id = current_user_id
        self._valid_types: dict[ActionFlags, list[type]] = {
            action: [] for action in AUDITED_ACTIONS
        }

    def register_types(self, action: ActionFlags, types: Iterable[type]) -> None:
        """Restrict auditing of ``action`` to the given entity types.

        Registration is cumulative. ``ActionFlags.NONE`` is accepted and
        ignored.

        Args:
            action: ``CREATE``, ``UPDATE`` or ``DELETE``
            types: Entity classes to audit for that action

        Raises:
            InvalidArgumentError: If ``action`` is not a single audited action
        """
        if not isinstance(action, ActionFlags):
            raise InvalidArgumentError(
                "Action must be an ActionFlags member",
                argument="action",
                value=action,
            )
        if action == ActionFlags.NONE:
            return
        if action not in self._valid_types:
            raise InvalidArgumentError(
                "Action must be one of CREATE, UPDATE or DELETE",
                argument="action",
                value=action,
            )

        self._valid_types[action].extend(types)

    def registered_types(self, action: ActionFlags) -> tuple[type, ...]:
        """Entity types registered for ``action`` (empty means all)."""
        return tuple(self._valid_types.get(action, ()))

    def is_audited(self, action: ActionFlags, entity_type: type) -> bool:
        """Check the allow-list of ``action`` for ``entity_type``.

        Actions other than ``CREATE``, ``UPDATE`` and ``DELETE`` audit nothing.
        """
        if action not in self._valid_types or issubclass(entity_type, AuditTrailMixin):
            return False
        valid_types = self._valid_types[action]
        return not valid_types or entity_type in valid_types

    @business_rule(ActionFlags.CREATE)
    def on_entity_created(self, entity: Any) -> None:
        """Audit a newly added entity."""
        entity_type = type(entity)
        if not self.is_audited(ActionFlags.CREATE, entity_type):
            return

        self.audit_entry(ActionFlags.CREATE, entity, entity_type.__name__)

    @business_rule(ActionFlags.UPDATE)
    def on_entity_updated(self, entity: Any) -> None:
        """Audit a modified entity."""
        entity_type = type(entity)
        if not self.is_audited(ActionFlags.UPDATE, entity_type):
            return

        self.audit_entry(ActionFlags.UPDATE, entity, entity_type.__name__)

    @business_rule(ActionFlags.DELETE)
    def on_entity_deleted(self, entity: Any) -> None:
        """Audit a deleted entity."""
        entity_type = type(entity)
        if not self.is_audited(ActionFlags.DELETE, entity_type):
            return

        self.audit_entry(ActionFlags.DELETE, entity, entity_type.__name__)

    def audit_entry(
        self,
        action: ActionFlags,
        entity: Any,
        name: str,
    ) -> EntryT | None:
        """Stage an audit entry for ``entity`` in the controller's session.

        Args:
            action: The audited action
            entity: The affected entity
            name: Table name recorded on the entry

        Returns:
            The staged entry, or None when there is no current user

        Raises:
            SerializationError: If the entity cannot be serialized
        """
        if not self.current_user_id or not self.current_user_id.strip():
            return None

        entry = self.entry_factory()
        entry.table_name = name
        entry.date_created = datetime.now(UTC)
        entry.action = int(action)
        entry.user_id = self.current_user_id
        entry.json_body = serialize(entity)

        self.session.add(entry)
        return entry


def use_audit_trail(
    session: Any,
    entry_factory: Callable[[], EntryT],
    current_user_id: str | None,
) -> AuditTrailController[EntryT]:
    """Attach a new audit trail controller to a business session.

    Args:
        session: ``BusinessSession`` or ``AsyncSession`` wrapping one
        entry_factory: Zero-argument callable returning a new audit entry
        current_user_id: Id of the acting user

    Returns:
        The attached controller, for further type registration

    Raises:
        TypeError: If the session does not run business rules
    """
    business_session = get_business_session(session)
    controller = AuditTrailController(business_session, entry_factory, current_user_id)
    business_session.add_controller(controller)
    return controller
