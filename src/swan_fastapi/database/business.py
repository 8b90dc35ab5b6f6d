"""Business rules executed by SQLAlchemy sessions before each flush.

A ``BusinessSession`` owns a list of ``BusinessRulesController`` objects.
When the session flushes, every staged instance is dispatched to the
controller methods whose rule matches the pending action:

- new objects run ``CREATE`` rules
- modified objects run ``UPDATE`` rules
- deleted objects run ``DELETE`` rules

Rules run inside the flush, so anything they add to the session is
written in the same transaction as the change that triggered them.

Example:
    class StampRules(BusinessRulesController):
        @business_rule(ActionFlags.CREATE | ActionFlags.UPDATE, Order)
        def stamp(self, order: Order) -> None:
            order.touched_at = datetime.now(UTC)

    session = BusinessSession(engine)
    session.add_controller(StampRules(session))
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import IntFlag
from typing import Any, ClassVar, TypeVar

from sqlalchemy import event
from sqlalchemy.orm import Session


F = TypeVar("F", bound=Callable[..., Any])

RULE_ATTRIBUTE = "__business_rule__"


class ActionFlags(IntFlag):
    """Kinds of entity mutation a business rule can react to."""

    NONE = 0
    CREATE = 1
    UPDATE = 2
    DELETE = 4


@dataclass(frozen=True)
class BusinessRule:
    """A rule declared on a controller method.

    Attributes:
        action: Actions the rule runs for (flags may be combined)
        entity_types: Entity classes the rule applies to; empty means all
    """

    action: ActionFlags
    entity_types: tuple[type, ...] = ()

    def matches(self, action: ActionFlags, entity: Any) -> bool:
        """Check whether the rule runs for ``entity`` under ``action``."""
        if not self.action & action:
            return False
        return not self.entity_types or isinstance(entity, self.entity_types)


def business_rule(action: ActionFlags, *entity_types: type) -> Callable[[F], F]:
    """Declare a controller method as a business rule.

    Args:
        action: Actions the rule runs for
        entity_types: Entity classes the rule is limited to

    Returns:
        Decorator that tags the method with its rule
    """

    def decorator(func: F) -> F:
        setattr(func, RULE_ATTRIBUTE, BusinessRule(action, entity_types))
        return func

    return decorator


class BusinessRulesController:
    """Base class for objects holding business rules for a session.

    The rule table is built once per subclass, when the class is
    defined. Overriding a rule method in a subclass keeps the rule
    declared on the base method.
    """

    rules: ClassVar[dict[str, BusinessRule]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        rules: dict[str, BusinessRule] = {}
        for klass in reversed(cls.__mro__):
            for name, member in vars(klass).items():
                rule = getattr(member, RULE_ATTRIBUTE, None)
                if isinstance(rule, BusinessRule):
                    rules[name] = rule
        cls.rules = rules

    def __init__(self, session: Session) -> None:
        self.session = session

    def run_business_rules(self, action: ActionFlags, entity: Any) -> int:
        """Run every rule of this controller that matches.

        Args:
            action: The staged action
            entity: The affected instance

        Returns:
            Number of rules that ran
        """
        executed = 0
        for name, rule in self.rules.items():
            if rule.matches(action, entity):
                getattr(self, name)(entity)
                executed += 1
        return executed


class BusinessSession(Session):
    """Session that runs controller business rules before flushing.

    Use it directly, through ``sessionmaker(class_=BusinessSession)``, or
    as ``AsyncSession(sync_session_class=BusinessSession)``.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._controllers: list[BusinessRulesController] = []
        self._running_rules = False

    @property
    def controllers(self) -> tuple[BusinessRulesController, ...]:
        """Controllers attached to this session, in execution order."""
        return tuple(self._controllers)

    def add_controller(self, controller: BusinessRulesController) -> None:
        """Attach a controller to the session."""
        self._controllers.append(controller)

    def remove_controller(self, controller: BusinessRulesController) -> None:
        """Detach a controller from the session.

        Raises:
            ValueError: If the controller is not attached
        """
        self._controllers.remove(controller)

    def contains_controller(self, controller: BusinessRulesController) -> bool:
        """Check whether a controller is attached to the session."""
        return controller in self._controllers

    def run_business_rules(self) -> None:
        """Dispatch every staged instance to the attached controllers.

        The staged sets are captured before any rule runs; instances
        added by a rule are flushed but not dispatched.
        """
        if not self._controllers or self._running_rules:
            return

        staged: list[tuple[ActionFlags, list[Any]]] = [
            (ActionFlags.CREATE, list(self.new)),
            (
                ActionFlags.UPDATE,
                [obj for obj in self.dirty if self.is_modified(obj)],
            ),
            (ActionFlags.DELETE, list(self.deleted)),
        ]

        self._running_rules = True
        try:
            for action, entities in staged:
                for entity in entities:
                    for controller in list(self._controllers):
                        controller.run_business_rules(action, entity)
        finally:
            self._running_rules = False


@event.listens_for(BusinessSession, "before_flush")
def _run_business_rules(
    session: BusinessSession,
    _flush_context: Any,
    _instances: Any,
) -> None:
    """Run business rules on the changes about to be flushed."""
    session.run_business_rules()


def get_business_session(session: Any) -> BusinessSession:
    """Resolve the ``BusinessSession`` behind a sync or async session.

    Args:
        session: A ``BusinessSession`` or an ``AsyncSession`` whose
            ``sync_session_class`` is ``BusinessSession``

    Returns:
        The underlying business session

    Raises:
        TypeError: If no business session is involved
    """
    target = getattr(session, "sync_session", session)
    if not isinstance(target, BusinessSession):
        raise TypeError(
            f"{type(session).__name__} does not run business rules; "
            "use BusinessSession or AsyncSession(sync_session_class=BusinessSession)"
        )
    return target
