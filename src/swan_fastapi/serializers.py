"""JSON codec shared by the audit trail, the HTTP helpers and the logger.

Values that the standard encoder rejects are converted to JSON-friendly
primitives: UUIDs and Decimals become strings, dates become ISO 8601
strings, enums become their value, and mapped SQLAlchemy entities become
a dict of their column attributes. Typed values are restored on the way
back in by validating against a model with pydantic.
"""

import json
from dataclasses import asdict, is_dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar, overload
from uuid import UUID

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import inspect
from sqlalchemy.exc import NoInspectionAvailable

from swan_fastapi.errors.exceptions import SerializationError


T = TypeVar("T")


def entity_snapshot(entity: Any) -> dict[str, Any]:
    """Capture the column values of a mapped SQLAlchemy instance.

    Relationships are left out so that object graphs with back-references
    serialize without cycles.

    Args:
        entity: SQLAlchemy model instance

    Returns:
        Dictionary of {attribute: value}

    Raises:
        SerializationError: If ``entity`` is not a mapped instance
    """
    try:
        mapper = inspect(type(entity))
    except NoInspectionAvailable as e:
        raise SerializationError(
            f"{type(entity).__name__} is not a mapped entity",
            details={"type": type(entity).__name__},
        ) from e

    return {
        attr.key: getattr(entity, attr.key)
        for attr in mapper.column_attrs
        if not attr.key.startswith("_")
    }


class SnapshotEncoder(json.JSONEncoder):
    """JSON encoder for entity snapshots and API payloads.

    Handles:
    - Pydantic models and dataclasses
    - Mapped SQLAlchemy instances
    - UUIDs and Decimals (as strings)
    - Datetimes, dates and times (ISO 8601)
    - Enums (their value)
    - Sets (converted to lists)
    """

    def default(self, o: Any) -> Any:
        if isinstance(o, BaseModel):
            return o.model_dump(mode="json")
        if isinstance(o, UUID | Decimal):
            return str(o)
        if isinstance(o, datetime | date | time):
            return o.isoformat()
        if isinstance(o, Enum):
            return o.value
        if isinstance(o, set | frozenset):
            return list(o)
        if is_dataclass(o) and not isinstance(o, type):
            return asdict(o)
        if hasattr(type(o), "__mapper__"):
            return entity_snapshot(o)
        return super().default(o)


def serialize(value: Any) -> str:
    """Serialize a value to a JSON string.

    Args:
        value: Value to serialize

    Returns:
        JSON string representation

    Raises:
        SerializationError: If the value (or something inside it) has no
            JSON representation, or contains a reference cycle
    """
    try:
        return json.dumps(value, cls=SnapshotEncoder)
    except (TypeError, ValueError) as e:
        raise SerializationError(
            f"Cannot serialize {type(value).__name__}: {e}",
            details={"type": type(value).__name__},
        ) from e


@overload
def deserialize(data: str | bytes) -> Any: ...


@overload
def deserialize(data: str | bytes, model: type[T]) -> T: ...


def deserialize(data: str | bytes, model: Any = None) -> Any:
    """Deserialize a JSON document.

    Args:
        data: JSON text
        model: Optional target type (pydantic model, dataclass, TypedDict,
            ``list[...]``...) the decoded value is validated into

    Returns:
        Decoded Python object, or an instance of ``model``

    Raises:
        SerializationError: If the text is not valid JSON or does not
            validate against ``model``
    """
    try:
        value = json.loads(data)
    except json.JSONDecodeError as e:
        raise SerializationError(f"Malformed JSON: {e.msg}") from e
    except UnicodeDecodeError as e:
        raise SerializationError(f"Malformed JSON: {e.reason}") from e

    if model is None:
        return value

    try:
        return TypeAdapter(model).validate_python(value)
    except PydanticValidationError as e:
        raise SerializationError(
            f"JSON does not match {getattr(model, '__name__', model)!s}",
            details={
                "errors": e.errors(
                    include_url=False, include_context=False, include_input=False
                )
            },
        ) from e
