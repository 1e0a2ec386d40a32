from __future__ import annotations

from typing import Any, Dict, Generic, Protocol, TypeVar, runtime_checkable

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from cosmoparse.errors import ValidationError


T = TypeVar("T")


@runtime_checkable
class Schema(Protocol):
    """Anything that can describe itself as JSON schema and check a value against it."""

    def describe(self) -> Dict[str, Any]: ...

    def validate(self, value: Any) -> Any: ...


class PydanticSchema(Generic[T]):
    """
    Schema backed by a pydantic TypeAdapter.

    Accepts BaseModel subclasses as well as plain annotations such as
    list[Item], dict[str, int] or a TypedDict.
    """

    def __init__(self, type_: Any):
        self.type_ = type_
        self._adapter: TypeAdapter[T] = TypeAdapter(type_)

    def describe(self) -> Dict[str, Any]:
        return self._adapter.json_schema()

    def validate(self, value: Any) -> T:
        try:
            return self._adapter.validate_python(value)
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Example does not match schema: {exc.error_count()} error(s)",
                errors=exc.errors(),
            ) from exc


def as_schema(obj: Any) -> Schema:
    if isinstance(obj, Schema):
        return obj
    return PydanticSchema(obj)
