"""Identity wrapper for stored entities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import GetCoreSchemaHandler
from pydantic_core import CoreSchema, core_schema

T = TypeVar("T")


@dataclass(frozen=True)
class Persisted(Generic[T]):
    """An entity value paired with the identity the store assigned to it.

    Attribute access falls through to the wrapped value, so
    ``persisted.title`` reads ``persisted.value.title``. A bare value is
    transient; saving it yields a Persisted, saving a Persisted updates
    the row it identifies.
    """

    value: T
    id: int

    def __getattr__(self, name: str) -> Any:
        if name == "value" or name.startswith("__"):
            raise AttributeError(name)
        return getattr(self.value, name)

    def __hash__(self) -> int:
        return hash((type(self.value), self.id))

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> CoreSchema:
        # pydantic fields annotated `Persisted` accept wrappers as they are
        return core_schema.is_instance_schema(cls)

    def replace(self, value: T) -> Persisted[T]:
        """Same identity, new state."""
        return Persisted(value, self.id)


def unwrap(value: Any) -> Any:
    return value.value if isinstance(value, Persisted) else value
