"""Common ground of the mapping tree.

Every node of the tree maps one declared shape at one location in the
schema. A node contributes columns to the row of the table it lives in
(its container) and may own dependent tables of its own.
"""

from __future__ import annotations

from collections.abc import Mapping as MappingType
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from row_persist.core.exceptions import ColumnMismatchError, EntityNotRegisteredError
from row_persist.ddl.schema import Column, ForeignKey, Table

if TYPE_CHECKING:
    from row_persist.core.session import Session
    from row_persist.mapping.root import EntityMapping
    from row_persist.mapping.plan import EntitySettings


def _is_pydantic_model(cls: type) -> bool:
    """Check if a class is a Pydantic BaseModel subclass."""
    return isinstance(cls, type) and issubclass(cls, BaseModel)


def construct(cls: type, values: dict[str, Any]) -> Any:
    """Build an instance from property values read back from the store."""
    if _is_pydantic_model(cls):
        # Stored values were valid when written; references come back as
        # Persisted wrappers that the declared field types would reject.
        fields = cls.model_fields  # type: ignore[attr-defined]
        missing = [n for n, f in fields.items() if f.is_required() and n not in values]
        if missing:
            raise ColumnMismatchError(cls.__name__, f"missing values for {missing}")
        return cls.model_construct(**values)  # type: ignore[attr-defined]
    try:
        return cls(**values)
    except (TypeError, ValueError) as e:
        raise ColumnMismatchError(cls.__name__, str(e)) from e


def read_property(value: Any, name: str) -> Any:
    """Read a declared property; a missing value reads as None."""
    if value is None:
        return None
    try:
        return getattr(value, name)
    except AttributeError as e:
        raise ColumnMismatchError(type(value).__name__, f"no attribute {name!r}") from e


@dataclass(frozen=True)
class Location:
    """Where a mapping sits: the table holding its row and the path to it."""

    table: str
    primary_key: tuple[Column, ...]
    path: str = ""

    def child(self, name: str) -> Location:
        path = f"{self.path}${name}" if self.path else name
        return Location(self.table, self.primary_key, path)


@dataclass(frozen=True)
class MappingContext:
    """Shared lookup tables for resolving entity references.

    Both maps are read-only views; the registry fills the entity map
    once every entity mapping is built.
    """

    settings: MappingType[type, EntitySettings]
    entities: MappingType[type, EntityMapping]

    def entity_mapping(self, entity_class: type) -> EntityMapping:
        try:
            return self.entities[entity_class]
        except KeyError:
            raise EntityNotRegisteredError(entity_class) from None


class Mapping:
    """A node of the mapping tree.

    ``parent_key`` is always the primary-key value tuple of the row in
    ``location.table`` this node's value belongs to.
    """

    def __init__(self, location: Location, context: MappingContext) -> None:
        self.location = location
        self.context = context

    # --- schema ---

    def schema_fragments(self) -> tuple[Table, ...]:
        """Tables this node and its descendants own."""
        return ()

    def columns_for_container(self) -> tuple[Column, ...]:
        """Columns this node adds to its container's row."""
        return ()

    def foreign_keys_for_container(self) -> tuple[ForeignKey, ...]:
        """Foreign keys this node adds to its container table."""
        return ()

    # --- rows ---

    def values_for_container_row(self, value: Any) -> list[tuple[str, Any]]:
        """Column values this node contributes to its container's row."""
        return []

    def value_from_container_row(self, row: dict[str, Any], session: Session) -> Any:
        """Rebuild this node's value from its container's row."""
        raise NotImplementedError

    # --- dependent tables ---

    def insert(self, value: Any, parent_key: tuple[Any, ...], session: Session) -> None:
        """Write this node's dependent rows after its container row exists."""

    def update(self, value: Any, parent_key: tuple[Any, ...], session: Session) -> None:
        """Rewrite this node's dependent rows after its container row was updated."""

    def delete(self, parent_key: tuple[Any, ...], session: Session) -> None:
        """Remove this node's dependent rows."""
