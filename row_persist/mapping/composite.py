"""Inline composites: embedded value objects and fixed-arity tuples.

Both flatten their parts into the container's row, one sub-path per
part, and hand the container's key unchanged to every part.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from row_persist.core.exceptions import ColumnMismatchError
from row_persist.ddl.schema import Column, ForeignKey, Table
from row_persist.mapping.base import Location, Mapping, MappingContext, construct, read_property
from row_persist.mapping.shape import EmbeddedShape, TupleShape

if TYPE_CHECKING:
    from row_persist.core.session import Session


class _CompositeMapping(Mapping):
    def __init__(self, location: Location, context: MappingContext) -> None:
        super().__init__(location, context)
        self.parts: dict[str, Mapping] = {}

    def _part_values(self, value: Any) -> list[Any]:
        raise NotImplementedError

    def _assemble(self, values: dict[str, Any]) -> Any:
        raise NotImplementedError

    def _pairs(self, value: Any) -> list[tuple[Mapping, Any]]:
        return list(zip(self.parts.values(), self._part_values(value), strict=True))

    def schema_fragments(self) -> tuple[Table, ...]:
        return tuple(t for part in self.parts.values() for t in part.schema_fragments())

    def columns_for_container(self) -> tuple[Column, ...]:
        return tuple(c for part in self.parts.values() for c in part.columns_for_container())

    def foreign_keys_for_container(self) -> tuple[ForeignKey, ...]:
        return tuple(
            fk for part in self.parts.values() for fk in part.foreign_keys_for_container()
        )

    def values_for_container_row(self, value: Any) -> list[tuple[str, Any]]:
        return [cell for part, v in self._pairs(value) for cell in part.values_for_container_row(v)]

    def value_from_container_row(self, row: dict[str, Any], session: Session) -> Any:
        return self._assemble(
            {name: part.value_from_container_row(row, session) for name, part in self.parts.items()}
        )

    def insert(self, value: Any, parent_key: tuple[Any, ...], session: Session) -> None:
        for part, v in self._pairs(value):
            part.insert(v, parent_key, session)

    def update(self, value: Any, parent_key: tuple[Any, ...], session: Session) -> None:
        for part, v in self._pairs(value):
            part.update(v, parent_key, session)

    def delete(self, parent_key: tuple[Any, ...], session: Session) -> None:
        for part in self.parts.values():
            part.delete(parent_key, session)


class EmbeddedMapping(_CompositeMapping):
    """A value object stored in its owner's row as ``path$field`` columns."""

    def __init__(self, shape: EmbeddedShape, location: Location, context: MappingContext) -> None:
        from row_persist.mapping.factory import build_mapping

        super().__init__(location, context)
        self.value_class = shape.value_class
        self.parts = {
            name: build_mapping(field_shape, location.child(name), context)
            for name, field_shape in shape.fields
        }

    def _part_values(self, value: Any) -> list[Any]:
        return [read_property(value, name) for name in self.parts]

    def _assemble(self, values: dict[str, Any]) -> Any:
        return construct(self.value_class, values)


class TupleMapping(_CompositeMapping):
    """A fixed-arity tuple stored as ``path$0``, ``path$1``, ... columns."""

    def __init__(self, shape: TupleShape, location: Location, context: MappingContext) -> None:
        from row_persist.mapping.factory import build_mapping

        super().__init__(location, context)
        self.parts = {
            str(n): build_mapping(item, location.child(str(n)), context)
            for n, item in enumerate(shape.items)
        }

    def _part_values(self, value: Any) -> list[Any]:
        if value is None:
            return [None] * len(self.parts)
        values = list(value)
        if len(values) != len(self.parts):
            raise ColumnMismatchError(
                "tuple", f"expected {len(self.parts)} items, got {len(values)}"
            )
        return values

    def _assemble(self, values: dict[str, Any]) -> Any:
        return tuple(values.values())
