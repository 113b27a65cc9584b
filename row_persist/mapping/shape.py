"""Declarative property shapes.

Entities describe their properties explicitly with these descriptors
instead of being reflected at runtime::

    entity(Article).field("title", text()).field("tags", seq(text()))

Shapes nest freely: ``map_of(varchar(), seq(option(integer())))`` is valid.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from row_persist.ddl.schema import ColumnType


class Shape:
    """Base class of all property shapes."""


@dataclass(frozen=True)
class ValueShape(Shape):
    """A scalar stored in a single column."""

    column_type: ColumnType
    enum_class: type[Enum] | None = None


@dataclass(frozen=True)
class RefShape(Shape):
    """A reference to another registered entity."""

    entity_class: type


@dataclass(frozen=True)
class EmbeddedShape(Shape):
    """A value object without identity, stored inline in its owner's row."""

    value_class: type
    fields: tuple[tuple[str, Shape], ...]


@dataclass(frozen=True)
class TupleShape(Shape):
    items: tuple[Shape, ...]


@dataclass(frozen=True)
class SeqShape(Shape):
    element: Shape


@dataclass(frozen=True)
class SetShape(Shape):
    element: Shape


@dataclass(frozen=True)
class MapShape(Shape):
    key: Shape
    value: Shape


@dataclass(frozen=True)
class OptionShape(Shape):
    element: Shape


# --- scalar constructors ---


def integer() -> ValueShape:
    return ValueShape(ColumnType.INTEGER)


def bigint() -> ValueShape:
    return ValueShape(ColumnType.BIGINT)


def smallint() -> ValueShape:
    return ValueShape(ColumnType.SMALLINT)


def tinyint() -> ValueShape:
    return ValueShape(ColumnType.TINYINT)


def float_() -> ValueShape:
    return ValueShape(ColumnType.FLOAT)


def double() -> ValueShape:
    return ValueShape(ColumnType.DOUBLE)


def decimal() -> ValueShape:
    return ValueShape(ColumnType.DECIMAL)


def boolean() -> ValueShape:
    return ValueShape(ColumnType.BOOLEAN)


def varchar() -> ValueShape:
    return ValueShape(ColumnType.VARCHAR)


def text() -> ValueShape:
    return ValueShape(ColumnType.TEXT)


def date() -> ValueShape:
    return ValueShape(ColumnType.DATE)


def time() -> ValueShape:
    return ValueShape(ColumnType.TIME)


def timestamp() -> ValueShape:
    return ValueShape(ColumnType.TIMESTAMP)


def enum_of(enum_class: type[Enum]) -> ValueShape:
    """An Enum stored by member name in an enumerated column."""
    return ValueShape(ColumnType.ENUM, enum_class)


# --- composite constructors ---


def ref(entity_class: type) -> RefShape:
    return RefShape(entity_class)


def embedded(value_class: type, **fields: Shape) -> EmbeddedShape:
    """A nested value object; keyword order is column order."""
    return EmbeddedShape(value_class, tuple(fields.items()))


def tuple_of(*items: Shape) -> TupleShape:
    return TupleShape(tuple(items))


def seq(element: Shape) -> SeqShape:
    return SeqShape(element)


def set_of(element: Shape) -> SetShape:
    return SetShape(element)


def map_of(key: Shape, value: Shape) -> MapShape:
    return MapShape(key, value)


def option(element: Shape) -> OptionShape:
    return OptionShape(element)


def describe(shape: Any) -> str:
    """Short human-readable form of a shape, for error messages."""
    if isinstance(shape, ValueShape):
        if shape.enum_class is not None:
            return f"enum_of({shape.enum_class.__name__})"
        return shape.column_type.value
    if isinstance(shape, RefShape):
        return f"ref({shape.entity_class.__name__})"
    if isinstance(shape, EmbeddedShape):
        return f"embedded({shape.value_class.__name__})"
    if isinstance(shape, TupleShape):
        return "tuple_of(" + ", ".join(describe(s) for s in shape.items) + ")"
    if isinstance(shape, (SeqShape, SetShape, OptionShape)):
        name = {SeqShape: "seq", SetShape: "set_of", OptionShape: "option"}[type(shape)]
        return f"{name}({describe(shape.element)})"
    if isinstance(shape, MapShape):
        return f"map_of({describe(shape.key)}, {describe(shape.value)})"
    return repr(shape)
