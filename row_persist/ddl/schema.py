"""Relational schema model.

Frozen dataclasses describing tables, columns, keys and foreign keys.
They carry no behavior beyond structural equality; validation lives in
SchemaBuilder and rendering in DdlRenderer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ColumnType(Enum):
    """Store-neutral column types."""

    INTEGER = "integer"
    BIGINT = "bigint"
    SMALLINT = "smallint"
    TINYINT = "tinyint"
    FLOAT = "float"
    DOUBLE = "double"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    VARCHAR = "varchar"
    TEXT = "text"
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"
    ENUM = "enum"


class ReferenceOption(Enum):
    """Referential action of a foreign key. Values are the SQL text."""

    RESTRICT = "RESTRICT"
    CASCADE = "CASCADE"
    NO_ACTION = "NO ACTION"
    SET_NULL = "SET NULL"
    SET_DEFAULT = "SET DEFAULT"


@dataclass(frozen=True)
class Column:
    """A single column definition."""

    name: str
    type: ColumnType
    nullable: bool = False
    auto_increment: bool = False
    enum_values: tuple[str, ...] = ()

    def with_nullable(self, nullable: bool) -> Column:
        return Column(self.name, self.type, nullable, self.auto_increment, self.enum_values)


@dataclass(frozen=True)
class ForeignKey:
    """Foreign key from local columns to columns of another table."""

    table: str
    bindings: tuple[tuple[str, str], ...]  # (local column, referenced column)
    on_delete: ReferenceOption = ReferenceOption.NO_ACTION
    on_update: ReferenceOption = ReferenceOption.NO_ACTION

    @property
    def local_columns(self) -> tuple[str, ...]:
        return tuple(local for local, _ in self.bindings)

    @property
    def referenced_columns(self) -> tuple[str, ...]:
        return tuple(referenced for _, referenced in self.bindings)


def _dedupe(keys: tuple[tuple[str, ...], ...]) -> tuple[tuple[str, ...], ...]:
    return tuple(dict.fromkeys(tuple(k) for k in keys))


@dataclass(frozen=True)
class Table:
    """A table definition.

    Unique keys and indexes are sets by meaning but kept as ordered,
    de-duplicated tuples so that rendering stays deterministic.
    """

    name: str
    columns: tuple[Column, ...]
    primary_key: tuple[str, ...] = ()
    unique_keys: tuple[tuple[str, ...], ...] = ()
    indexes: tuple[tuple[str, ...], ...] = ()
    foreign_keys: tuple[ForeignKey, ...] = field(default=())

    def __post_init__(self) -> None:
        object.__setattr__(self, "unique_keys", _dedupe(self.unique_keys))
        object.__setattr__(self, "indexes", _dedupe(self.indexes))

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.columns)

    def column(self, name: str) -> Column | None:
        for c in self.columns:
            if c.name == name:
                return c
        return None
