"""Relational schema model, dialect renderers and schema builder."""

from __future__ import annotations

from row_persist.ddl.builder import SchemaBuilder
from row_persist.ddl.renderer import (
    DdlRenderer,
    MysqlRenderer,
    PostgresqlRenderer,
    SqliteRenderer,
    renderer_for,
)
from row_persist.ddl.schema import Column, ColumnType, ForeignKey, ReferenceOption, Table

__all__ = [
    "Column",
    "ColumnType",
    "ForeignKey",
    "ReferenceOption",
    "Table",
    "DdlRenderer",
    "MysqlRenderer",
    "PostgresqlRenderer",
    "SqliteRenderer",
    "renderer_for",
    "SchemaBuilder",
]
