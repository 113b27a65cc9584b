"""Per-row statement builders.

Every INSERT, UPDATE, DELETE and SELECT the mapping layer issues is built
here, with `:pN` placeholders and identifiers quoted by the dialect's
renderer. Column names may contain `$`, so they are never used as
parameter names.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from row_persist.core.enums import DatabaseBackend
from row_persist.ddl.renderer import DdlRenderer

ColumnValues = Sequence[tuple[str, Any]]

_EMPTY_INSERT: dict[DatabaseBackend, str] = {
    DatabaseBackend.MYSQL: "INSERT INTO {table} () VALUES ()",
    DatabaseBackend.POSTGRESQL: "INSERT INTO {table} DEFAULT VALUES",
    DatabaseBackend.SQLITE: "INSERT INTO {table} DEFAULT VALUES",
}

_NOW: dict[DatabaseBackend, str] = {
    DatabaseBackend.MYSQL: "SELECT NOW() AS now",
    DatabaseBackend.POSTGRESQL: "SELECT LOCALTIMESTAMP AS now",
    DatabaseBackend.SQLITE: "SELECT CURRENT_TIMESTAMP AS now",
}


class StatementBuilder:
    """Builds parameterized single-table statements for one dialect."""

    def __init__(self, renderer: DdlRenderer) -> None:
        self._renderer = renderer
        self._quote = renderer.quote

    @property
    def backend(self) -> DatabaseBackend:
        return self._renderer.backend

    def _where(self, where: ColumnValues, params: dict[str, Any]) -> str:
        if not where:
            return ""
        conditions = []
        for column, value in where:
            if value is None:
                conditions.append(f"{self._quote(column)} IS NULL")
            else:
                name = f"p{len(params)}"
                params[name] = value
                conditions.append(f"{self._quote(column)} = :{name}")
        return " WHERE " + " AND ".join(conditions)

    def insert(self, table: str, column_values: ColumnValues) -> tuple[str, dict[str, Any]]:
        if not column_values:
            return _EMPTY_INSERT[self.backend].format(table=self._quote(table)), {}
        params: dict[str, Any] = {}
        columns = []
        placeholders = []
        for column, value in column_values:
            name = f"p{len(params)}"
            params[name] = value
            columns.append(self._quote(column))
            placeholders.append(f":{name}")
        sql = (
            f"INSERT INTO {self._quote(table)} ({', '.join(columns)}) "
            f"VALUES ({', '.join(placeholders)})"
        )
        return sql, params

    def update(
        self, table: str, column_values: ColumnValues, where: ColumnValues
    ) -> tuple[str, dict[str, Any]]:
        params: dict[str, Any] = {}
        assignments = []
        for column, value in column_values:
            name = f"p{len(params)}"
            params[name] = value
            assignments.append(f"{self._quote(column)} = :{name}")
        sql = f"UPDATE {self._quote(table)} SET {', '.join(assignments)}"
        return sql + self._where(where, params), params

    def delete(self, table: str, where: ColumnValues) -> tuple[str, dict[str, Any]]:
        params: dict[str, Any] = {}
        sql = f"DELETE FROM {self._quote(table)}"
        return sql + self._where(where, params), params

    def select(
        self,
        table: str,
        where: ColumnValues,
        columns: Sequence[str] = (),
        order_by: Sequence[str] = (),
    ) -> tuple[str, dict[str, Any]]:
        params: dict[str, Any] = {}
        selected = ", ".join(self._quote(c) for c in columns) if columns else "*"
        sql = f"SELECT {selected} FROM {self._quote(table)}" + self._where(where, params)
        if order_by:
            sql += " ORDER BY " + ", ".join(self._quote(c) for c in order_by)
        return sql, params

    def now(self) -> str:
        return _NOW[self.backend]
