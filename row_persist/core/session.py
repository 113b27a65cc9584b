"""The connection collaborator the mapping layer writes through.

A Session wraps one pooled connection. Every statement runs inside a
transaction scope: the enclosing one when the caller opened it, otherwise
an implicit scope around that single statement.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from row_persist.core.params import normalize_params
from row_persist.core.statements import ColumnValues, StatementBuilder
from row_persist.core.transaction import TransactionManager

logger = logging.getLogger(__name__)


def _rows_to_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Convert cursor results to list of dicts.

    Handles both tuple-like rows and dict-like rows from different adapters.
    """
    if cursor.description is None:
        return []
    columns = [desc[0] for desc in cursor.description]
    rows = cursor.fetchall()
    if not rows:
        return []

    if isinstance(rows[0], dict):
        return [dict(row) for row in rows]

    return [dict(zip(columns, row, strict=True)) for row in rows]


class Session:
    """Statement execution over a single connection."""

    def __init__(self, connection: Any, adapter: Any, statements: StatementBuilder) -> None:
        self._connection = connection
        self._adapter = adapter
        self._statements = statements
        self._paramstyle: str = adapter.paramstyle
        self._transaction: TransactionManager | None = None

    @property
    def connection(self) -> Any:
        return self._connection

    @property
    def in_transaction(self) -> bool:
        return self._transaction is not None

    def _bind_transaction(self, transaction: TransactionManager | None) -> None:
        self._transaction = transaction

    def transaction(self) -> TransactionManager:
        """Open a transaction scope, or join the active one."""
        return TransactionManager(self)

    def _cursor(self, sql: str, params: dict[str, Any] | None) -> Any:
        if self._transaction is not None:
            self._transaction.check_active()
        sql = normalize_params(sql, self._paramstyle)
        logger.debug("%s %s", sql, params or {})
        return self._adapter.execute(self._connection, sql, params)

    # --- free-form statements ---

    def execute(self, sql: str, params: dict[str, Any] | None = None) -> int:
        """Execute a statement. Returns affected row count."""
        with self.transaction():
            return int(self._cursor(sql, params).rowcount)

    def query(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Run a query and return its rows as dicts."""
        with self.transaction():
            return _rows_to_dicts(self._cursor(sql, params))

    # --- per-row statements ---

    def select(
        self,
        table: str,
        where: ColumnValues,
        columns: Sequence[str] = (),
        order_by: Sequence[str] = (),
    ) -> list[dict[str, Any]]:
        sql, params = self._statements.select(table, where, columns, order_by)
        return self.query(sql, params)

    def insert(self, table: str, column_values: ColumnValues) -> None:
        sql, params = self._statements.insert(table, column_values)
        self.execute(sql, params)

    def insert_and_get_generated_keys(
        self, table: str, column_values: ColumnValues, key_column: str = "id"
    ) -> list[Any]:
        """Insert a row and return whatever keys the store generated for it."""
        sql, params = self._statements.insert(table, column_values)
        with self.transaction():
            if self._transaction is not None:
                self._transaction.check_active()
            sql = normalize_params(sql, self._paramstyle)
            logger.debug("%s %s", sql, params)
            return list(self._adapter.insert_returning(self._connection, sql, params, key_column))

    def update(self, table: str, column_values: ColumnValues, where: ColumnValues) -> int:
        sql, params = self._statements.update(table, column_values, where)
        return self.execute(sql, params)

    def delete(self, table: str, where: ColumnValues) -> int:
        sql, params = self._statements.delete(table, where)
        return self.execute(sql, params)

    def now(self) -> datetime:
        """Current timestamp of the database server."""
        rows = self.query(self._statements.now())
        value = rows[0]["now"]
        if isinstance(value, str):
            return datetime.fromisoformat(value)
        return value
