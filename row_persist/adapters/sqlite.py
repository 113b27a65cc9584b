"""SQLite adapter using the stdlib sqlite3 module."""

from __future__ import annotations

import sqlite3
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from row_persist.core.connection import ConnectionConfig
from row_persist.core.exceptions import PoolError


def _adapt(value: Any) -> Any:
    """Convert values sqlite3 cannot bind natively into their text form."""
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


def _adapt_params(params: dict[str, Any] | None) -> dict[str, Any]:
    return {k: _adapt(v) for k, v in (params or {}).items()}


class SqliteSyncAdapter:
    """Synchronous SQLite adapter.

    Foreign key enforcement is off by default in SQLite; it is switched on
    for every pooled connection so dependent rows cascade on delete.
    """

    @property
    def paramstyle(self) -> str:
        return "named"

    def create_pool(self, config: ConnectionConfig) -> list[sqlite3.Connection]:
        """Create a 'pool' (list of connections) for SQLite."""
        pool: list[sqlite3.Connection] = []
        for _ in range(config.pool_size):
            conn = sqlite3.connect(config.database, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA foreign_keys=ON")
            pool.append(conn)
        return pool

    def acquire_connection(self, pool: list[sqlite3.Connection]) -> sqlite3.Connection:
        """Acquire a connection from the pool."""
        if not pool:
            raise PoolError("No connections available in pool")
        return pool.pop()

    def release_connection(
        self, connection: sqlite3.Connection, pool: list[sqlite3.Connection]
    ) -> None:
        """Release a connection back to the pool."""
        pool.append(connection)

    def close_pool(self, pool: list[sqlite3.Connection]) -> None:
        """Close all connections in the pool."""
        for conn in pool:
            conn.close()
        pool.clear()

    def execute(
        self,
        connection: sqlite3.Connection,
        sql: str,
        params: dict[str, Any] | None = None,
    ) -> sqlite3.Cursor:
        """Execute SQL and return a cursor."""
        return connection.execute(sql, _adapt_params(params))

    def insert_returning(
        self,
        connection: sqlite3.Connection,
        sql: str,
        params: dict[str, Any] | None,
        key_column: str,
    ) -> list[Any]:
        """Execute an INSERT and return the rowid SQLite assigned."""
        cursor = self.execute(connection, sql, params)
        if cursor.lastrowid is None:
            return []
        return [cursor.lastrowid]
