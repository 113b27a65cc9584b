"""MySQL adapter using mysql-connector-python."""

from __future__ import annotations

from typing import Any

from row_persist.core.connection import ConnectionConfig
from row_persist.core.exceptions import PoolError


class MysqlSyncAdapter:
    """Synchronous MySQL adapter using mysql-connector-python."""

    @property
    def paramstyle(self) -> str:
        return "pyformat"

    def create_pool(self, config: ConnectionConfig) -> list[Any]:
        """Create a pool (list of connections) for MySQL."""
        import mysql.connector
        from mysql.connector.constants import ClientFlag

        pool: list[Any] = []
        for _ in range(config.pool_size):
            conn = mysql.connector.connect(
                host=config.host,
                port=config.port,
                user=config.user,
                password=config.password,
                database=config.database,
                # UPDATE rowcount counts matched rows, not changed ones
                client_flags=[ClientFlag.FOUND_ROWS],
                **config.extra,
            )
            pool.append(conn)
        return pool

    def acquire_connection(self, pool: list[Any]) -> Any:
        """Acquire a connection from the pool."""
        if not pool:
            raise PoolError("No connections available in pool")
        return pool.pop()

    def release_connection(self, connection: Any, pool: list[Any]) -> None:
        """Release a connection back to the pool."""
        pool.append(connection)

    def close_pool(self, pool: list[Any]) -> None:
        """Close all connections in the pool."""
        for conn in pool:
            conn.close()
        pool.clear()

    def execute(
        self,
        connection: Any,
        sql: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Execute SQL and return a cursor with dictionary results."""
        cursor = connection.cursor(dictionary=True)
        cursor.execute(sql, params or {})
        return cursor

    def insert_returning(
        self,
        connection: Any,
        sql: str,
        params: dict[str, Any] | None,
        key_column: str,
    ) -> list[Any]:
        """Execute an INSERT and return the AUTO_INCREMENT value it produced."""
        cursor = self.execute(connection, sql, params)
        if not cursor.lastrowid:
            return []
        return [cursor.lastrowid]
