"""Connection configuration and management.

ConnectionConfig is a Pydantic model for type-safe connection config.
ConnectionManager drives an adapter's pool: a caller that finds the pool
empty blocks until a connection is released or `pool_timeout` expires.
"""

from __future__ import annotations

import importlib
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from pydantic import BaseModel, Field

from row_persist.core.enums import DatabaseBackend
from row_persist.core.exceptions import AdapterError, PoolError

logger = logging.getLogger(__name__)


class ConnectionConfig(BaseModel):
    """Configuration for database connections."""

    driver: str
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str
    pool_size: int = Field(default=1, ge=1)
    pool_timeout: float = Field(default=30.0, gt=0)
    extra: dict[str, Any] = {}

    @property
    def backend(self) -> DatabaseBackend:
        try:
            return DatabaseBackend(self.driver.lower())
        except ValueError:
            raise AdapterError(f"Unsupported database driver: {self.driver}") from None


# Adapter module mapping: backend → (module_path, class_name)
_ADAPTER_MAP: dict[DatabaseBackend, tuple[str, str]] = {
    DatabaseBackend.SQLITE: ("row_persist.adapters.sqlite", "SqliteSyncAdapter"),
    DatabaseBackend.POSTGRESQL: ("row_persist.adapters.postgresql", "PostgresqlSyncAdapter"),
    DatabaseBackend.MYSQL: ("row_persist.adapters.mysql", "MysqlSyncAdapter"),
}


def _load_adapter(backend: DatabaseBackend) -> Any:
    """Load the adapter for a backend."""
    module_path, cls_name = _ADAPTER_MAP[backend]
    try:
        module = importlib.import_module(module_path)
        return getattr(module, cls_name)()
    except (ImportError, AttributeError) as e:
        raise AdapterError(f"Failed to load adapter for '{backend.value}': {e}") from e


class ConnectionManager:
    """Synchronous connection manager using the SyncAdapter protocol."""

    def __init__(self, config: ConnectionConfig) -> None:
        self.config = config
        self.backend = config.backend
        self._adapter = _load_adapter(self.backend)
        self._pool: Any = None
        self._available = threading.Condition()

    @property
    def adapter(self) -> Any:
        return self._adapter

    def initialize_pool(self) -> Any:
        """Initialize the connection pool."""
        with self._available:
            if self._pool is None:
                self._pool = self._adapter.create_pool(self.config)
                logger.debug(
                    "Opened %s pool with %d connection(s)", self.backend.value, len(self._pool)
                )
            return self._pool

    def acquire(self) -> Any:
        """Check a connection out, waiting up to `pool_timeout` seconds."""
        self.initialize_pool()
        with self._available:
            if not self._available.wait_for(
                lambda: self._pool is not None and len(self._pool) > 0,
                timeout=self.config.pool_timeout,
            ):
                raise PoolError(
                    f"Timed out after {self.config.pool_timeout}s waiting for a connection"
                )
            logger.debug("Checking out a %s connection", self.backend.value)
            return self._adapter.acquire_connection(self._pool)

    def release(self, connection: Any) -> None:
        """Return a connection to the pool and wake one waiter."""
        with self._available:
            if self._pool is None:
                connection.close()
                return
            self._adapter.release_connection(connection, self._pool)
            self._available.notify()

    @contextmanager
    def get_connection(self) -> Iterator[Any]:
        """Get a connection from the pool as a context manager."""
        connection = self.acquire()
        try:
            yield connection
        finally:
            self.release(connection)

    def close_pool(self) -> None:
        """Close the connection pool."""
        with self._available:
            if self._pool is not None:
                self._adapter.close_pool(self._pool)
                self._pool = None
