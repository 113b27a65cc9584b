"""Persistence engine.

The Engine registers entity declarations, initializes the schema and
runs every public operation on one pooled connection inside one
transaction. ``Engine.transaction()`` yields a UnitOfWork that runs
several operations on a single transaction.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any, TypeVar

from row_persist.core.connection import ConnectionConfig, ConnectionManager
from row_persist.core.enums import InitMode
from row_persist.core.exceptions import IdColumnError, NoUniqueKeysError
from row_persist.core.registry import EntityRegistry
from row_persist.core.sanitizer import SQLSanitizer
from row_persist.core.session import Session
from row_persist.core.statements import StatementBuilder
from row_persist.core.transaction import TransactionManager
from row_persist.ddl.builder import SchemaBuilder
from row_persist.ddl.renderer import renderer_for
from row_persist.mapping.root import EntityMapping
from row_persist.mapping.persisted import Persisted, unwrap
from row_persist.mapping.plan import EntityPlan

logger = logging.getLogger(__name__)

T = TypeVar("T")


class UnitOfWork:
    """Entity operations sharing one session and one transaction."""

    def __init__(
        self,
        session: Session,
        registry: EntityRegistry,
        sanitizer: SQLSanitizer,
        transaction: TransactionManager,
    ) -> None:
        self._session = session
        self._registry = registry
        self._sanitizer = sanitizer
        self._transaction = transaction

    @property
    def session(self) -> Session:
        return self._session

    def _mapping(self, value_or_class: Any) -> EntityMapping:
        cls = value_or_class if isinstance(value_or_class, type) else type(unwrap(value_or_class))
        return self._registry.get(cls)

    def save(self, value: T | Persisted[T]) -> Persisted[T]:
        """Insert a transient value, or update the row of a persisted one."""
        return self._mapping(value).save(value, self._session)

    def save_by_unique_keys(self, value: T | Persisted[T]) -> Persisted[T]:
        """Update the row matching the value's unique keys, or insert it.

        Raises:
            NoUniqueKeysError: If the entity declares no unique keys.
        """
        mapping = self._mapping(value)
        if not mapping.settings.unique_keys:
            raise NoUniqueKeysError(mapping.entity_class)
        instance = unwrap(value)
        with self._session.transaction():
            entity_id = mapping.find_id_by_unique_keys(instance, self._session)
            if entity_id is None:
                return mapping.save(instance, self._session)
            return mapping.save(Persisted(instance, entity_id), self._session)

    def delete(self, value: Persisted[Any]) -> None:
        """Delete a persisted entity together with its dependent rows."""
        with self._session.transaction():
            self._mapping(value).delete(value, self._session)

    def fetch_by_id(self, cls: type[T], entity_id: int) -> Persisted[T] | None:
        """Fetch one entity by id. Returns None if no row matches."""
        mapping = self._registry.get(cls)
        with self._session.transaction():
            return mapping.fetch_by_id(entity_id, self._session)

    def fetch_with_sql(
        self,
        cls: type[T],
        sql: str,
        params: dict[str, Any] | None = None,
    ) -> list[Persisted[T]]:
        """Fetch entities by ids selected with a caller-supplied query.

        The query must select exactly one column named ``id``; ``:name``
        placeholders are bound from *params*.

        Raises:
            IdColumnError: If the query selects any other column.
        """
        mapping = self._registry.get(cls)
        sql = self._sanitizer.sanitize(sql)
        with self._session.transaction():
            rows = self._session.query(sql, params)
            if rows and set(rows[0]) != {"id"}:
                raise IdColumnError(list(rows[0]))
            results = []
            for row in rows:
                found = mapping.fetch_by_id(row["id"], self._session)
                if found is not None:
                    results.append(found)
            return results

    def transaction(self) -> TransactionManager:
        """A nested scope; it joins the enclosing transaction."""
        return self._session.transaction()

    def commit(self) -> None:
        """Commit the enclosing transaction early."""
        self._transaction.commit()

    def rollback(self) -> None:
        """Roll the enclosing transaction back."""
        self._transaction.rollback()


class Engine:
    """Synchronous persistence engine.

    Args:
        connection_manager: Pool the engine draws connections from.
        entities: Entity plans built with ``entity(...).build()``.
        init_mode: What to do with the schema at startup.

    Raises:
        ConfigurationError: If the declarations or the derived schema are invalid.
    """

    def __init__(
        self,
        connection_manager: ConnectionManager,
        entities: Iterable[EntityPlan],
        init_mode: InitMode = InitMode.CREATE,
        sanitizer: SQLSanitizer | None = None,
    ) -> None:
        self._connection_manager = connection_manager
        self._renderer = renderer_for(connection_manager.backend)
        self._statements = StatementBuilder(self._renderer)
        self._sanitizer = sanitizer or SQLSanitizer()
        self._registry = EntityRegistry(entities)
        self._schema = SchemaBuilder(self._registry.mappings, self._renderer)
        self._schema.check()
        self._clock_offset: timedelta | None = None
        self._clock_lock = threading.Lock()

        with self._session() as session:
            self._schema.initialize(session, init_mode)

    @classmethod
    def from_config(
        cls,
        config: ConnectionConfig,
        entities: Iterable[EntityPlan],
        init_mode: InitMode = InitMode.CREATE,
    ) -> Engine:
        """Create an Engine from a ConnectionConfig and entity plans.

        Args:
            config: ConnectionConfig instance
            entities: EntityPlan instances
            init_mode: Schema initialization mode

        Returns:
            Engine instance
        """
        connection_manager = ConnectionManager(config)
        return cls(connection_manager, entities, init_mode)

    @property
    def registry(self) -> EntityRegistry:
        return self._registry

    @property
    def schema(self) -> SchemaBuilder:
        return self._schema

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with self._connection_manager.get_connection() as conn:
            yield Session(conn, self._connection_manager.adapter, self._statements)

    @contextmanager
    def transaction(self) -> Iterator[UnitOfWork]:
        """Run several operations on one connection and one transaction.

        Commits when the block exits normally, rolls back on an exception.
        """
        with self._session() as session, session.transaction() as tx:
            yield UnitOfWork(session, self._registry, self._sanitizer, tx)

    def save(self, value: T | Persisted[T]) -> Persisted[T]:
        """Insert a transient value, or update the row of a persisted one."""
        with self.transaction() as uow:
            return uow.save(value)

    def save_by_unique_keys(self, value: T | Persisted[T]) -> Persisted[T]:
        """Update the row matching the value's unique keys, or insert it."""
        with self.transaction() as uow:
            return uow.save_by_unique_keys(value)

    def delete(self, value: Persisted[Any]) -> None:
        """Delete a persisted entity together with its dependent rows."""
        with self.transaction() as uow:
            uow.delete(value)

    def fetch_by_id(self, cls: type[T], entity_id: int) -> Persisted[T] | None:
        """Fetch one entity by id. Returns None if no row matches."""
        with self.transaction() as uow:
            return uow.fetch_by_id(cls, entity_id)

    def fetch_with_sql(
        self,
        cls: type[T],
        sql: str,
        params: dict[str, Any] | None = None,
    ) -> list[Persisted[T]]:
        """Fetch entities by ids selected with a caller-supplied query."""
        with self.transaction() as uow:
            return uow.fetch_with_sql(cls, sql, params)

    def now(self) -> datetime:
        """Current database-server time.

        The server clock is read once; later calls apply the recorded
        offset to the local clock.
        """
        with self._clock_lock:
            if self._clock_offset is None:
                with self._session() as session:
                    server_now = session.now()
                self._clock_offset = datetime.now() - server_now
                logger.debug("Database clock offset: %s", self._clock_offset)
        return datetime.now() - self._clock_offset

    def close(self) -> None:
        """Close the connection pool."""
        self._connection_manager.close_pool()
