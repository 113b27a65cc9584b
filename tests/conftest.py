"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from row_persist.core.connection import ConnectionConfig, ConnectionManager
from row_persist.core.session import Session
from row_persist.core.statements import StatementBuilder
from row_persist.ddl.renderer import SqliteRenderer


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    """SQLite in-memory connection config."""
    return ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1)


@pytest.fixture
def sqlite_manager(sqlite_config: ConnectionConfig) -> Iterator[ConnectionManager]:
    manager = ConnectionManager(sqlite_config)
    yield manager
    manager.close_pool()


@pytest.fixture
def sqlite_session(sqlite_manager: ConnectionManager) -> Iterator[Session]:
    """A Session over the single in-memory connection."""
    with sqlite_manager.get_connection() as conn:
        yield Session(conn, sqlite_manager.adapter, StatementBuilder(SqliteRenderer()))
