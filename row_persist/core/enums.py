"""Database backend and schema initialization enumerations."""

from __future__ import annotations

from enum import Enum


class DatabaseBackend(Enum):
    """Supported database backends."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"


class InitMode(Enum):
    """What the engine does with the schema when it starts.

    CREATE fails if any table already exists. DROP_CREATE drops the tables
    this schema defines and creates them again. NONE assumes an existing,
    compatible schema.
    """

    CREATE = "create"
    DROP_CREATE = "drop_create"
    NONE = "none"
