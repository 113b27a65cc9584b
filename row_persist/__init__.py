"""row-persist - object-relational persistence for plain Python classes."""

from __future__ import annotations

from row_persist.core.connection import ConnectionConfig, ConnectionManager
from row_persist.core.engine import Engine, UnitOfWork
from row_persist.core.enums import DatabaseBackend, InitMode
from row_persist.core.exceptions import (
    AdapterError,
    ColumnMismatchError,
    ConfigurationError,
    ConnectionError,  # noqa: A004
    DuplicateEntityError,
    EntityDeclarationError,
    EntityNotRegisteredError,
    GeneratedKeyError,
    IdColumnError,
    IdentityError,
    IntegrityError,
    MappingError,
    NoUniqueKeysError,
    PoolError,
    RowPersistError,
    SchemaValidationError,
    SQLSanitizationError,
    StaleEntityError,
    TableNameCollisionError,
    TransactionError,
    TransactionStateError,
    UnpersistedEntityError,
)
from row_persist.core.registry import EntityRegistry
from row_persist.core.sanitizer import SQLSanitizer
from row_persist.core.transaction import TransactionManager
from row_persist.ddl.builder import SchemaBuilder
from row_persist.mapping.builder import entity
from row_persist.mapping.persisted import Persisted
from row_persist.mapping.plan import EntityPlan

__all__ = [
    # Connection
    "ConnectionConfig",
    "ConnectionManager",
    # Engine
    "Engine",
    "UnitOfWork",
    # Declarations
    "entity",
    "EntityPlan",
    "EntityRegistry",
    "Persisted",
    # Schema
    "SchemaBuilder",
    # Sanitizer
    "SQLSanitizer",
    # Transaction
    "TransactionManager",
    # Enums
    "DatabaseBackend",
    "InitMode",
    # Exceptions
    "RowPersistError",
    "ConfigurationError",
    "EntityNotRegisteredError",
    "DuplicateEntityError",
    "EntityDeclarationError",
    "NoUniqueKeysError",
    "TableNameCollisionError",
    "SchemaValidationError",
    "IdentityError",
    "UnpersistedEntityError",
    "StaleEntityError",
    "IntegrityError",
    "GeneratedKeyError",
    "IdColumnError",
    "SQLSanitizationError",
    "MappingError",
    "ColumnMismatchError",
    "TransactionError",
    "TransactionStateError",
    "AdapterError",
    "ConnectionError",
    "PoolError",
]
