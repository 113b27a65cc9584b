"""row-persist exception hierarchy.

Errors are grouped by kind: configuration, identity, integrity, mapping,
transaction and adapter. Driver exceptions raised while a statement runs
are not wrapped and reach the caller unchanged.
"""

from __future__ import annotations

from typing import Any


class RowPersistError(Exception):
    """Base exception for all row-persist errors."""


# --- Configuration ---


class ConfigurationError(RowPersistError):
    """Base for configuration errors detected at registration or first use."""


class EntityNotRegisteredError(ConfigurationError):
    """Raised when an operation targets a type with no registered mapping."""

    def __init__(self, entity_class: type) -> None:
        self.entity_class = entity_class
        super().__init__(f"Entity '{entity_class.__name__}' is not registered")


class DuplicateEntityError(ConfigurationError):
    """Raised when the same class is declared as an entity twice."""

    def __init__(self, entity_class: type) -> None:
        self.entity_class = entity_class
        super().__init__(f"Entity '{entity_class.__name__}' is declared more than once")


class EntityDeclarationError(ConfigurationError):
    """Raised when an entity declaration does not describe its class."""


class NoUniqueKeysError(ConfigurationError):
    """Raised by save_by_unique_keys for a type without unique keys."""

    def __init__(self, entity_class: type) -> None:
        self.entity_class = entity_class
        super().__init__(f"Entity '{entity_class.__name__}' doesn't have unique keys")


class TableNameCollisionError(ConfigurationError):
    """Raised when two different table definitions claim the same name."""

    def __init__(self, table_name: str) -> None:
        self.table_name = table_name
        super().__init__(f"Conflicting definitions for table '{table_name}'")


class SchemaValidationError(ConfigurationError):
    """Raised when the derived schema violates a structural constraint."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__("Invalid schema: " + "; ".join(errors))


# --- Identity ---


class IdentityError(RowPersistError):
    """Base for errors about entity identity."""


class UnpersistedEntityError(IdentityError):
    """Raised when a transient value is deleted or referenced by id."""

    def __init__(self, action: str, value: Any) -> None:
        self.value = value
        super().__init__(f"Attempt to {action} an unpersisted entity: {value!r}")


class StaleEntityError(IdentityError):
    """Raised when a persisted value's row no longer exists."""

    def __init__(self, table: str, entity_id: Any) -> None:
        self.table = table
        self.entity_id = entity_id
        super().__init__(f"No row in '{table}' with id {entity_id}; was it deleted?")


# --- Integrity ---


class IntegrityError(RowPersistError):
    """Base for violated assumptions about what the store returned."""


class GeneratedKeyError(IntegrityError):
    """Raised when an insert does not yield exactly one generated key."""

    def __init__(self, table: str, keys: list[Any]) -> None:
        self.table = table
        self.keys = keys
        super().__init__(
            f"Insert into '{table}' returned {len(keys)} generated keys (expected 1)"
        )


class IdColumnError(IntegrityError):
    """Raised when a raw fetch statement selects anything but `id`."""

    def __init__(self, columns: list[str]) -> None:
        self.columns = columns
        super().__init__(f"The sql-statement must select only the `id`-column, got {columns}")


class SQLSanitizationError(IntegrityError):
    """Raised when a free-form SQL string fails a sanitization check."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"SQL sanitization failed: {detail}")


# --- Mapping ---


class MappingError(RowPersistError):
    """Base for mapping errors."""


class ColumnMismatchError(MappingError):
    """Raised when row values cannot construct the declared class."""

    def __init__(self, target_class: str, detail: str) -> None:
        self.target_class = target_class
        super().__init__(f"Cannot map to {target_class}: {detail}")


# --- Transaction ---


class TransactionError(RowPersistError):
    """Base for transaction errors."""


class TransactionStateError(TransactionError):
    """Raised on invalid transaction state transitions."""

    def __init__(self, current_state: str, attempted_action: str) -> None:
        self.current_state = current_state
        self.attempted_action = attempted_action
        super().__init__(f"Cannot {attempted_action} transaction in state '{current_state}'")


# --- Adapter ---


class AdapterError(RowPersistError):
    """Base for adapter errors."""


class ConnectionError(AdapterError):  # noqa: A001
    """Raised on connection failures."""


class PoolError(AdapterError):
    """Raised on connection pool failures."""
