"""Schema assembly, validation and initialization.

SchemaBuilder unions the tables every entity mapping contributes, checks
that the result is internally consistent, and orders CREATE statements so
that a referenced table exists before the foreign key naming it. Where a
dialect cannot reference a table that does not exist yet, foreign keys
that point forward are added afterwards with ALTER TABLE.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol

from row_persist.core.enums import InitMode
from row_persist.core.exceptions import SchemaValidationError, TableNameCollisionError
from row_persist.ddl.renderer import DdlRenderer
from row_persist.ddl.schema import ColumnType, ForeignKey, Table

if TYPE_CHECKING:
    from row_persist.core.session import Session

logger = logging.getLogger(__name__)


class SchemaSource(Protocol):
    """Anything that contributes tables to the schema."""

    def schema_fragments(self) -> tuple[Table, ...]: ...


def _find_cycle(edges: dict[str, set[str]]) -> list[str] | None:
    """Return one cycle in a directed graph as a node path, or None."""
    visiting: list[str] = []
    done: set[str] = set()

    def visit(node: str) -> list[str] | None:
        if node in visiting:
            return visiting[visiting.index(node) :] + [node]
        if node in done:
            return None
        visiting.append(node)
        for target in sorted(edges.get(node, ())):
            cycle = visit(target)
            if cycle:
                return cycle
        visiting.pop()
        done.add(node)
        return None

    for node in sorted(edges):
        cycle = visit(node)
        if cycle:
            return cycle
    return None


class SchemaBuilder:
    """The full relational schema of a set of entity mappings.

    Args:
        sources: Entity mappings (or anything with ``schema_fragments()``).
        renderer: The dialect to render statements for.

    Raises:
        TableNameCollisionError: If two different tables share a name.
    """

    def __init__(self, sources: Iterable[SchemaSource], renderer: DdlRenderer) -> None:
        self._renderer = renderer
        self._tables: dict[str, Table] = {}
        for source in sources:
            for table in source.schema_fragments():
                existing = self._tables.get(table.name)
                if existing is not None and existing != table:
                    raise TableNameCollisionError(table.name)
                self._tables[table.name] = table

    @property
    def renderer(self) -> DdlRenderer:
        return self._renderer

    def table(self, name: str) -> Table:
        return self._tables[name]

    @property
    def table_names(self) -> list[str]:
        return sorted(self._tables)

    # --- validation ---

    def validate(self) -> list[str]:
        """Collect every structural problem of the schema."""
        errors: list[str] = []
        for table in self._tables.values():
            errors.extend(self._validate_table(table))
        cycle = self._required_cycle()
        if cycle:
            errors.append(
                "Unresolvable cycle of required foreign keys: " + " -> ".join(cycle)
            )
        return errors

    def check(self) -> None:
        """Raise SchemaValidationError if validate() reports anything."""
        errors = self.validate()
        if errors:
            raise SchemaValidationError(errors)

    def _validate_table(self, table: Table) -> list[str]:
        errors = []
        names = set(table.column_names)
        if not table.columns:
            errors.append(f"{table.name}: no columns")
        if len(names) != len(table.columns):
            errors.append(f"{table.name}: duplicate column names")

        keys = [("primary key", table.primary_key)]
        keys += [("unique key", k) for k in table.unique_keys]
        keys += [("index", k) for k in table.indexes]
        keys += [("foreign key", fk.local_columns) for fk in table.foreign_keys]
        for kind, columns in keys:
            missing = [c for c in columns if c not in names]
            if missing:
                errors.append(f"{table.name}: {kind} names unknown columns {missing}")

        for column in table.columns:
            if column.auto_increment and table.primary_key != (column.name,):
                errors.append(f"{table.name}.{column.name}: auto increment outside the primary key")
            if column.type is ColumnType.ENUM and not column.enum_values:
                errors.append(f"{table.name}.{column.name}: enum without values")

        for fk in table.foreign_keys:
            errors.extend(self._validate_foreign_key(table, fk))
        return errors

    def _validate_foreign_key(self, table: Table, fk: ForeignKey) -> list[str]:
        target = self._tables.get(fk.table)
        if target is None:
            return [f"{table.name}: foreign key references unknown table {fk.table}"]
        referenced = set(fk.referenced_columns)
        missing = [c for c in fk.referenced_columns if c not in target.column_names]
        if missing:
            return [f"{table.name}: foreign key references unknown columns {fk.table}{missing}"]
        candidates = [target.primary_key, *target.unique_keys]
        if not any(referenced <= set(key) for key in candidates if key):
            return [
                f"{table.name}: foreign key to {fk.table}{list(fk.referenced_columns)} "
                "hits neither the primary key nor a unique key"
            ]
        return []

    def _edges(self, required_only: bool = False) -> dict[str, set[str]]:
        edges: dict[str, set[str]] = {name: set() for name in self._tables}
        for table in self._tables.values():
            for fk in table.foreign_keys:
                if fk.table not in self._tables:
                    continue
                if required_only:
                    columns = [table.column(c) for c in fk.local_columns]
                    if any(c is None or c.nullable for c in columns):
                        continue
                edges[table.name].add(fk.table)
        return edges

    def _required_cycle(self) -> list[str] | None:
        return _find_cycle(self._edges(required_only=True))

    # --- ordering and rendering ---

    def tables(self) -> list[Table]:
        """All tables, each after the tables it references where possible.

        Ties are broken by name; tables on a cycle follow in name order.
        """
        depends = {
            name: {t for t in targets if t != name} for name, targets in self._edges().items()
        }
        ordered: list[str] = []
        remaining = dict(depends)
        while remaining:
            ready = sorted(n for n, deps in remaining.items() if not deps - set(ordered))
            if not ready:
                ready = [min(remaining)]
            for name in ready:
                ordered.append(name)
                del remaining[name]
        return [self._tables[name] for name in ordered]

    def statements(self) -> list[str]:
        """CREATE statements in dependency order, plus deferred foreign keys."""
        statements: list[str] = []
        deferred: list[tuple[Table, ForeignKey]] = []
        created: set[str] = set()
        for table in self.tables():
            if not self._renderer.forward_references:
                inline = []
                for fk in table.foreign_keys:
                    if fk.table == table.name or fk.table in created:
                        inline.append(fk)
                    else:
                        deferred.append((table, fk))
                table = dataclasses.replace(table, foreign_keys=tuple(inline))
            statements.extend(self._renderer.render_statements(table))
            created.add(table.name)
        statements.extend(self._renderer.render_add_foreign_key(t, fk) for t, fk in deferred)
        return statements

    def drop_statements(self) -> list[str]:
        """DROP statements, dependents first."""
        return [self._renderer.render_drop(t) for t in reversed(self.tables())]

    def initialize(self, session: Session, mode: InitMode = InitMode.CREATE) -> None:
        """Bring the database schema into existence according to *mode*."""
        if mode is InitMode.NONE:
            logger.info("Schema initialization skipped (%d tables)", len(self._tables))
            return
        statements: list[str] = []
        if mode is InitMode.DROP_CREATE:
            statements.extend(self.drop_statements())
        statements.extend(self.statements())
        logger.info("Initializing schema: %d tables, mode=%s", len(self._tables), mode.value)
        with session.transaction():
            for sql in statements:
                logger.info("Executing DDL:\n%s", sql)
                session.execute(sql)
