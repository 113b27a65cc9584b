"""CREATE TABLE rendering.

DdlRenderer owns the dialect-neutral layout of a CREATE TABLE statement:
column definitions, then the primary key, indexes, unique keys and foreign
keys, comma separated and indented. Subclasses provide the total mapping
from ColumnType to a type token plus a few dialect facts.
"""

from __future__ import annotations

from row_persist.core.enums import DatabaseBackend
from row_persist.ddl.schema import Column, ColumnType, ForeignKey, Table


def _indent(text: str, width: int) -> str:
    pad = " " * width
    return "\n".join(pad + line if line else line for line in text.split("\n"))


def _literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


class DdlRenderer:
    """Base renderer. Subclasses set TYPE_NAMES and may override hooks."""

    backend: DatabaseBackend
    TYPE_NAMES: dict[ColumnType, str] = {}

    # Can index clauses live inside CREATE TABLE?
    inline_indexes = True
    # Can a foreign key name a table that does not exist yet?
    forward_references = False

    def quote(self, name: str) -> str:
        return '"' + name.replace('"', '""') + '"'

    def _column_list(self, columns: tuple[str, ...]) -> str:
        return ", ".join(self.quote(c) for c in columns)

    # --- statements ---

    def render(self, table: Table) -> str:
        """Render the CREATE TABLE statement for *table*."""
        clauses = [self.column_ddl(c) for c in table.columns]
        primary_key = self.table_primary_key(table)
        if primary_key:
            clauses.append(self.primary_key_ddl(primary_key))
        if self.inline_indexes:
            clauses.extend(self.index_ddl(index) for index in table.indexes)
        clauses.extend(self.unique_key_ddl(key) for key in table.unique_keys)
        clauses.extend(self.foreign_key_ddl(fk) for fk in table.foreign_keys)

        body = _indent(",\n".join(clauses), 2).strip()
        return f"CREATE TABLE {self.quote(table.name)}\n" + _indent(f"( {body} )", 2)

    def render_statements(self, table: Table) -> list[str]:
        """CREATE TABLE plus any CREATE INDEX statements the dialect needs."""
        statements = [self.render(table)]
        if not self.inline_indexes:
            for n, index in enumerate(table.indexes):
                name = self.quote(f"{table.name}$index{n}")
                statements.append(
                    f"CREATE INDEX {name} ON {self.quote(table.name)} "
                    f"({self._column_list(index)})"
                )
        return statements

    def render_drop(self, table: Table) -> str:
        return f"DROP TABLE IF EXISTS {self.quote(table.name)}"

    def render_add_foreign_key(self, table: Table, fk: ForeignKey) -> str:
        return f"ALTER TABLE {self.quote(table.name)}\n  ADD " + self.foreign_key_ddl(fk)

    # --- clauses ---

    def table_primary_key(self, table: Table) -> tuple[str, ...]:
        return table.primary_key

    def primary_key_ddl(self, columns: tuple[str, ...]) -> str:
        return f"PRIMARY KEY ({self._column_list(columns)})"

    def index_ddl(self, columns: tuple[str, ...]) -> str:
        return f"INDEX ({self._column_list(columns)})"

    def unique_key_ddl(self, columns: tuple[str, ...]) -> str:
        return f"UNIQUE ({self._column_list(columns)})"

    def foreign_key_ddl(self, fk: ForeignKey) -> str:
        return "FOREIGN KEY\n" + _indent(
            f"( {self._column_list(fk.local_columns)} )\n"
            f"REFERENCES {self.quote(fk.table)}\n"
            f"( {self._column_list(fk.referenced_columns)} )\n"
            f"ON DELETE {fk.on_delete.value}\n"
            f"ON UPDATE {fk.on_update.value}",
            2,
        )

    def column_ddl(self, column: Column) -> str:
        ddl = f"{self.quote(column.name)} {self.column_type_ddl(column)}"
        ddl += " NULL" if column.nullable else " NOT NULL"
        if column.auto_increment:
            ddl += " " + self.auto_increment_ddl()
        return ddl

    def column_type_ddl(self, column: Column) -> str:
        if column.type is ColumnType.ENUM:
            return self.enum_ddl(column)
        return self.TYPE_NAMES[column.type]

    def enum_ddl(self, column: Column) -> str:
        values = ", ".join(_literal(v) for v in column.enum_values)
        return f"VARCHAR(255) CHECK ({self.quote(column.name)} IN ({values}))"

    def auto_increment_ddl(self) -> str:
        raise NotImplementedError


class MysqlRenderer(DdlRenderer):
    """MySQL / InnoDB dialect."""

    backend = DatabaseBackend.MYSQL
    TYPE_NAMES = {
        ColumnType.INTEGER: "INTEGER",
        ColumnType.BIGINT: "BIGINT",
        ColumnType.SMALLINT: "SMALLINT",
        ColumnType.TINYINT: "TINYINT",
        ColumnType.FLOAT: "FLOAT",
        ColumnType.DOUBLE: "DOUBLE",
        ColumnType.DECIMAL: "DECIMAL",
        ColumnType.BOOLEAN: "TINYINT(1)",
        ColumnType.VARCHAR: "VARCHAR(255)",
        ColumnType.TEXT: "MEDIUMTEXT",
        ColumnType.DATE: "DATE",
        ColumnType.TIME: "TIME",
        ColumnType.TIMESTAMP: "TIMESTAMP",
    }

    def quote(self, name: str) -> str:
        return "`" + name.replace("`", "``") + "`"

    def enum_ddl(self, column: Column) -> str:
        return "ENUM(" + ", ".join(_literal(v) for v in column.enum_values) + ")"

    def auto_increment_ddl(self) -> str:
        return "AUTO_INCREMENT"


class PostgresqlRenderer(DdlRenderer):
    """PostgreSQL dialect."""

    backend = DatabaseBackend.POSTGRESQL
    inline_indexes = False
    TYPE_NAMES = {
        ColumnType.INTEGER: "INTEGER",
        ColumnType.BIGINT: "BIGINT",
        ColumnType.SMALLINT: "SMALLINT",
        ColumnType.TINYINT: "SMALLINT",
        ColumnType.FLOAT: "REAL",
        ColumnType.DOUBLE: "DOUBLE PRECISION",
        ColumnType.DECIMAL: "DECIMAL",
        ColumnType.BOOLEAN: "SMALLINT",
        ColumnType.VARCHAR: "VARCHAR(255)",
        ColumnType.TEXT: "TEXT",
        ColumnType.DATE: "DATE",
        ColumnType.TIME: "TIME",
        ColumnType.TIMESTAMP: "TIMESTAMP",
    }

    def render_drop(self, table: Table) -> str:
        return f"DROP TABLE IF EXISTS {self.quote(table.name)} CASCADE"

    def auto_increment_ddl(self) -> str:
        return "GENERATED BY DEFAULT AS IDENTITY"


class SqliteRenderer(DdlRenderer):
    """SQLite dialect.

    The identity column is declared ``INTEGER PRIMARY KEY AUTOINCREMENT``
    inline, so the table-level primary key clause is omitted for it.
    """

    backend = DatabaseBackend.SQLITE
    inline_indexes = False
    forward_references = True
    TYPE_NAMES = {
        ColumnType.INTEGER: "INTEGER",
        ColumnType.BIGINT: "INTEGER",
        ColumnType.SMALLINT: "INTEGER",
        ColumnType.TINYINT: "INTEGER",
        ColumnType.FLOAT: "REAL",
        ColumnType.DOUBLE: "REAL",
        ColumnType.DECIMAL: "DECIMAL",
        ColumnType.BOOLEAN: "INTEGER",
        ColumnType.VARCHAR: "VARCHAR(255)",
        ColumnType.TEXT: "TEXT",
        ColumnType.DATE: "DATE",
        ColumnType.TIME: "TIME",
        ColumnType.TIMESTAMP: "TIMESTAMP",
    }

    def table_primary_key(self, table: Table) -> tuple[str, ...]:
        if len(table.primary_key) == 1:
            column = table.column(table.primary_key[0])
            if column is not None and column.auto_increment:
                return ()
        return table.primary_key

    def enum_ddl(self, column: Column) -> str:
        values = ", ".join(_literal(v) for v in column.enum_values)
        return f"TEXT CHECK ({self.quote(column.name)} IN ({values}))"

    def auto_increment_ddl(self) -> str:
        return "PRIMARY KEY AUTOINCREMENT"


_RENDERERS: dict[DatabaseBackend, type[DdlRenderer]] = {
    DatabaseBackend.MYSQL: MysqlRenderer,
    DatabaseBackend.POSTGRESQL: PostgresqlRenderer,
    DatabaseBackend.SQLITE: SqliteRenderer,
}


def renderer_for(backend: DatabaseBackend) -> DdlRenderer:
    """Return the renderer for *backend*."""
    return _RENDERERS[backend]()
