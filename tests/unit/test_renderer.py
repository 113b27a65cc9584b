"""Unit tests for the DDL renderers."""

from __future__ import annotations

import pytest

from row_persist.core.enums import DatabaseBackend
from row_persist.ddl.renderer import (
    MysqlRenderer,
    PostgresqlRenderer,
    SqliteRenderer,
    renderer_for,
)
from row_persist.ddl.schema import Column, ColumnType, ForeignKey, ReferenceOption, Table

ID = Column("id", ColumnType.BIGINT, auto_increment=True)

ARTICLE = Table(
    name="article",
    columns=(ID, Column("title", ColumnType.TEXT), Column("rating", ColumnType.INTEGER)),
    primary_key=("id",),
    indexes=(("rating",),),
)

TAGS = Table(
    name="article$tags",
    columns=(
        Column("article$id", ColumnType.BIGINT),
        Column("i", ColumnType.INTEGER),
        Column("v", ColumnType.TEXT),
    ),
    primary_key=("article$id", "i"),
    unique_keys=(("article$id", "v"),),
    foreign_keys=(
        ForeignKey(
            "article",
            (("article$id", "id"),),
            on_delete=ReferenceOption.CASCADE,
            on_update=ReferenceOption.NO_ACTION,
        ),
    ),
)


class TestMysqlRenderer:
    def test_simple_table_exact_layout(self) -> None:
        table = Table(
            "t",
            (Column("a", ColumnType.INTEGER), Column("b", ColumnType.TEXT, nullable=True)),
            ("a",),
        )
        assert MysqlRenderer().render(table) == (
            "CREATE TABLE `t`\n"
            "  ( `a` INTEGER NOT NULL,\n"
            "    `b` MEDIUMTEXT NULL,\n"
            "    PRIMARY KEY (`a`) )"
        )

    def test_identity_and_inline_index(self) -> None:
        ddl = MysqlRenderer().render(ARTICLE)
        assert "`id` BIGINT NOT NULL AUTO_INCREMENT" in ddl
        assert "INDEX (`rating`)" in ddl

    def test_clause_order(self) -> None:
        ddl = MysqlRenderer().render(TAGS)
        assert ddl.index("PRIMARY KEY") < ddl.index("UNIQUE") < ddl.index("FOREIGN KEY")

    def test_foreign_key_clause(self) -> None:
        ddl = MysqlRenderer().render(TAGS)
        assert "FOREIGN KEY" in ddl
        assert "( `article$id` )" in ddl
        assert "REFERENCES `article`" in ddl
        assert "( `id` )" in ddl
        assert "ON DELETE CASCADE" in ddl
        assert "ON UPDATE NO ACTION" in ddl

    def test_enum_column(self) -> None:
        column = Column("mood", ColumnType.ENUM, enum_values=("HAPPY", "SAD"))
        assert MysqlRenderer().column_ddl(column) == "`mood` ENUM('HAPPY', 'SAD') NOT NULL"

    def test_boolean_is_tinyint_one(self) -> None:
        column = Column("flag", ColumnType.BOOLEAN)
        assert MysqlRenderer().column_type_ddl(column) == "TINYINT(1)"

    def test_render_statements_is_single_statement(self) -> None:
        assert len(MysqlRenderer().render_statements(ARTICLE)) == 1


class TestPostgresqlRenderer:
    def test_identity(self) -> None:
        ddl = PostgresqlRenderer().render(ARTICLE)
        assert '"id" BIGINT NOT NULL GENERATED BY DEFAULT AS IDENTITY' in ddl
        assert 'PRIMARY KEY ("id")' in ddl

    def test_indexes_become_separate_statements(self) -> None:
        statements = PostgresqlRenderer().render_statements(ARTICLE)
        assert len(statements) == 2
        assert "INDEX" not in statements[0]
        assert statements[1] == 'CREATE INDEX "article$index0" ON "article" ("rating")'

    def test_enum_check_constraint(self) -> None:
        column = Column("mood", ColumnType.ENUM, enum_values=("HAPPY", "O'K"))
        assert PostgresqlRenderer().column_type_ddl(column) == (
            "VARCHAR(255) CHECK (\"mood\" IN ('HAPPY', 'O''K'))"
        )

    def test_drop_cascades(self) -> None:
        assert PostgresqlRenderer().render_drop(ARTICLE) == 'DROP TABLE IF EXISTS "article" CASCADE'


class TestSqliteRenderer:
    def test_identity_is_inline_primary_key(self) -> None:
        ddl = SqliteRenderer().render(ARTICLE)
        assert '"id" INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT' in ddl
        assert 'PRIMARY KEY ("id")' not in ddl

    def test_composite_primary_key_kept(self) -> None:
        ddl = SqliteRenderer().render(TAGS)
        assert 'PRIMARY KEY ("article$id", "i")' in ddl

    def test_forward_references(self) -> None:
        assert SqliteRenderer().forward_references is True
        assert MysqlRenderer().forward_references is False

    def test_add_foreign_key(self) -> None:
        statement = MysqlRenderer().render_add_foreign_key(TAGS, TAGS.foreign_keys[0])
        assert statement.startswith("ALTER TABLE `article$tags`\n  ADD FOREIGN KEY")


@pytest.mark.parametrize("column_type", list(ColumnType))
@pytest.mark.parametrize("renderer", [MysqlRenderer(), PostgresqlRenderer(), SqliteRenderer()])
def test_type_mapping_is_total(renderer, column_type: ColumnType) -> None:
    enum_values = ("A",) if column_type is ColumnType.ENUM else ()
    assert renderer.column_type_ddl(Column("c", column_type, enum_values=enum_values))


def test_rendering_is_deterministic() -> None:
    assert MysqlRenderer().render(TAGS) == MysqlRenderer().render(TAGS)


def test_renderer_for_backend() -> None:
    assert isinstance(renderer_for(DatabaseBackend.SQLITE), SqliteRenderer)
    assert isinstance(renderer_for(DatabaseBackend.POSTGRESQL), PostgresqlRenderer)
    assert isinstance(renderer_for(DatabaseBackend.MYSQL), MysqlRenderer)
