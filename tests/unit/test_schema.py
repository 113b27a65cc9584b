"""Unit tests for the schema model."""

from __future__ import annotations

import pytest

from row_persist.ddl.schema import Column, ColumnType, ForeignKey, ReferenceOption, Table


class TestTable:
    def test_keys_are_deduplicated_in_order(self) -> None:
        table = Table(
            "t",
            (Column("a", ColumnType.INTEGER), Column("b", ColumnType.INTEGER)),
            unique_keys=(("b",), ("a",), ("b",)),
            indexes=(("a", "b"), ("a", "b")),
        )
        assert table.unique_keys == (("b",), ("a",))
        assert table.indexes == (("a", "b"),)

    def test_structural_equality(self) -> None:
        def make() -> Table:
            return Table("t", (Column("a", ColumnType.TEXT),), unique_keys=(("a",), ("a",)))

        assert make() == make()

    def test_column_lookup(self) -> None:
        table = Table("t", (Column("a", ColumnType.TEXT),))
        assert table.column("a") == Column("a", ColumnType.TEXT)
        assert table.column("missing") is None
        assert table.column_names == ("a",)

    def test_frozen(self) -> None:
        table = Table("t", (Column("a", ColumnType.TEXT),))
        with pytest.raises(AttributeError):
            table.name = "u"  # type: ignore[misc]


class TestColumn:
    def test_with_nullable(self) -> None:
        column = Column("a", ColumnType.ENUM, enum_values=("X",))
        nullable = column.with_nullable(True)
        assert nullable.nullable is True
        assert nullable.enum_values == ("X",)


class TestForeignKey:
    def test_column_accessors(self) -> None:
        fk = ForeignKey("article", (("a$id", "id"), ("a$i", "i")))
        assert fk.local_columns == ("a$id", "a$i")
        assert fk.referenced_columns == ("id", "i")

    def test_reference_option_values_are_sql(self) -> None:
        assert ReferenceOption.NO_ACTION.value == "NO ACTION"
        assert ReferenceOption.SET_NULL.value == "SET NULL"
