"""Collection mappings backed by dependent tables.

A container owns a table named ``<owner table>$<path>``. Each row carries
the owner's primary key under ``<owner table>$<column>`` link columns, a
0-based ordinal ``i``, and the element columns under ``v`` (plus ``k``
for map keys). The primary key is (links..., i), so nested containers
key their own rows by that pair.

Updating a collection deletes every row for the owner and inserts the
current elements again.
"""

from __future__ import annotations

import logging
from functools import cached_property
from typing import TYPE_CHECKING, Any

from row_persist.ddl.schema import Column, ColumnType, ForeignKey, ReferenceOption, Table
from row_persist.mapping.base import Location, Mapping, MappingContext
from row_persist.mapping.shape import MapShape, OptionShape, SeqShape, SetShape, Shape

if TYPE_CHECKING:
    from row_persist.core.session import Session

logger = logging.getLogger(__name__)

ORDINAL = "i"
ELEMENT = "v"
KEY = "k"


class ContainerMapping(Mapping):
    """Base for mappings that store their value in a dependent table."""

    def __init__(self, location: Location, context: MappingContext) -> None:
        super().__init__(location, context)
        self.table_name = f"{location.table}${location.path}"
        self.link_columns = tuple(
            Column(f"{location.table}${c.name}", c.type) for c in location.primary_key
        )
        self.ordinal_column = Column(ORDINAL, ColumnType.INTEGER)
        self.items: dict[str, Mapping] = {}

    def _item_location(self, name: str) -> Location:
        return Location(self.table_name, (*self.link_columns, self.ordinal_column), name)

    def _build_items(self, shapes: dict[str, Shape]) -> None:
        from row_persist.mapping.factory import build_mapping

        self.items = {
            name: build_mapping(shape, self._item_location(name), self.context)
            for name, shape in shapes.items()
        }

    # --- subclass hooks ---

    def _entries(self, value: Any) -> list[tuple[Any, ...]]:
        """Split the collection into per-row tuples aligned with ``items``."""
        raise NotImplementedError

    def _assemble(self, entries: list[tuple[Any, ...]]) -> Any:
        raise NotImplementedError

    def _unique_keys(self) -> tuple[tuple[str, ...], ...]:
        return ()

    def _item_columns(self, name: str) -> tuple[str, ...]:
        return tuple(c.name for c in self.items[name].columns_for_container())

    # --- schema ---

    @property
    def link_names(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.link_columns)

    @cached_property
    def table(self) -> Table:
        owner_fk = ForeignKey(
            self.location.table,
            tuple(
                (link.name, owner.name)
                for link, owner in zip(self.link_columns, self.location.primary_key, strict=True)
            ),
            on_delete=ReferenceOption.CASCADE,
            on_update=ReferenceOption.NO_ACTION,
        )
        item_columns = tuple(c for m in self.items.values() for c in m.columns_for_container())
        item_fks = tuple(fk for m in self.items.values() for fk in m.foreign_keys_for_container())
        return Table(
            name=self.table_name,
            columns=(*self.link_columns, self.ordinal_column, *item_columns),
            primary_key=(*self.link_names, ORDINAL),
            unique_keys=self._unique_keys(),
            foreign_keys=(owner_fk, *item_fks),
        )

    def schema_fragments(self) -> tuple[Table, ...]:
        nested = tuple(t for m in self.items.values() for t in m.schema_fragments())
        return (self.table, *nested)

    # --- rows ---

    def _where(self, parent_key: tuple[Any, ...]) -> list[tuple[str, Any]]:
        return list(zip(self.link_names, parent_key, strict=True))

    def value_from_container_row(self, row: dict[str, Any], session: Session) -> Any:
        parent_key = tuple(row[c.name] for c in self.location.primary_key)
        rows = session.select(self.table_name, self._where(parent_key), order_by=(ORDINAL,))
        entries = [
            tuple(m.value_from_container_row(r, session) for m in self.items.values())
            for r in rows
        ]
        return self._assemble(entries)

    def insert(self, value: Any, parent_key: tuple[Any, ...], session: Session) -> None:
        for i, entry in enumerate(self._entries(value)):
            pairs = list(zip(self.items.values(), entry, strict=True))
            row = [*self._where(parent_key), (ORDINAL, i)]
            for mapping, part in pairs:
                row.extend(mapping.values_for_container_row(part))
            session.insert(self.table_name, row)
            key = (*parent_key, i)
            for mapping, part in pairs:
                mapping.insert(part, key, session)

    def update(self, value: Any, parent_key: tuple[Any, ...], session: Session) -> None:
        # nested rows go with the cascade
        self.delete(parent_key, session)
        self.insert(value, parent_key, session)

    def delete(self, parent_key: tuple[Any, ...], session: Session) -> None:
        count = session.delete(self.table_name, self._where(parent_key))
        logger.debug("Deleted %d row(s) from %s", count, self.table_name)


class SeqMapping(ContainerMapping):
    """Ordered sequence; element order is the ordinal order."""

    def __init__(self, shape: SeqShape, location: Location, context: MappingContext) -> None:
        super().__init__(location, context)
        self._build_items({ELEMENT: shape.element})

    def _entries(self, value: Any) -> list[tuple[Any, ...]]:
        return [(element,) for element in value or ()]

    def _assemble(self, entries: list[tuple[Any, ...]]) -> Any:
        return [element for element, in entries]


class SetMapping(ContainerMapping):
    """Unordered set; element columns are unique per owner."""

    def __init__(self, shape: SetShape, location: Location, context: MappingContext) -> None:
        super().__init__(location, context)
        self._build_items({ELEMENT: shape.element})

    def _unique_keys(self) -> tuple[tuple[str, ...], ...]:
        columns = self._item_columns(ELEMENT)
        return ((*self.link_names, *columns),) if columns else ()

    def _entries(self, value: Any) -> list[tuple[Any, ...]]:
        return [(element,) for element in value or ()]

    def _assemble(self, entries: list[tuple[Any, ...]]) -> Any:
        return {element for element, in entries}


class MapMapping(ContainerMapping):
    """Key/value map; key columns are unique per owner."""

    def __init__(self, shape: MapShape, location: Location, context: MappingContext) -> None:
        super().__init__(location, context)
        self._build_items({KEY: shape.key, ELEMENT: shape.value})

    def _unique_keys(self) -> tuple[tuple[str, ...], ...]:
        columns = self._item_columns(KEY)
        return ((*self.link_names, *columns),) if columns else ()

    def _entries(self, value: Any) -> list[tuple[Any, ...]]:
        return list((value or {}).items())

    def _assemble(self, entries: list[tuple[Any, ...]]) -> Any:
        return dict(entries)


class OptionTableMapping(ContainerMapping):
    """Optional value kept as zero or one dependent row.

    Used when the inner value cannot be told apart from absence by its
    columns alone.
    """

    def __init__(self, shape: OptionShape, location: Location, context: MappingContext) -> None:
        super().__init__(location, context)
        self._build_items({ELEMENT: shape.element})

    def _entries(self, value: Any) -> list[tuple[Any, ...]]:
        return [] if value is None else [(value,)]

    def _assemble(self, entries: list[tuple[Any, ...]]) -> Any:
        return entries[0][0] if entries else None


class OptionMapping(Mapping):
    """Optional value stored inline as nullable columns; all NULL means absent."""

    def __init__(self, inner: Mapping, location: Location, context: MappingContext) -> None:
        super().__init__(location, context)
        self.inner = inner

    def columns_for_container(self) -> tuple[Column, ...]:
        return tuple(c.with_nullable(True) for c in self.inner.columns_for_container())

    def foreign_keys_for_container(self) -> tuple[ForeignKey, ...]:
        return tuple(
            ForeignKey(fk.table, fk.bindings, ReferenceOption.SET_NULL, fk.on_update)
            for fk in self.inner.foreign_keys_for_container()
        )

    def values_for_container_row(self, value: Any) -> list[tuple[str, Any]]:
        if value is None:
            return [(c.name, None) for c in self.inner.columns_for_container()]
        return self.inner.values_for_container_row(value)

    def value_from_container_row(self, row: dict[str, Any], session: Session) -> Any:
        if all(row[c.name] is None for c in self.inner.columns_for_container()):
            return None
        return self.inner.value_from_container_row(row, session)
