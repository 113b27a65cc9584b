"""Root entity mapping and references between entities."""

from __future__ import annotations

import logging
from functools import cached_property
from typing import TYPE_CHECKING, Any

from row_persist.core.exceptions import (
    GeneratedKeyError,
    NoUniqueKeysError,
    StaleEntityError,
    UnpersistedEntityError,
)
from row_persist.ddl.schema import Column, ColumnType, ForeignKey, ReferenceOption, Table
from row_persist.mapping.base import (
    Location,
    Mapping,
    MappingContext,
    construct,
    read_property,
)
from row_persist.mapping.persisted import Persisted
from row_persist.mapping.plan import EntityPlan, EntitySettings
from row_persist.mapping.shape import RefShape

if TYPE_CHECKING:
    from row_persist.core.session import Session

logger = logging.getLogger(__name__)

ID = "id"
ID_COLUMN = Column(ID, ColumnType.BIGINT, nullable=False, auto_increment=True)


class EntityMapping:
    """Maps one entity class to its main table and its dependent tables."""

    def __init__(self, plan: EntityPlan, context: MappingContext) -> None:
        from row_persist.mapping.factory import build_mapping

        self.plan = plan
        self.context = context
        self.entity_class = plan.entity_class
        self.table_name = plan.table_name
        location = Location(plan.table_name, (ID_COLUMN,))
        self.properties: dict[str, Mapping] = {
            name: build_mapping(shape, location.child(name), context)
            for name, shape in plan.properties
        }

    def __repr__(self) -> str:
        return f"EntityMapping({self.entity_class.__name__} -> {self.table_name!r})"

    @property
    def settings(self) -> EntitySettings:
        return self.context.settings.get(self.entity_class, self.plan.settings)

    primary_key_column_names = (ID,)

    # --- schema ---

    def _expand(self, keys: tuple[tuple[str, ...], ...]) -> tuple[tuple[str, ...], ...]:
        """Turn property-name keys into column-name keys, dropping empty ones."""
        expanded = []
        for key in keys:
            columns = tuple(
                c.name for name in key for c in self.properties[name].columns_for_container()
            )
            if columns:
                expanded.append(columns)
        return tuple(expanded)

    @property
    def unique_keys_column_names(self) -> tuple[tuple[str, ...], ...]:
        return self._expand(self.settings.unique_keys)

    @property
    def indexes_column_names(self) -> tuple[tuple[str, ...], ...]:
        return self._expand(self.settings.indexes)

    @cached_property
    def table(self) -> Table:
        mappings = self.properties.values()
        return Table(
            name=self.table_name,
            columns=(ID_COLUMN, *(c for m in mappings for c in m.columns_for_container())),
            primary_key=self.primary_key_column_names,
            unique_keys=self.unique_keys_column_names,
            indexes=self.indexes_column_names,
            foreign_keys=tuple(fk for m in mappings for fk in m.foreign_keys_for_container()),
        )

    def schema_fragments(self) -> tuple[Table, ...]:
        nested = tuple(t for m in self.properties.values() for t in m.schema_fragments())
        return (self.table, *nested)

    # --- persistence ---

    def _property_values(self, instance: Any) -> list[tuple[Mapping, Any]]:
        return [(m, read_property(instance, name)) for name, m in self.properties.items()]

    def save(self, value: Any, session: Session) -> Persisted:
        """Insert a transient value or update a persisted one."""
        instance = value.value if isinstance(value, Persisted) else value
        pairs = self._property_values(instance)
        row = [cell for m, v in pairs for cell in m.values_for_container_row(v)]

        with session.transaction():
            if isinstance(value, Persisted):
                self._update_row(value.id, row, session)
                for m, v in pairs:
                    m.update(v, (value.id,), session)
                logger.debug("Updated %s id=%s", self.table_name, value.id)
                return value

            keys = session.insert_and_get_generated_keys(self.table_name, row, ID)
            if len(keys) != 1:
                raise GeneratedKeyError(self.table_name, keys)
            entity_id = int(keys[0])
            for m, v in pairs:
                m.insert(v, (entity_id,), session)
            logger.debug("Inserted %s id=%s", self.table_name, entity_id)
            return Persisted(instance, entity_id)

    def _update_row(self, entity_id: int, row: list[tuple[str, Any]], session: Session) -> None:
        where = [(ID, entity_id)]
        if row:
            found = session.update(self.table_name, row, where)
        else:
            found = len(session.select(self.table_name, where, columns=(ID,)))
        if found == 0:
            raise StaleEntityError(self.table_name, entity_id)

    def delete(self, value: Any, session: Session) -> None:
        """Delete a persisted entity; dependent rows go with the cascade."""
        if not isinstance(value, Persisted):
            raise UnpersistedEntityError("delete", value)
        count = session.delete(self.table_name, [(ID, value.id)])
        logger.debug("Deleted %s id=%s (%d row)", self.table_name, value.id, count)

    def parse_result_set(self, rows: list[dict[str, Any]], session: Session) -> Persisted | None:
        """Build a Persisted from the first main-table row, if any."""
        if not rows:
            return None
        row = rows[0]
        values = {
            name: m.value_from_container_row(row, session) for name, m in self.properties.items()
        }
        return Persisted(construct(self.entity_class, values), int(row[ID]))

    def fetch_by_id(self, entity_id: Any, session: Session) -> Persisted | None:
        rows = session.select(self.table_name, [(ID, entity_id)])
        return self.parse_result_set(rows, session)

    def find_id_by_unique_keys(self, value: Any, session: Session) -> int | None:
        """Id of the stored row matching *value* on every unique-key column."""
        instance = value.value if isinstance(value, Persisted) else value
        names = list(dict.fromkeys(n for key in self.settings.unique_keys for n in key))
        where = [
            cell
            for name in names
            for cell in self.properties[name].values_for_container_row(
                read_property(instance, name)
            )
        ]
        if not where:
            raise NoUniqueKeysError(self.entity_class)
        rows = session.select(self.table_name, where, columns=(ID,))
        return int(rows[0][ID]) if rows else None


class ReferenceMapping(Mapping):
    """A ``path$id`` column holding the id of another entity."""

    def __init__(self, shape: RefShape, location: Location, context: MappingContext) -> None:
        super().__init__(location, context)
        self.entity_class = shape.entity_class
        self.column = Column(f"{location.path}${ID}", ColumnType.BIGINT)

    @property
    def target(self) -> EntityMapping:
        return self.context.entity_mapping(self.entity_class)

    def columns_for_container(self) -> tuple[Column, ...]:
        return (self.column,)

    def foreign_keys_for_container(self) -> tuple[ForeignKey, ...]:
        return (
            ForeignKey(
                self.target.table_name,
                ((self.column.name, ID),),
                on_delete=ReferenceOption.RESTRICT,
                on_update=ReferenceOption.NO_ACTION,
            ),
        )

    def values_for_container_row(self, value: Any) -> list[tuple[str, Any]]:
        if value is None:
            return [(self.column.name, None)]
        if not isinstance(value, Persisted):
            raise UnpersistedEntityError("refer to", value)
        return [(self.column.name, value.id)]

    def value_from_container_row(self, row: dict[str, Any], session: Session) -> Any:
        entity_id = row[self.column.name]
        if entity_id is None:
            return None
        return self.target.fetch_by_id(entity_id, session)
