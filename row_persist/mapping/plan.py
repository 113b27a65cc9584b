"""Entity declaration data classes.

Frozen dataclasses produced by the entity() builder and consumed by the
registry when it builds the mapping tree.
"""

from __future__ import annotations

from dataclasses import dataclass

from row_persist.mapping.shape import Shape


@dataclass(frozen=True)
class EntitySettings:
    """Per-entity unique keys and indexes, as tuples of property names."""

    unique_keys: tuple[tuple[str, ...], ...] = ()
    indexes: tuple[tuple[str, ...], ...] = ()


@dataclass(frozen=True)
class EntityPlan:
    """Compiled, validated entity declaration."""

    entity_class: type
    table_name: str
    properties: tuple[tuple[str, Shape], ...]
    settings: EntitySettings = EntitySettings()

    @property
    def property_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.properties)
