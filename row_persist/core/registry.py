"""Entity registry - builds and holds one EntityMapping per declared class.

The registry is immutable after construction: declare every entity at
startup, then read-only access for the lifetime of the engine.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from types import MappingProxyType

from row_persist.core.exceptions import (
    DuplicateEntityError,
    EntityDeclarationError,
    EntityNotRegisteredError,
    TableNameCollisionError,
)
from row_persist.mapping.base import MappingContext
from row_persist.mapping.root import EntityMapping
from row_persist.mapping.plan import EntityPlan
from row_persist.mapping.shape import (
    EmbeddedShape,
    MapShape,
    OptionShape,
    RefShape,
    SeqShape,
    SetShape,
    Shape,
    TupleShape,
)

logger = logging.getLogger(__name__)


def _referenced_classes(shape: Shape) -> Iterator[type]:
    """Yield every entity class a shape refers to, at any depth."""
    if isinstance(shape, RefShape):
        yield shape.entity_class
    elif isinstance(shape, EmbeddedShape):
        for _, field_shape in shape.fields:
            yield from _referenced_classes(field_shape)
    elif isinstance(shape, TupleShape):
        for item in shape.items:
            yield from _referenced_classes(item)
    elif isinstance(shape, (SeqShape, SetShape, OptionShape)):
        yield from _referenced_classes(shape.element)
    elif isinstance(shape, MapShape):
        yield from _referenced_classes(shape.key)
        yield from _referenced_classes(shape.value)


class EntityRegistry:
    """Holds the mapping tree of every registered entity.

    Args:
        entities: Entity plans, as built by ``entity(...).build()``.

    Raises:
        DuplicateEntityError: If a class is declared twice.
        TableNameCollisionError: If two entities claim the same table.
        EntityDeclarationError: If a reference targets an undeclared class.
    """

    def __init__(self, entities: Iterable[EntityPlan]) -> None:
        self._plans: dict[type, EntityPlan] = {}
        for plan in entities:
            if plan.entity_class in self._plans:
                raise DuplicateEntityError(plan.entity_class)
            self._plans[plan.entity_class] = plan
        self._validate()

        self._mappings: dict[type, EntityMapping] = {}
        context = MappingContext(
            settings=MappingProxyType({cls: p.settings for cls, p in self._plans.items()}),
            entities=MappingProxyType(self._mappings),
        )
        for cls, plan in self._plans.items():
            self._mappings[cls] = EntityMapping(plan, context)
        logger.info("Registered %d entities", len(self._mappings))

    def _validate(self) -> None:
        tables: dict[str, type] = {}
        for cls, plan in self._plans.items():
            if plan.table_name in tables:
                raise TableNameCollisionError(plan.table_name)
            tables[plan.table_name] = cls
            for name, shape in plan.properties:
                for target in _referenced_classes(shape):
                    if target not in self._plans:
                        raise EntityDeclarationError(
                            f"{cls.__name__}.{name} refers to {target.__name__}, "
                            "which is not registered"
                        )

    def get(self, entity_class: type) -> EntityMapping:
        """Look up the mapping of an entity class.

        Raises:
            EntityNotRegisteredError: If the class was never declared.
        """
        try:
            return self._mappings[entity_class]
        except KeyError:
            raise EntityNotRegisteredError(entity_class) from None

    def has(self, entity_class: type) -> bool:
        """Check if an entity class is registered."""
        return entity_class in self._mappings

    @property
    def mappings(self) -> list[EntityMapping]:
        """All entity mappings, in declaration order."""
        return list(self._mappings.values())

    @property
    def entity_classes(self) -> list[type]:
        return list(self._mappings)

    def __len__(self) -> int:
        """Number of registered entities."""
        return len(self._mappings)
