"""Entity declaration DSL builder.

Provides a fluent builder for declaring how an entity class is stored.
"""

from __future__ import annotations

import dataclasses
import inspect
import re

from row_persist.core.exceptions import EntityDeclarationError
from row_persist.mapping.plan import EntityPlan, EntitySettings
from row_persist.mapping.shape import (
    EmbeddedShape,
    MapShape,
    OptionShape,
    SeqShape,
    SetShape,
    Shape,
    TupleShape,
    ValueShape,
)


def _get_field_names(cls: type) -> list[str] | None:
    """Extract constructor field names from a class (dataclass, Pydantic, or plain).

    Returns None when the constructor accepts arbitrary keywords.
    """
    # Pydantic model
    if hasattr(cls, "model_fields"):
        return list(cls.model_fields.keys())

    # Dataclass
    if dataclasses.is_dataclass(cls):
        return [f.name for f in dataclasses.fields(cls) if f.init]

    # Plain class - use __init__ parameters
    try:
        sig = inspect.signature(cls.__init__)  # type: ignore[misc]
    except (ValueError, TypeError):
        return None
    names = []
    for name, param in sig.parameters.items():
        if param.kind is inspect.Parameter.VAR_KEYWORD:
            return None
        if name != "self" and param.kind is not inspect.Parameter.VAR_POSITIONAL:
            names.append(name)
    return names


def table_name_for(cls: type) -> str:
    """Derive a table name from a class name: ``ArtistGenre`` -> ``artist_genre``."""
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", cls.__name__)
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name).lower()


def _check_fields(cls: type, names: list[str]) -> None:
    accepted = _get_field_names(cls)
    if accepted is None:
        return
    unknown = [n for n in names if n not in accepted]
    if unknown:
        raise EntityDeclarationError(
            f"{cls.__name__} has no constructor field(s) {unknown}"
        )


def _check_name(owner: str, name: str) -> None:
    # "$" separates path segments in derived column and table names
    if "$" in name:
        raise EntityDeclarationError(f"{owner}: property names may not contain '$'")


def _check_shape(owner: str, shape: object) -> None:
    """Recursively verify a shape is well formed."""
    if not isinstance(shape, Shape):
        raise EntityDeclarationError(f"{owner}: {shape!r} is not a property shape")
    if isinstance(shape, ValueShape):
        if shape.enum_class is not None and not list(shape.enum_class):
            raise EntityDeclarationError(f"{owner}: enum {shape.enum_class.__name__} is empty")
    elif isinstance(shape, EmbeddedShape):
        if not shape.fields:
            raise EntityDeclarationError(f"{owner}: embedded value declares no fields")
        _check_fields(shape.value_class, [n for n, _ in shape.fields])
        for name, field_shape in shape.fields:
            _check_name(f"{owner}.{name}", name)
            _check_shape(f"{owner}.{name}", field_shape)
    elif isinstance(shape, TupleShape):
        if not shape.items:
            raise EntityDeclarationError(f"{owner}: empty tuple")
        for n, item in enumerate(shape.items):
            _check_shape(f"{owner}[{n}]", item)
    elif isinstance(shape, (SeqShape, SetShape, OptionShape)):
        _check_shape(f"{owner}[]", shape.element)
    elif isinstance(shape, MapShape):
        _check_shape(f"{owner}{{key}}", shape.key)
        _check_shape(f"{owner}{{value}}", shape.value)


def entity(entity_class: type, table: str | None = None) -> EntityBuilder:
    """Entry point for the entity declaration DSL.

    Args:
        entity_class: The class whose instances are persisted.
        table: Main table name. Defaults to the snake_cased class name.

    Returns:
        A builder for chaining property declarations.
    """
    return EntityBuilder(entity_class, table or table_name_for(entity_class))


class EntityBuilder:
    """Fluent builder for entity declarations."""

    def __init__(self, entity_class: type, table_name: str) -> None:
        self._entity_class = entity_class
        self._table_name = table_name
        self._properties: dict[str, Shape] = {}
        self._unique_keys: list[tuple[str, ...]] = []
        self._indexes: list[tuple[str, ...]] = []

    def field(self, name: str, shape: Shape) -> EntityBuilder:
        """Declare a persisted property."""
        if name in self._properties:
            raise EntityDeclarationError(
                f"{self._entity_class.__name__}.{name} is declared twice"
            )
        self._properties[name] = shape
        return self

    def unique(self, *names: str) -> EntityBuilder:
        """Declare a unique key over one or more properties."""
        self._unique_keys.append(tuple(names))
        return self

    def index(self, *names: str) -> EntityBuilder:
        """Declare an index over one or more properties."""
        self._indexes.append(tuple(names))
        return self

    def build(self) -> EntityPlan:
        """Compile and validate the declaration into an EntityPlan."""
        cls_name = self._entity_class.__name__
        if "id" in self._properties:
            raise EntityDeclarationError(f"{cls_name}: 'id' is reserved for the identity column")
        if "$" in self._table_name:
            raise EntityDeclarationError(f"{cls_name}: table name may not contain '$'")

        _check_fields(self._entity_class, list(self._properties))
        for name, shape in self._properties.items():
            _check_name(f"{cls_name}.{name}", name)
            _check_shape(f"{cls_name}.{name}", shape)

        for kind, keys in (("unique key", self._unique_keys), ("index", self._indexes)):
            for key in keys:
                if not key:
                    raise EntityDeclarationError(f"{cls_name}: empty {kind}")
                unknown = [n for n in key if n not in self._properties]
                if unknown:
                    raise EntityDeclarationError(
                        f"{cls_name}: {kind} refers to undeclared properties {unknown}"
                    )

        return EntityPlan(
            entity_class=self._entity_class,
            table_name=self._table_name,
            properties=tuple(self._properties.items()),
            settings=EntitySettings(
                unique_keys=tuple(self._unique_keys),
                indexes=tuple(self._indexes),
            ),
        )
