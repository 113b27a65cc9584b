"""Shape to Mapping dispatch."""

from __future__ import annotations

from row_persist.core.exceptions import EntityDeclarationError
from row_persist.mapping.base import Location, Mapping, MappingContext
from row_persist.mapping.composite import EmbeddedMapping, TupleMapping
from row_persist.mapping.container import (
    MapMapping,
    OptionMapping,
    OptionTableMapping,
    SeqMapping,
    SetMapping,
)
from row_persist.mapping.root import ReferenceMapping
from row_persist.mapping.shape import (
    EmbeddedShape,
    MapShape,
    OptionShape,
    RefShape,
    SeqShape,
    SetShape,
    Shape,
    TupleShape,
    ValueShape,
    describe,
)
from row_persist.mapping.value import ValueMapping


def _is_inline(shape: Shape) -> bool:
    """True when a shape lives entirely in its container's row.

    Decided on the shape alone: referenced entities may not be
    registered yet while the tree is being built.
    """
    if isinstance(shape, (ValueShape, RefShape)):
        return True
    if isinstance(shape, EmbeddedShape):
        return bool(shape.fields) and all(_is_inline(s) for _, s in shape.fields)
    if isinstance(shape, TupleShape):
        return bool(shape.items) and all(_is_inline(s) for s in shape.items)
    if isinstance(shape, OptionShape):
        return _is_inline(shape.element)
    return False


def build_mapping(shape: Shape, location: Location, context: MappingContext) -> Mapping:
    """Build the mapping node for *shape* at *location*."""
    if isinstance(shape, ValueShape):
        return ValueMapping(shape, location, context)
    if isinstance(shape, RefShape):
        return ReferenceMapping(shape, location, context)
    if isinstance(shape, EmbeddedShape):
        return EmbeddedMapping(shape, location, context)
    if isinstance(shape, TupleShape):
        return TupleMapping(shape, location, context)
    if isinstance(shape, SeqShape):
        return SeqMapping(shape, location, context)
    if isinstance(shape, SetShape):
        return SetMapping(shape, location, context)
    if isinstance(shape, MapShape):
        return MapMapping(shape, location, context)
    if isinstance(shape, OptionShape):
        # option(option(x)) needs a table to tell None from Some(None)
        if not isinstance(shape.element, OptionShape) and _is_inline(shape.element):
            inner = build_mapping(shape.element, location, context)
            return OptionMapping(inner, location, context)
        return OptionTableMapping(shape, location, context)
    raise EntityDeclarationError(f"Unsupported property shape {describe(shape)}")
