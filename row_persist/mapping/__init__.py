"""Mapping layer - entity declarations and the recursive mapping tree."""

from __future__ import annotations

from row_persist.mapping.builder import EntityBuilder, entity
from row_persist.mapping.root import EntityMapping, ReferenceMapping
from row_persist.mapping.persisted import Persisted
from row_persist.mapping.plan import EntityPlan, EntitySettings
from row_persist.mapping.shape import (
    bigint,
    boolean,
    date,
    decimal,
    double,
    embedded,
    enum_of,
    float_,
    integer,
    map_of,
    option,
    ref,
    seq,
    set_of,
    smallint,
    text,
    time,
    timestamp,
    tinyint,
    tuple_of,
    varchar,
)

__all__ = [
    "entity",
    "EntityBuilder",
    "EntityPlan",
    "EntitySettings",
    "EntityMapping",
    "ReferenceMapping",
    "Persisted",
    # shapes
    "integer",
    "bigint",
    "smallint",
    "tinyint",
    "float_",
    "double",
    "decimal",
    "boolean",
    "varchar",
    "text",
    "date",
    "time",
    "timestamp",
    "enum_of",
    "ref",
    "embedded",
    "tuple_of",
    "seq",
    "set_of",
    "map_of",
    "option",
]
