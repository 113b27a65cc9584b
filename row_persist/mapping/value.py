"""Scalar property mapping."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from row_persist.ddl.schema import Column, ColumnType
from row_persist.mapping.base import Location, Mapping, MappingContext
from row_persist.mapping.shape import ValueShape

if TYPE_CHECKING:
    from row_persist.core.session import Session

_INTEGER_TYPES = frozenset(
    {ColumnType.INTEGER, ColumnType.BIGINT, ColumnType.SMALLINT, ColumnType.TINYINT}
)


def _to_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        return date.fromisoformat(value)
    return value


def _to_time(value: Any) -> time:
    # MySQL hands TIME columns back as a timedelta since midnight
    if isinstance(value, timedelta):
        return (datetime.min + value).time()
    if isinstance(value, str):
        return time.fromisoformat(value)
    return value


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return value


class ValueMapping(Mapping):
    """One scalar in one column named after the property path."""

    def __init__(self, shape: ValueShape, location: Location, context: MappingContext) -> None:
        super().__init__(location, context)
        self.shape = shape
        enum_values: tuple[str, ...] = ()
        if shape.enum_class is not None:
            enum_values = tuple(member.name for member in shape.enum_class)
        self.column = Column(location.path, shape.column_type, enum_values=enum_values)

    def columns_for_container(self) -> tuple[Column, ...]:
        return (self.column,)

    def values_for_container_row(self, value: Any) -> list[tuple[str, Any]]:
        return [(self.column.name, self.to_store(value))]

    def value_from_container_row(self, row: dict[str, Any], session: Session) -> Any:
        return self.from_store(row[self.column.name])

    def to_store(self, value: Any) -> Any:
        if value is None:
            return None
        column_type = self.shape.column_type
        if column_type is ColumnType.BOOLEAN:
            return 1 if value else 0
        if column_type is ColumnType.ENUM:
            return value.name
        return value

    def from_store(self, value: Any) -> Any:
        if value is None:
            return None
        column_type = self.shape.column_type
        if column_type is ColumnType.BOOLEAN:
            return bool(value)
        if column_type is ColumnType.ENUM:
            return self.shape.enum_class[value]  # type: ignore[index]
        if column_type in _INTEGER_TYPES:
            return int(value)
        if column_type in (ColumnType.FLOAT, ColumnType.DOUBLE):
            return float(value)
        if column_type is ColumnType.DECIMAL:
            return value if isinstance(value, Decimal) else Decimal(str(value))
        if column_type is ColumnType.DATE:
            return _to_date(value)
        if column_type is ColumnType.TIME:
            return _to_time(value)
        if column_type is ColumnType.TIMESTAMP:
            return _to_datetime(value)
        return value
