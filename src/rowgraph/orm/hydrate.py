from __future__ import annotations

"""Turn one table's row slice into field values of an entity.

Values are looked up by field name, or by storage column name when reading
rows straight from the database. Absent values fall back to the column
default. Nothing here raises on missing or unknown keys.
"""

import datetime as dt
import uuid
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Type, TypeVar

from ..schema.types import ColumnDescriptor, DataType, DefaultValue, EntitySchema
from .state import EntityState

T = TypeVar("T")


def resolve_default(column: ColumnDescriptor) -> Any:
    default = column.default
    if default is None:
        return None
    if isinstance(default, DefaultValue):
        if default == DefaultValue.NOW:
            now = dt.datetime.now()
            return now.date() if column.type == DataType.DATE else now
        if default == DefaultValue.UUIDV1:
            return str(uuid.uuid1())
        return str(uuid.uuid4())
    if callable(default):
        return default()
    return default


def coerce_date(data_type: DataType, value: Any) -> Any:
    """Wrap datetimes, ISO strings and epoch seconds; other values pass through."""
    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, dt.date):
        if data_type == DataType.DATE:
            return value
        parsed = dt.datetime.combine(value, dt.time())
    elif isinstance(value, str):
        try:
            parsed = dt.datetime.fromisoformat(value.strip())
        except ValueError:
            return value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        parsed = dt.datetime.fromtimestamp(value)
    else:
        return value
    return parsed.date() if data_type == DataType.DATE else parsed


def coerce_value(column: ColumnDescriptor, value: Any, from_storage: bool = False) -> Any:
    if column.type in (DataType.DATE, DataType.DATETIME):
        return coerce_date(column.type, value)
    if column.type == DataType.BOOLEAN:
        if not isinstance(value, bool) and value in (0, 1):
            return bool(value)
        return value
    if column.type == DataType.DECIMAL and from_storage and not isinstance(value, Decimal):
        try:
            return Decimal(str(value))
        except InvalidOperation:
            return value
    return value


def hydrate_values(schema: EntitySchema, raw: Mapping[str, Any], from_storage: bool = False) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for column in schema.columns:
        key = column.column if from_storage else column.name
        value = raw.get(key)
        if value is None:
            values[column.name] = resolve_default(column)
        else:
            values[column.name] = coerce_value(column, value, from_storage)
    return values


def hydrate(entity_cls: Type[T], raw: Mapping[str, Any], from_storage: bool = False) -> T:
    """Build an instance of ``entity_cls`` without running its constructor."""
    schema: EntitySchema = entity_cls.schema()  # type: ignore[attr-defined]
    instance = entity_cls.__new__(entity_cls)
    state = EntityState.PERSISTED if from_storage else EntityState.UNSAVED
    object.__setattr__(instance, "_state", state)
    for name, value in hydrate_values(schema, raw, from_storage).items():
        object.__setattr__(instance, name, value)
    return instance


__all__ = ["resolve_default", "coerce_date", "coerce_value", "hydrate_values", "hydrate"]
