from __future__ import annotations

import dataclasses
import datetime as dt
import logging
from decimal import Decimal
from typing import Dict, List, Mapping, Optional

from ..errors import DefinitionError
from .types import (
    DATE_TYPES,
    NUMERIC_TYPES,
    TEXT_TYPES,
    Association,
    BelongsTo,
    BelongsToMany,
    Column,
    ColumnDescriptor,
    EntitySchema,
    HasMany,
    HasOne,
)
from .validators import rules_for

logger = logging.getLogger(__name__)


def _check_rule_targets(entity: type, name: str, spec: Column) -> None:
    if (spec.min_length is not None or spec.max_length is not None) and spec.type not in TEXT_TYPES:
        raise DefinitionError(f"{entity.__name__}.{name}: length limits need a text column, got {spec.type.value}")
    if (spec.min_value is not None or spec.max_value is not None) and spec.type not in NUMERIC_TYPES | DATE_TYPES:
        raise DefinitionError(
            f"{entity.__name__}.{name}: value limits need a numeric or date column, got {spec.type.value}"
        )
    for bound in (spec.min_value, spec.max_value):
        if bound is None:
            continue
        if spec.type in DATE_TYPES:
            valid = isinstance(bound, dt.date)
        else:
            valid = isinstance(bound, (int, float, Decimal)) and not isinstance(bound, bool)
        if not valid:
            raise DefinitionError(
                f"{entity.__name__}.{name}: value limit {bound!r} does not fit a {spec.type.value} column"
            )


def build_schema(entity: type, table: str, columns: Mapping[str, Column]) -> EntitySchema:
    """Turn column definitions into an immutable :class:`EntitySchema`."""
    if not columns:
        raise DefinitionError(f"No columns defined for {entity.__name__}")

    descriptors: List[ColumnDescriptor] = []
    storage_names: set[str] = set()
    primary_keys: List[ColumnDescriptor] = []
    for name, spec in columns.items():
        if not isinstance(spec, Column):
            raise DefinitionError(f"{entity.__name__}.{name}: expected a Column definition, got {type(spec).__name__}")
        storage = spec.column or name
        if storage in storage_names:
            raise DefinitionError(f"Duplicated column name in {entity.__name__}: {storage}")
        storage_names.add(storage)
        _check_rule_targets(entity, name, spec)

        descriptor = ColumnDescriptor(
            name=name,
            column=storage,
            type=spec.type,
            default=spec.default,
            required=spec.required,
            primary_key=spec.primary_key,
            unique=spec.unique,
            rules=rules_for(spec),
            size=spec.size,
            decimal=spec.decimal,
        )
        descriptors.append(descriptor)
        if spec.primary_key:
            primary_keys.append(descriptor)

    if len(primary_keys) != 1:
        raise DefinitionError(
            f"{entity.__name__} must define exactly one primary key, found {len(primary_keys)}"
            + (f": {', '.join(pk.name for pk in primary_keys)}" if primary_keys else "")
        )

    return EntitySchema(entity=entity, table=table, columns=tuple(descriptors), primary_key=primary_keys[0])


class SchemaRegistry:
    """Entity type -> schema. Written at startup, read-only afterwards."""

    def __init__(self):
        self._schemas: Dict[type, EntitySchema] = {}

    def __contains__(self, entity: object) -> bool:
        return entity in self._schemas

    def register(self, schema: EntitySchema) -> EntitySchema:
        if schema.entity in self._schemas:
            raise DefinitionError(f"Schema for {schema.entity_name} is already defined")
        self._schemas[schema.entity] = schema
        logger.debug("Registered schema %s -> %s", schema.entity_name, schema.table)
        return schema

    def get(self, entity: type) -> Optional[EntitySchema]:
        return self._schemas.get(entity)

    def require(self, entity: type) -> EntitySchema:
        schema = self._schemas.get(entity)
        if schema is None:
            raise DefinitionError(f"Need to define the schema for the class {entity.__name__}")
        return schema

    def add_association(self, owner: type, association: Association) -> EntitySchema:
        schema = self.require(owner)
        target_name = association.target.__name__
        if association.target not in self._schemas:
            raise DefinitionError(
                f"Unresolved association '{association.name}' between {owner.__name__} and {target_name}: "
                f"{target_name} has no schema"
            )
        if schema.association(association.name) is not None or schema.column(association.name) is not None:
            raise DefinitionError(f"{owner.__name__} already defines '{association.name}'")

        if isinstance(association, BelongsTo):
            if schema.column(association.foreign_key) is None:
                raise DefinitionError(
                    f"Foreign key '{association.foreign_key}' of {owner.__name__} -> {target_name} "
                    f"is not a column of {owner.__name__}"
                )
        elif isinstance(association, (HasOne, HasMany)):
            if self._schemas[association.target].column(association.foreign_key) is None:
                raise DefinitionError(
                    f"Foreign key '{association.foreign_key}' of {owner.__name__} -> {target_name} "
                    f"is not a column of {target_name}"
                )
        elif isinstance(association, BelongsToMany):
            if association.through not in self._schemas:
                raise DefinitionError(
                    f"Unresolved junction {association.through.__name__} between {owner.__name__} and {target_name}"
                )
        else:
            raise DefinitionError(f"Unsupported association type: {type(association).__name__}")

        updated = dataclasses.replace(schema, associations=schema.associations + (association,))
        self._schemas[owner] = updated
        logger.debug(
            "Registered %s association %s.%s -> %s",
            association.kind.value,
            owner.__name__,
            association.name,
            target_name,
        )
        return updated

    def reset(self) -> None:
        self._schemas.clear()


registry = SchemaRegistry()

__all__ = ["SchemaRegistry", "registry", "build_schema"]
