from __future__ import annotations

"""Assemble entity queries: labelled selects, association joins and filters.

Every selected column is labelled ``<table label>.<storage column>`` so a
nested connector call returns one slice per table. Populated associations
are joined against the root table; a table that already takes part in the
query is aliased by the association name.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import DefinitionError, QueryCompileError
from ..query.models import (
    CompiledQuery,
    CountOptions,
    FindOneOptions,
    FindOptions,
    JoinCondition,
    JoinSpec,
    OrderColumn,
    Pagination,
    SelectColumn,
    SortOrder,
    TableRef,
    WhereOptions,
)
from ..query.quoting import TABLE_KEY_PREFIX, table_key
from ..query.statements import compile_count, compile_delete, compile_find, compile_find_one, compile_update
from ..query.where import AND, OR
from ..schema.registry import SchemaRegistry
from ..schema.types import Association, BelongsTo, BelongsToMany, EntitySchema, HasMany, HasOne
from .materialize import Level

logger = logging.getLogger(__name__)

PopulateRef = Union[str, Type[Any]]


class EntityFindOptions(BaseModel):
    """Options for entity finds. ``populate`` names associations or target classes."""

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    populate: List[PopulateRef] = Field(default_factory=list)
    order_by: List[OrderColumn] = Field(default_factory=list)
    limit: Optional[Pagination] = None

    @field_validator("populate", mode="before")
    @classmethod
    def _listify(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, (str, type)):
            return [value]
        return value


def coerce_entity_options(value: Union[EntityFindOptions, Mapping[str, Any], None]) -> EntityFindOptions:
    if value is None:
        return EntityFindOptions()
    if isinstance(value, EntityFindOptions):
        return value
    try:
        return EntityFindOptions.model_validate(value)
    except ValidationError as exc:
        raise QueryCompileError(f"Invalid EntityFindOptions: {exc}") from exc


@dataclass
class EntityQuery:
    query: CompiledQuery
    levels: List[Level] = field(default_factory=list)


def _junction_sides(junction: EntitySchema, owner: EntitySchema, target: EntitySchema) -> tuple[BelongsTo, BelongsTo]:
    """Pick the junction's BelongsTo toward the owner and toward the target.

    Each side needs exactly one. A self-referential junction declares two
    toward the same entity: the first is the owner side, the second the
    target side.
    """
    def toward(schema: EntitySchema) -> List[BelongsTo]:
        return [a for a in junction.associations if isinstance(a, BelongsTo) and a.target is schema.entity]

    def fail(side: EntitySchema, found: int, wanted: int) -> DefinitionError:
        return DefinitionError(
            f"Junction {junction.entity_name} of {owner.entity_name} -> {target.entity_name} needs "
            f"{'exactly one' if wanted == 1 else 'two'} BelongsTo association(s) toward {side.entity_name}, "
            f"found {found}"
        )

    owner_links = toward(owner)
    if owner.entity is target.entity:
        if len(owner_links) != 2:
            raise fail(owner, len(owner_links), 2)
        return owner_links[0], owner_links[1]
    target_links = toward(target)
    if len(owner_links) != 1:
        raise fail(owner, len(owner_links), 1)
    if len(target_links) != 1:
        raise fail(target, len(target_links), 1)
    return owner_links[0], target_links[0]


class QueryAssembler:
    def __init__(self, registry: SchemaRegistry, entity: type):
        self.registry = registry
        self.schema = registry.require(entity)
        self.root_label = self.schema.table
        self._labels: List[str] = [self.root_label]

    # --- association resolution ---
    def resolve(self, ref: PopulateRef) -> Association:
        association = self.schema.association(ref)
        if association is None:
            target = ref if isinstance(ref, str) else ref.__name__
            raise DefinitionError(f"Association between {self.schema.entity_name} and {target} is not defined")
        return association

    def _label_for(self, table: str, alias: str) -> str:
        label = alias if table in self._labels else table
        if label in self._labels:
            raise DefinitionError(f"Table label '{label}' is used twice in the query for {self.schema.entity_name}")
        self._labels.append(label)
        return label

    def _join(self, association: Association) -> tuple[List[JoinSpec], str, EntitySchema]:
        owner = self.schema
        target = self.registry.require(association.target)
        root = self.root_label

        if isinstance(association, BelongsToMany):
            junction = self.registry.require(association.through)
            owner_side, target_side = _junction_sides(junction, owner, target)
            through_label = self._label_for(junction.table, f"{association.name}_{junction.table}")
            label = self._label_for(target.table, association.name)
            joins = [
                JoinSpec(
                    table=TableRef(table=junction.table, as_=None if through_label == junction.table else through_label),
                    on=JoinCondition(table=root, column=owner.primary_key.column),
                    with_=JoinCondition(table=through_label, column=junction.storage_column(owner_side.foreign_key)),
                ),
                JoinSpec(
                    table=TableRef(table=target.table, as_=None if label == target.table else label),
                    on=JoinCondition(table=through_label, column=junction.storage_column(target_side.foreign_key)),
                    with_=JoinCondition(table=label, column=target.primary_key.column),
                ),
            ]
            return joins, label, target

        label = self._label_for(target.table, association.name)
        ref = TableRef(table=target.table, as_=None if label == target.table else label)
        if isinstance(association, BelongsTo):
            on = JoinCondition(table=root, column=owner.storage_column(association.foreign_key))
            with_ = JoinCondition(table=label, column=target.primary_key.column)
        elif isinstance(association, (HasOne, HasMany)):
            on = JoinCondition(table=root, column=owner.primary_key.column)
            with_ = JoinCondition(table=label, column=target.storage_column(association.foreign_key))
        else:
            raise DefinitionError(f"Unsupported association type: {type(association).__name__}")
        return [JoinSpec(table=ref, on=on, with_=with_)], label, target

    # --- rendering pieces ---
    @staticmethod
    def _select(schema: EntitySchema, label: str) -> List[SelectColumn]:
        return [SelectColumn(column=c.column, table=label, as_=f"{label}.{c.column}") for c in schema.columns]

    def rewrite_where(self, where: Optional[WhereOptions], qualify: bool = True) -> Optional[WhereOptions]:
        """Map field names to storage columns, table-qualified when ``qualify`` is set."""
        if not where:
            return where
        rewritten: Dict[str, Any] = {}
        for key, value in where.items():
            if key == AND:
                if isinstance(value, Mapping):
                    rewritten[key] = self.rewrite_where(value, qualify)
                elif isinstance(value, (list, tuple)):
                    rewritten[key] = [self.rewrite_where(item, qualify) for item in value]
                else:
                    rewritten[key] = value
            elif key == OR:
                if isinstance(value, (list, tuple)):
                    rewritten[key] = [self.rewrite_where(item, qualify) for item in value]
                else:
                    rewritten[key] = value
            elif key.startswith(TABLE_KEY_PREFIX):
                rewritten[key] = value
            else:
                column = self.schema.storage_column(key)
                rewritten[table_key(self.root_label, column) if qualify else column] = value
        return rewritten

    def _order(self, orders: Sequence[OrderColumn]) -> List[OrderColumn]:
        rendered = []
        for item in orders:
            if item.table is None or item.table == self.root_label:
                rendered.append(
                    OrderColumn(
                        column=self.schema.storage_column(item.column),
                        table=self.root_label,
                        order=item.order,
                    )
                )
            else:
                rendered.append(item)
        return rendered

    def _plan(self, populate: Sequence[PopulateRef]) -> tuple[List[SelectColumn], List[JoinSpec], List[Level]]:
        select = self._select(self.schema, self.root_label)
        joins: List[JoinSpec] = []
        levels = [Level(entity=self.schema.entity, label=self.root_label)]
        for ref in populate:
            association = self.resolve(ref)
            association_joins, label, target = self._join(association)
            joins.extend(association_joins)
            select.extend(self._select(target, label))
            levels.append(Level(entity=target.entity, label=label, association=association, parent=0))
        return select, joins, levels

    def _key_order(self, levels: Sequence[Level]) -> List[OrderColumn]:
        keys = []
        for level in levels:
            schema = self.registry.require(level.entity)
            keys.append(OrderColumn(column=schema.primary_key.column, table=level.label, order=SortOrder.ASC))
        return keys

    # --- statements ---
    def find(self, where: Optional[WhereOptions], options: EntityFindOptions) -> EntityQuery:
        select, joins, levels = self._plan(options.populate)
        order_by = self._order(options.order_by)
        if joins:
            order_by.extend(self._key_order(levels))
        query = compile_find(
            TableRef(table=self.schema.table),
            self.rewrite_where(where),
            FindOptions(select=select, join=joins, order_by=order_by, limit=options.limit),
        )
        query.nested = True
        logger.debug("Assembled find for %s with %d join(s)", self.schema.entity_name, len(joins))
        return EntityQuery(query=query, levels=levels)

    def find_one(self, where: Optional[WhereOptions], options: EntityFindOptions) -> EntityQuery:
        if options.populate:
            return self.find(where, options)
        select, joins, levels = self._plan(())
        query = compile_find_one(
            TableRef(table=self.schema.table),
            self.rewrite_where(where),
            FindOneOptions(select=select, order_by=self._order(options.order_by)),
        )
        query.nested = True
        return EntityQuery(query=query, levels=levels)

    def count(self, where: Optional[WhereOptions], options: EntityFindOptions) -> CompiledQuery:
        _, joins, _ = self._plan(options.populate)
        return compile_count(
            TableRef(table=self.schema.table),
            self.rewrite_where(where),
            CountOptions(join=joins),
        )

    def storage_values(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        return {self.schema.storage_column(key): value for key, value in values.items()}

    def update_all(self, values: Mapping[str, Any], where: Optional[WhereOptions]) -> CompiledQuery:
        return compile_update(self.schema.table, self.storage_values(values), self.rewrite_where(where, qualify=False))

    def remove_all(self, where: Optional[WhereOptions]) -> CompiledQuery:
        return compile_delete(self.schema.table, self.rewrite_where(where, qualify=False))


__all__ = ["EntityFindOptions", "EntityQuery", "QueryAssembler", "coerce_entity_options"]
