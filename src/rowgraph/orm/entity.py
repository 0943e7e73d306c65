from __future__ import annotations

"""Entity base class: schema definition, finds and row mutations.

Subclasses call :meth:`Entity.define_schema` once, then declare their
associations::

    class User(Entity):
        pass

    User.define_schema("users", {
        "id": Column(DataType.INT, primary_key=True),
        "name": Column(DataType.VARCHAR, required=True, max_length=50),
    })
    Post.belongs_to(User, "user_id")
    User.has_many(Post, "user_id")
"""

import logging
from typing import TYPE_CHECKING, Any, Collection, Dict, List, Mapping, Optional, Type, TypeVar, Union

from ..errors import CoreError, NotFoundError, ValidationError
from ..query.models import CompiledQuery, WhereOptions
from ..query.statements import COUNT_LABEL, compile_delete, compile_find_one, compile_insert, compile_update
from ..schema.registry import SchemaRegistry, build_schema, registry as default_registry
from ..schema.types import (
    Association,
    BelongsTo,
    BelongsToMany,
    Column,
    EntitySchema,
    HasMany,
    HasOne,
    ValidationReason,
)
from ..schema.validators import validate_values
from .assembler import EntityFindOptions, QueryAssembler, coerce_entity_options
from .hydrate import hydrate_values
from .materialize import materialize, materialize_one
from .state import EntityState

if TYPE_CHECKING:
    from ..connection import Connector

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Entity")
FindOptionsLike = Union[EntityFindOptions, Mapping[str, Any], None]


def _default_association_name(target: type, many: bool) -> str:
    name = target.__name__[:1].lower() + target.__name__[1:]
    return f"{name}s" if many else name


class Entity:
    _schema_registry: SchemaRegistry = default_registry

    def __init__(self, data: Optional[Mapping[str, Any]] = None, **values: Any):
        merged = {**(data or {}), **values}
        object.__setattr__(self, "_state", EntityState.UNSAVED)
        for name, value in hydrate_values(self.schema(), merged).items():
            object.__setattr__(self, name, value)

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_state", None) == EntityState.DELETED and not name.startswith("_"):
            raise CoreError(f"{type(self).__name__} was removed and can no longer be modified")
        object.__setattr__(self, name, value)

    def __repr__(self) -> str:
        fields = ", ".join(f"{name}={getattr(self, name, None)!r}" for name in self.schema().field_names())
        return f"{type(self).__name__}({fields})"

    # --- schema ---
    @classmethod
    def define_schema(
        cls,
        table: str,
        columns: Mapping[str, Column],
        registry: Optional[SchemaRegistry] = None,
    ) -> EntitySchema:
        target = registry or cls._schema_registry
        schema = target.register(build_schema(cls, table, columns))
        cls._schema_registry = target
        return schema

    @classmethod
    def schema(cls) -> EntitySchema:
        return cls._schema_registry.require(cls)

    @classmethod
    def _associate(cls, association: Association) -> Association:
        cls._schema_registry.add_association(cls, association)
        return association

    @classmethod
    def belongs_to(cls, target: type, foreign_key: str, name: Optional[str] = None) -> Association:
        return cls._associate(BelongsTo(target, foreign_key, name or _default_association_name(target, False)))

    @classmethod
    def has_one(cls, target: type, foreign_key: str, name: Optional[str] = None) -> Association:
        return cls._associate(HasOne(target, foreign_key, name or _default_association_name(target, False)))

    @classmethod
    def has_many(cls, target: type, foreign_key: str, name: Optional[str] = None) -> Association:
        return cls._associate(HasMany(target, foreign_key, name or _default_association_name(target, True)))

    @classmethod
    def belongs_to_many(cls, target: type, through: type, name: Optional[str] = None) -> Association:
        return cls._associate(BelongsToMany(target, through, name or _default_association_name(target, True)))

    @classmethod
    def _assembler(cls) -> QueryAssembler:
        return QueryAssembler(cls._schema_registry, cls)

    # --- finds ---
    @classmethod
    def find(
        cls: Type[E], db: "Connector", where: Optional[WhereOptions] = None, options: FindOptionsLike = None
    ) -> List[E]:
        built = cls._assembler().find(where, coerce_entity_options(options))
        return materialize(db.run(built.query).rows, built.levels)

    @classmethod
    def find_one(
        cls: Type[E], db: "Connector", where: Optional[WhereOptions] = None, options: FindOptionsLike = None
    ) -> Optional[E]:
        built = cls._assembler().find_one(where, coerce_entity_options(options))
        return materialize_one(db.run(built.query).rows, built.levels)

    @classmethod
    def find_one_or_fail(
        cls: Type[E], db: "Connector", where: Optional[WhereOptions] = None, options: FindOptionsLike = None
    ) -> E:
        found = cls.find_one(db, where, options)
        if found is None:
            raise NotFoundError(cls.__name__, cls.schema().primary_key.name, where)
        return found

    @classmethod
    def count(cls, db: "Connector", where: Optional[WhereOptions] = None, options: FindOptionsLike = None) -> int:
        query = cls._assembler().count(where, coerce_entity_options(options))
        rows = db.run(query).rows
        return int(rows[0][COUNT_LABEL]) if rows else 0

    @classmethod
    def update_all(cls, db: "Connector", values: Mapping[str, Any], where: Optional[WhereOptions] = None) -> int:
        return db.run(cls._assembler().update_all(values, where)).affected_rows

    @classmethod
    def remove_all(cls, db: "Connector", where: Optional[WhereOptions] = None) -> int:
        return db.run(cls._assembler().remove_all(where)).affected_rows

    # --- instance state ---
    @property
    def state(self) -> EntityState:
        return self._state

    @property
    def primary_key(self) -> Any:
        return getattr(self, self.schema().primary_key.name, None)

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name, None) for name in self.schema().field_names()}

    def _storage_row(self, include_pk: bool) -> Dict[str, Any]:
        schema = self.schema()
        row: Dict[str, Any] = {}
        for column in schema.columns:
            if column.primary_key and not include_pk:
                continue
            row[column.column] = getattr(self, column.name, None)
        return row

    def _ensure_alive(self) -> None:
        if self._state == EntityState.DELETED:
            raise CoreError(f"{type(self).__name__} was removed and can no longer be modified")

    def _validate(self, *, primary_key_optional: bool) -> Dict[str, ValidationReason]:
        schema = self.schema()
        optional = (schema.primary_key.name,) if primary_key_optional else ()
        return validate_values(schema, self.to_dict(), optional=optional)

    def _check_unique(self, db: "Connector", skip: Collection[str] = ()) -> Dict[str, ValidationReason]:
        schema = self.schema()
        errors: Dict[str, ValidationReason] = {}
        pk = self.primary_key
        for column in schema.columns:
            if not column.unique or column.primary_key or column.name in skip:
                continue
            value = getattr(self, column.name, None)
            if value is None:
                continue
            where: Dict[str, Any] = {column.column: value}
            if pk is not None:
                where[schema.primary_key.column] = {"$neq": pk}
            if db.run(compile_find_one(schema.table, where)).rows:
                errors[column.name] = ValidationReason.UNIQUE
        return errors

    def _validate_against(self, db: "Connector", primary_key_optional: bool) -> Dict[str, ValidationReason]:
        """Local column rules plus unique lookups, as one field -> reason mapping."""
        errors = self._validate(primary_key_optional=primary_key_optional)
        errors.update(self._check_unique(db, skip=errors))
        return errors

    def _raise_for(self, errors: Mapping[str, ValidationReason]) -> None:
        if errors:
            raise ValidationError(f"Validation failed for {type(self).__name__}", errors)

    # --- compile-only mutations ---
    def insert_query(self) -> CompiledQuery:
        self._ensure_alive()
        self._raise_for(self._validate(primary_key_optional=True))
        return compile_insert(self.schema().table, self._storage_row(include_pk=self.primary_key is not None))

    def update_query(self) -> CompiledQuery:
        self._ensure_alive()
        self._raise_for(self._validate(primary_key_optional=False))
        schema = self.schema()
        return compile_update(
            schema.table,
            self._storage_row(include_pk=False),
            {schema.primary_key.column: self.primary_key},
        )

    def remove_query(self) -> CompiledQuery:
        self._ensure_alive()
        schema = self.schema()
        if self.primary_key is None:
            raise ValidationError(
                f"Cannot remove {type(self).__name__} without a primary key",
                {schema.primary_key.name: ValidationReason.REQUIRED},
            )
        return compile_delete(schema.table, {schema.primary_key.column: self.primary_key})

    # --- mutations ---
    def insert(self: E, db: "Connector") -> E:
        """Validate, insert and write back the generated primary key.

        Column rules and unique lookups are reported together in one
        :class:`ValidationError`; nothing is written when either fails.
        """
        self._ensure_alive()
        self._raise_for(self._validate_against(db, primary_key_optional=True))
        query = self.insert_query()
        result = db.run(query)
        if self.primary_key is None:
            object.__setattr__(self, self.schema().primary_key.name, result.last_insert_id)
        object.__setattr__(self, "_state", EntityState.PERSISTED)
        logger.debug("Inserted %s with primary key %r", type(self).__name__, self.primary_key)
        return self

    def update(self: E, db: "Connector") -> E:
        self._ensure_alive()
        self._raise_for(self._validate_against(db, primary_key_optional=False))
        query = self.update_query()
        db.run(query)
        object.__setattr__(self, "_state", EntityState.PERSISTED)
        return self

    def remove(self: E, db: "Connector") -> E:
        query = self.remove_query()
        db.run(query)
        object.__setattr__(self, "_state", EntityState.DELETED)
        logger.debug("Removed %s with primary key %r", type(self).__name__, self.primary_key)
        return self


__all__ = ["Entity", "EntityState"]
