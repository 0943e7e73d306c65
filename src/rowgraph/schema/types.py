from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Optional, Tuple, Union


class DataType(str, Enum):
    VARCHAR = "VARCHAR"
    TEXT = "TEXT"
    LONGTEXT = "LONGTEXT"
    TINYINT = "TINYINT"
    SMALLINT = "SMALLINT"
    MEDIUMINT = "MEDIUMINT"
    INT = "INT"
    BIGINT = "BIGINT"
    DECIMAL = "DECIMAL"
    DATE = "DATE"
    DATETIME = "DATETIME"
    BOOLEAN = "BOOLEAN"


TEXT_TYPES = frozenset({DataType.VARCHAR, DataType.TEXT, DataType.LONGTEXT})
INTEGER_TYPES = frozenset({DataType.TINYINT, DataType.SMALLINT, DataType.MEDIUMINT, DataType.INT, DataType.BIGINT})
NUMERIC_TYPES = INTEGER_TYPES | {DataType.DECIMAL}
DATE_TYPES = frozenset({DataType.DATE, DataType.DATETIME})


class DefaultValue(str, Enum):
    NOW = "NOW"
    UUIDV1 = "UUIDV1"
    UUIDV4 = "UUIDV4"


class ValidationReason(str, Enum):
    REQUIRED = "REQUIRED"
    INVALID_TYPE = "INVALID_TYPE"
    INVALID_VALUE = "INVALID_VALUE"
    MIN_VALUE = "MIN_VALUE"
    MAX_VALUE = "MAX_VALUE"
    MIN_LENGTH = "MIN_LENGTH"
    MAX_LENGTH = "MAX_LENGTH"
    UNIQUE = "UNIQUE"


class RuleKind(str, Enum):
    TYPE = "TYPE"
    REQUIRED = "REQUIRED"
    MIN_VALUE = "MIN_VALUE"
    MAX_VALUE = "MAX_VALUE"
    MIN_LENGTH = "MIN_LENGTH"
    MAX_LENGTH = "MAX_LENGTH"
    CHOICES = "CHOICES"
    PATTERN = "PATTERN"


@dataclass(frozen=True)
class ValidationRule:
    kind: RuleKind
    value: Any = None


@dataclass(frozen=True)
class Column:
    """Column definition as written in ``define_schema``.

    ``Column(DataType.VARCHAR)`` is the shorthand form; every other argument
    is optional and only needed for the full form.
    """

    type: DataType
    column: Optional[str] = None
    required: bool = False
    primary_key: bool = False
    unique: bool = False
    default: Any = None
    size: Optional[int] = None
    decimal: Optional[int] = None
    min_value: Optional[Union[int, float, Decimal, dt.date]] = None
    max_value: Optional[Union[int, float, Decimal, dt.date]] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    choices: Optional[Tuple[Any, ...]] = None
    pattern: Optional[str] = None


@dataclass(frozen=True)
class ColumnDescriptor:
    name: str
    column: str
    type: DataType
    default: Any = None
    required: bool = False
    primary_key: bool = False
    unique: bool = False
    rules: Tuple[ValidationRule, ...] = ()
    size: Optional[int] = None
    decimal: Optional[int] = None


class AssociationKind(str, Enum):
    BELONGS_TO = "BELONGS_TO"
    HAS_ONE = "HAS_ONE"
    HAS_MANY = "HAS_MANY"
    BELONGS_TO_MANY = "BELONGS_TO_MANY"


@dataclass(frozen=True)
class BelongsTo:
    """Owner holds ``foreign_key`` pointing at the target's primary key."""

    target: type
    foreign_key: str
    name: str
    kind: ClassVar[AssociationKind] = AssociationKind.BELONGS_TO
    many: ClassVar[bool] = False


@dataclass(frozen=True)
class HasOne:
    """Target holds ``foreign_key`` pointing at the owner's primary key."""

    target: type
    foreign_key: str
    name: str
    kind: ClassVar[AssociationKind] = AssociationKind.HAS_ONE
    many: ClassVar[bool] = False


@dataclass(frozen=True)
class HasMany:
    target: type
    foreign_key: str
    name: str
    kind: ClassVar[AssociationKind] = AssociationKind.HAS_MANY
    many: ClassVar[bool] = True


@dataclass(frozen=True)
class BelongsToMany:
    """Many-to-many through ``through``, whose BelongsTo associations give both keys."""

    target: type
    through: type
    name: str
    kind: ClassVar[AssociationKind] = AssociationKind.BELONGS_TO_MANY
    many: ClassVar[bool] = True


Association = Union[BelongsTo, HasOne, HasMany, BelongsToMany]


@dataclass(frozen=True)
class EntitySchema:
    entity: type
    table: str
    columns: Tuple[ColumnDescriptor, ...]
    primary_key: ColumnDescriptor
    associations: Tuple[Association, ...] = field(default_factory=tuple)

    @property
    def entity_name(self) -> str:
        return self.entity.__name__

    def field_names(self) -> list[str]:
        return [c.name for c in self.columns]

    def column(self, name: str) -> Optional[ColumnDescriptor]:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def storage_column(self, name: str) -> str:
        """Storage column for a field name; unknown names pass through."""
        col = self.column(name)
        return col.column if col is not None else name

    def association(self, ref: Union[str, type]) -> Optional[Association]:
        for assoc in self.associations:
            if isinstance(ref, str) and assoc.name == ref:
                return assoc
            if not isinstance(ref, str) and assoc.target is ref:
                return assoc
        return None


__all__ = [
    "DataType",
    "TEXT_TYPES",
    "INTEGER_TYPES",
    "NUMERIC_TYPES",
    "DATE_TYPES",
    "DefaultValue",
    "ValidationReason",
    "RuleKind",
    "ValidationRule",
    "Column",
    "ColumnDescriptor",
    "AssociationKind",
    "BelongsTo",
    "HasOne",
    "HasMany",
    "BelongsToMany",
    "Association",
    "EntitySchema",
]
