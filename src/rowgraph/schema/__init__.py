"""Entity schemas: column and association descriptors plus the registry."""

from .registry import SchemaRegistry, build_schema, registry
from .types import (
    Association,
    AssociationKind,
    BelongsTo,
    BelongsToMany,
    Column,
    ColumnDescriptor,
    DataType,
    DefaultValue,
    EntitySchema,
    HasMany,
    HasOne,
    RuleKind,
    ValidationReason,
    ValidationRule,
)
from .validators import check_rule, validate_column, validate_values

__all__ = [
    "SchemaRegistry",
    "build_schema",
    "registry",
    "Association",
    "AssociationKind",
    "BelongsTo",
    "BelongsToMany",
    "Column",
    "ColumnDescriptor",
    "DataType",
    "DefaultValue",
    "EntitySchema",
    "HasMany",
    "HasOne",
    "RuleKind",
    "ValidationReason",
    "ValidationRule",
    "check_rule",
    "validate_column",
    "validate_values",
]
