from __future__ import annotations

"""Data-driven column validation.

Each column carries an ordered tuple of :class:`ValidationRule` values built
once by :func:`rules_for`. :func:`check_rule` is the single dispatcher that
evaluates a rule against a value; the first failing rule of a column decides
its :class:`ValidationReason`.
"""

import datetime as dt
import re
from decimal import Decimal
from typing import Any, Collection, Dict, List, Mapping, Optional, Tuple

from .types import (
    DATE_TYPES,
    INTEGER_TYPES,
    TEXT_TYPES,
    Column,
    ColumnDescriptor,
    DataType,
    EntitySchema,
    RuleKind,
    ValidationReason,
    ValidationRule,
)


def rules_for(spec: Column) -> Tuple[ValidationRule, ...]:
    rules: List[ValidationRule] = [ValidationRule(RuleKind.TYPE, spec.type)]
    if spec.required or spec.primary_key:
        rules.append(ValidationRule(RuleKind.REQUIRED))
    if spec.min_value is not None:
        rules.append(ValidationRule(RuleKind.MIN_VALUE, spec.min_value))
    if spec.max_value is not None:
        rules.append(ValidationRule(RuleKind.MAX_VALUE, spec.max_value))
    if spec.min_length is not None:
        rules.append(ValidationRule(RuleKind.MIN_LENGTH, spec.min_length))
    if spec.max_length is not None:
        rules.append(ValidationRule(RuleKind.MAX_LENGTH, spec.max_length))
    if spec.choices is not None:
        rules.append(ValidationRule(RuleKind.CHOICES, tuple(spec.choices)))
    if spec.pattern is not None:
        rules.append(ValidationRule(RuleKind.PATTERN, spec.pattern))
    return tuple(rules)


def matches_type(data_type: DataType, value: Any) -> bool:
    if data_type in TEXT_TYPES:
        return isinstance(value, str)
    if isinstance(value, bool):
        return data_type == DataType.BOOLEAN
    if data_type in INTEGER_TYPES:
        return isinstance(value, int)
    if data_type == DataType.DECIMAL:
        return isinstance(value, (int, float, Decimal))
    if data_type in DATE_TYPES:
        return isinstance(value, dt.date)
    if data_type == DataType.BOOLEAN:
        return value in (0, 1)
    return False


def _comparable(value: Any, bound: Any) -> Tuple[Any, Any]:
    # datetime and date do not order against each other
    if isinstance(value, dt.datetime) and not isinstance(bound, dt.datetime) and isinstance(bound, dt.date):
        return value.date(), bound
    if isinstance(bound, dt.datetime) and not isinstance(value, dt.datetime) and isinstance(value, dt.date):
        return value, bound.date()
    return value, bound


def check_rule(rule: ValidationRule, value: Any) -> Optional[ValidationReason]:
    if rule.kind == RuleKind.REQUIRED:
        return ValidationReason.REQUIRED if value is None else None
    if value is None:
        return None
    if rule.kind == RuleKind.TYPE:
        return None if matches_type(rule.value, value) else ValidationReason.INVALID_TYPE
    if rule.kind == RuleKind.MIN_VALUE:
        value, bound = _comparable(value, rule.value)
        return ValidationReason.MIN_VALUE if value < bound else None
    if rule.kind == RuleKind.MAX_VALUE:
        value, bound = _comparable(value, rule.value)
        return ValidationReason.MAX_VALUE if value > bound else None
    if rule.kind == RuleKind.MIN_LENGTH:
        return ValidationReason.MIN_LENGTH if len(value) < rule.value else None
    if rule.kind == RuleKind.MAX_LENGTH:
        return ValidationReason.MAX_LENGTH if len(value) > rule.value else None
    if rule.kind == RuleKind.CHOICES:
        return ValidationReason.INVALID_VALUE if value not in rule.value else None
    if rule.kind == RuleKind.PATTERN:
        return ValidationReason.INVALID_VALUE if re.fullmatch(rule.value, str(value)) is None else None
    raise ValueError(f"Unsupported rule kind: {rule.kind}")


def validate_column(column: ColumnDescriptor, value: Any) -> Optional[ValidationReason]:
    for rule in column.rules:
        reason = check_rule(rule, value)
        if reason is not None:
            return reason
    return None


def validate_values(
    schema: EntitySchema,
    values: Mapping[str, Any],
    *,
    optional: Collection[str] = (),
) -> Dict[str, ValidationReason]:
    """Validate field values; fields in ``optional`` may be missing."""
    errors: Dict[str, ValidationReason] = {}
    for column in schema.columns:
        reason = validate_column(column, values.get(column.name))
        if reason == ValidationReason.REQUIRED and column.name in optional:
            continue
        if reason is not None:
            errors[column.name] = reason
    return errors


__all__ = ["rules_for", "matches_type", "check_rule", "validate_column", "validate_values"]
