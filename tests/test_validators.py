from __future__ import annotations

import datetime as dt
from decimal import Decimal

import pytest

from rowgraph.schema import Column, DataType, ValidationReason, build_schema, validate_values
from rowgraph.schema.types import RuleKind, ValidationRule
from rowgraph.schema.validators import check_rule, matches_type, validate_column


class Account:
    pass


SCHEMA = build_schema(
    Account,
    "accounts",
    {
        "id": Column(DataType.INT, primary_key=True),
        "handle": Column(DataType.VARCHAR, required=True, min_length=3, max_length=8, pattern=r"[a-z]+"),
        "age": Column(DataType.TINYINT, min_value=18, max_value=120),
        "plan": Column(DataType.VARCHAR, choices=("free", "pro")),
        "balance": Column(DataType.DECIMAL),
        "born": Column(DataType.DATE),
        "verified": Column(DataType.BOOLEAN),
    },
)


@pytest.mark.parametrize(
    "data_type, value, ok",
    [
        (DataType.VARCHAR, "x", True),
        (DataType.TEXT, 3, False),
        (DataType.INT, 3, True),
        (DataType.INT, True, False),
        (DataType.INT, 3.5, False),
        (DataType.DECIMAL, Decimal("1.50"), True),
        (DataType.DECIMAL, 2.5, True),
        (DataType.DATE, dt.date(2024, 1, 1), True),
        (DataType.DATETIME, "2024-01-01", False),
        (DataType.BOOLEAN, False, True),
        (DataType.BOOLEAN, 1, True),
        (DataType.BOOLEAN, 2, False),
    ],
)
def test_matches_type(data_type, value, ok):
    assert matches_type(data_type, value) is ok


def test_valid_values_produce_no_errors():
    values = {
        "id": 1,
        "handle": "ann",
        "age": 30,
        "plan": "pro",
        "balance": Decimal("10.00"),
        "born": dt.date(1990, 5, 1),
        "verified": True,
    }
    assert validate_values(SCHEMA, values) == {}


def test_each_failing_column_reports_its_first_reason():
    errors = validate_values(
        SCHEMA,
        {"id": None, "handle": "ab", "age": 12, "plan": "gold", "born": "yesterday", "verified": 5},
    )
    assert errors == {
        "id": ValidationReason.REQUIRED,
        "handle": ValidationReason.MIN_LENGTH,
        "age": ValidationReason.MIN_VALUE,
        "plan": ValidationReason.INVALID_VALUE,
        "born": ValidationReason.INVALID_TYPE,
        "verified": ValidationReason.INVALID_TYPE,
    }


def test_optional_fields_skip_required_only():
    errors = validate_values(SCHEMA, {"handle": "toolonghandle"}, optional=("id",))
    assert errors == {"handle": ValidationReason.MAX_LENGTH}


def test_pattern_and_max_value():
    assert validate_column(SCHEMA.column("handle"), "Ann") == ValidationReason.INVALID_VALUE
    assert validate_column(SCHEMA.column("age"), 121) == ValidationReason.MAX_VALUE
    assert validate_column(SCHEMA.column("age"), None) is None


def test_check_rule_ignores_missing_values_except_required():
    assert check_rule(ValidationRule(RuleKind.MIN_LENGTH, 3), None) is None
    assert check_rule(ValidationRule(RuleKind.REQUIRED), None) == ValidationReason.REQUIRED
    assert check_rule(ValidationRule(RuleKind.REQUIRED), 0) is None


def test_date_bounds_compare_dates_and_datetimes():
    schema = build_schema(
        Account,
        "accounts",
        {
            "id": Column(DataType.INT, primary_key=True),
            "born": Column(DataType.DATE, min_value=dt.date(1900, 1, 1)),
            "seen": Column(DataType.DATETIME, max_value=dt.datetime(2030, 1, 1, 12, 0)),
        },
    )
    born, seen = schema.column("born"), schema.column("seen")
    assert validate_column(born, dt.date(1899, 12, 31)) == ValidationReason.MIN_VALUE
    assert validate_column(born, dt.datetime(1900, 1, 1, 8, 30)) is None
    assert validate_column(seen, dt.date(2030, 1, 1)) is None
    assert validate_column(seen, dt.datetime(2030, 1, 1, 12, 1)) == ValidationReason.MAX_VALUE
