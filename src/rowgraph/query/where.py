from __future__ import annotations

"""Compile filter descriptions into a ``WHERE`` clause with ``?`` parameters.

A filter is a mapping from column keys to values::

    {"name": "Luis", "$or": [{"status": 1}, {"status": 2, "isDeleted": False}]}

Plain values compile to equality, ``None`` to ``IS NULL`` and mappings to the
operator they name (``{"$gte": 3}``). ``$and`` takes a filter or a list of
filters, ``$or`` a list of filters; each branch becomes a parenthesized
group. Parameters are collected in the same left-to-right order as the
placeholders they bind.
"""

from collections.abc import Mapping
from typing import Any, Callable, Dict, List

from ..errors import QueryCompileError
from .models import CompiledQuery
from .quoting import placeholders, resolve_key

AND = "$and"
OR = "$or"


def _binary(sql_op: str) -> Callable[[str, Any, List[Any]], str]:
    def render(column: str, value: Any, params: List[Any]) -> str:
        params.append(value)
        return f"{column} {sql_op} ?"

    return render


def _between(negated: bool) -> Callable[[str, Any, List[Any]], str]:
    keyword = "NOT BETWEEN" if negated else "BETWEEN"

    def render(column: str, value: Any, params: List[Any]) -> str:
        if not isinstance(value, Mapping) or "$from" not in value or "$to" not in value:
            raise QueryCompileError(f"{keyword} on {column} expects a mapping with '$from' and '$to'")
        params.extend([value["$from"], value["$to"]])
        return f"({column} {keyword} ? AND ?)"

    return render


def _membership(negated: bool) -> Callable[[str, Any, List[Any]], str]:
    keyword = "NOT IN" if negated else "IN"

    def render(column: str, value: Any, params: List[Any]) -> str:
        if not isinstance(value, (list, tuple)):
            raise QueryCompileError(f"Values for {keyword} on {column} must be a list or tuple")
        if not value:
            return "1=1" if negated else "1=0"
        params.extend(value)
        return f"{column} {keyword} ({placeholders(len(value))})"

    return render


# Checked in this order; the first operator present in the mapping wins.
OPERATORS: Dict[str, Callable[[str, Any, List[Any]], str]] = {
    "$eq": _binary("="),
    "$neq": _binary("<>"),
    "$gt": _binary(">"),
    "$gte": _binary(">="),
    "$lt": _binary("<"),
    "$lte": _binary("<="),
    "$is": _binary("IS"),
    "$not": _binary("IS NOT"),
    "$between": _between(False),
    "$nbetween": _between(True),
    "$in": _membership(False),
    "$nin": _membership(True),
    "$like": _binary("LIKE"),
    "$nlike": _binary("NOT LIKE"),
}


def _compile_condition(column: str, value: Any, params: List[Any]) -> str:
    if value is None:
        return f"{column} IS NULL"
    if isinstance(value, Mapping):
        for op, render in OPERATORS.items():
            if op in value:
                return render(column, value[op], params)
        raise QueryCompileError(f"No supported operator for {column}: {sorted(value)}")
    params.append(value)
    return f"{column} = ?"


def _compile_group(where: Any, params: List[Any]) -> str:
    if where is None:
        return ""
    sub = compile_where(where, nested=True)
    params.extend(sub.params)
    return sub.sql


def compile_where(where: Mapping[str, Any] | None, nested: bool = False) -> CompiledQuery:
    """Compile ``where``; top-level output starts with ``WHERE``, nested output is parenthesized."""
    data = CompiledQuery()
    if not where:
        return data
    if not isinstance(where, Mapping):
        raise QueryCompileError(f"Filter must be a mapping, got {type(where).__name__}")

    sole = len(where) == 1
    parts: List[str] = []
    params: List[Any] = []
    for key, value in where.items():
        if key == AND:
            if value is None:
                raise QueryCompileError("'$and' requires a filter or a list of filters")
            items = value if isinstance(value, (list, tuple)) else [value]
            for item in items:
                sql = _compile_group(item, params)
                if sql:
                    parts.append(sql)
        elif key == OR:
            if not isinstance(value, (list, tuple)):
                raise QueryCompileError("'$or' requires a list of filters")
            branches = [sql for sql in (_compile_group(item, params) for item in value) if sql]
            if not branches:
                continue
            group = " OR ".join(branches)
            parts.append(group if sole else f"({group})")
        else:
            parts.append(_compile_condition(resolve_key(key), value, params))

    if not parts:
        return data
    body = " AND ".join(parts)
    data.sql = f"({body})" if nested else f"WHERE {body}"
    data.params = params
    return data


__all__ = ["compile_where", "OPERATORS", "AND", "OR"]
