from __future__ import annotations

"""Renderers for the SELECT, JOIN, GROUP BY, ORDER BY and LIMIT clauses."""

from typing import Any, Mapping, Optional, Sequence, Union

from .models import (
    CompiledQuery,
    GroupColumn,
    JoinCondition,
    JoinSpec,
    OrderColumn,
    SelectColumn,
    TableRef,
)
from .quoting import column_ref, quote_ident


def _as(alias: Optional[str]) -> str:
    return f" AS {quote_ident(alias)}" if alias else ""


def render_table(table: Union[str, TableRef]) -> str:
    if isinstance(table, str):
        return quote_ident(table)
    return f"{quote_ident(table.table)}{_as(table.as_)}"


def compile_select(columns: Optional[Sequence[Union[str, SelectColumn]]] = None) -> CompiledQuery:
    if not columns:
        return CompiledQuery(sql="SELECT *")
    rendered = []
    for column in columns:
        if isinstance(column, str):
            rendered.append(column_ref(column))
            continue
        ref = column_ref(column.column, column.table)
        if column.operator is not None:
            ref = f"{column.operator.value}({ref})"
        rendered.append(f"{ref}{_as(column.as_)}")
    return CompiledQuery(sql="SELECT " + ", ".join(rendered))


def _join_side(side: Union[str, JoinCondition]) -> str:
    if isinstance(side, str):
        return column_ref(side)
    return column_ref(side.column, side.table)


def compile_join(joins: Optional[Sequence[JoinSpec]] = None) -> CompiledQuery:
    parts = [
        f"{join.type.value} JOIN {render_table(join.table)} ON {_join_side(join.on)} = {_join_side(join.with_)}"
        for join in joins or []
    ]
    return CompiledQuery(sql=" ".join(parts))


def compile_group_by(groups: Optional[Sequence[Union[str, GroupColumn]]] = None) -> CompiledQuery:
    if not groups:
        return CompiledQuery()
    rendered = [
        column_ref(item) if isinstance(item, str) else column_ref(item.column, item.table) for item in groups
    ]
    return CompiledQuery(sql="GROUP BY " + ", ".join(rendered))


def compile_order_by(orders: Optional[Sequence[OrderColumn]] = None) -> CompiledQuery:
    if not orders:
        return CompiledQuery()
    rendered = [f"{column_ref(item.column, item.table)} {item.order.value}" for item in orders]
    return CompiledQuery(sql="ORDER BY " + ", ".join(rendered))


def compile_limit(per: int = 100, page: int = 1) -> CompiledQuery:
    return CompiledQuery(sql="LIMIT ? OFFSET ?", params=[per, per * (page - 1)])


def compile_set(values: Mapping[str, Any]) -> CompiledQuery:
    if not values:
        return CompiledQuery()
    return CompiledQuery(
        sql="SET " + ", ".join(f"{quote_ident(key)} = ?" for key in values),
        params=list(values.values()),
    )


__all__ = [
    "render_table",
    "compile_select",
    "compile_join",
    "compile_group_by",
    "compile_order_by",
    "compile_limit",
    "compile_set",
]
