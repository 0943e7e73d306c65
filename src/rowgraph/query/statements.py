from __future__ import annotations

"""Table-level statements built from the clause compilers.

Every ``compile_*`` function is pure and returns a :class:`CompiledQuery`;
the matching function without the prefix runs it on a connector.
"""

from typing import TYPE_CHECKING, Any, List, Mapping, Optional, Union

from ..config import get_settings
from ..errors import QueryCompileError
from .clauses import (
    compile_group_by,
    compile_join,
    compile_limit,
    compile_order_by,
    compile_select,
    compile_set,
    render_table,
)
from .models import (
    AggregateOp,
    CompiledQuery,
    CountOptions,
    FindOneOptions,
    FindOptions,
    SelectColumn,
    TableRef,
    WhereOptions,
    coerce_options,
    coerce_table,
)
from .quoting import placeholders, quote_ident
from .where import compile_where

if TYPE_CHECKING:
    from ..connection import Connector

TableLike = Union[str, TableRef, Mapping[str, Any]]
COUNT_LABEL = "total"


def _select_from(select: CompiledQuery, table: TableRef) -> CompiledQuery:
    return select.append(CompiledQuery(sql=f"FROM {render_table(table)}"))


def _find_body(table: TableLike, where: Optional[WhereOptions], opts: FindOneOptions) -> CompiledQuery:
    query = _select_from(compile_select(opts.select), coerce_table(table))
    query.append(compile_join(opts.join))
    query.append(compile_where(where))
    query.append(compile_group_by(opts.group_by))
    query.append(compile_order_by(opts.order_by))
    return query


def compile_find(
    table: TableLike,
    where: Optional[WhereOptions] = None,
    options: Union[FindOptions, Mapping[str, Any], None] = None,
) -> CompiledQuery:
    opts = coerce_options(FindOptions, options)
    query = _find_body(table, where, opts)
    per = get_settings().default_page_size
    page = 1
    if opts.limit is not None:
        per = opts.limit.per or per
        page = opts.limit.page
    query.append(compile_limit(per, page))
    query.sql += ";"
    query.nested = bool(opts.join)
    return query


def compile_find_one(
    table: TableLike,
    where: Optional[WhereOptions] = None,
    options: Union[FindOneOptions, Mapping[str, Any], None] = None,
) -> CompiledQuery:
    opts = coerce_options(FindOneOptions, options)
    query = _find_body(table, where, opts)
    query.append(compile_limit(1, 1))
    query.sql += ";"
    query.nested = bool(opts.join)
    return query


def compile_count(
    table: TableLike,
    where: Optional[WhereOptions] = None,
    options: Union[CountOptions, Mapping[str, Any], None] = None,
) -> CompiledQuery:
    opts = coerce_options(CountOptions, options)
    counted = SelectColumn(column=opts.count_by or "*", as_=COUNT_LABEL, operator=AggregateOp.COUNT)
    query = _select_from(compile_select([counted]), coerce_table(table))
    query.append(compile_join(opts.join))
    query.append(compile_where(where))
    query.append(compile_group_by(opts.group_by))
    query.sql += ";"
    return query


def compile_insert(table: TableLike, values: Mapping[str, Any]) -> CompiledQuery:
    ref = coerce_table(table)
    if not values:
        raise QueryCompileError(f"No values to insert into '{ref.table}'")
    columns = ", ".join(quote_ident(key) for key in values)
    return CompiledQuery(
        sql=f"INSERT INTO {quote_ident(ref.table)} ({columns}) VALUES ({placeholders(len(values))});",
        params=list(values.values()),
    )


def compile_update(
    table: TableLike,
    values: Mapping[str, Any],
    where: Optional[WhereOptions] = None,
) -> CompiledQuery:
    ref = coerce_table(table)
    if not values:
        raise QueryCompileError(f"No values to update in '{ref.table}'")
    query = CompiledQuery(sql=f"UPDATE {quote_ident(ref.table)}")
    query.append(compile_set(values))
    query.append(compile_where(where))
    query.sql += ";"
    return query


def compile_delete(table: TableLike, where: Optional[WhereOptions] = None) -> CompiledQuery:
    ref = coerce_table(table)
    query = CompiledQuery(sql=f"DELETE FROM {quote_ident(ref.table)}")
    query.append(compile_where(where))
    query.sql += ";"
    return query


# --- execution ---
def find(
    db: "Connector",
    table: TableLike,
    where: Optional[WhereOptions] = None,
    options: Union[FindOptions, Mapping[str, Any], None] = None,
) -> List[Any]:
    return db.run(compile_find(table, where, options)).rows


def find_one(
    db: "Connector",
    table: TableLike,
    where: Optional[WhereOptions] = None,
    options: Union[FindOneOptions, Mapping[str, Any], None] = None,
) -> Optional[Any]:
    rows = db.run(compile_find_one(table, where, options)).rows
    return rows[0] if rows else None


def count(
    db: "Connector",
    table: TableLike,
    where: Optional[WhereOptions] = None,
    options: Union[CountOptions, Mapping[str, Any], None] = None,
) -> int:
    rows = db.run(compile_count(table, where, options)).rows
    if not rows:
        return 0
    return int(rows[0][COUNT_LABEL])


def insert(db: "Connector", table: TableLike, values: Mapping[str, Any]) -> Any:
    return db.run(compile_insert(table, values)).last_insert_id


def update(
    db: "Connector",
    table: TableLike,
    values: Mapping[str, Any],
    where: Optional[WhereOptions] = None,
) -> int:
    return db.run(compile_update(table, values, where)).affected_rows


def delete(db: "Connector", table: TableLike, where: Optional[WhereOptions] = None) -> int:
    return db.run(compile_delete(table, where)).affected_rows


__all__ = [
    "COUNT_LABEL",
    "compile_find",
    "compile_find_one",
    "compile_count",
    "compile_insert",
    "compile_update",
    "compile_delete",
    "find",
    "find_one",
    "count",
    "insert",
    "update",
    "delete",
]
