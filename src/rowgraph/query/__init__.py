"""Query compilers: filters, clauses, statements and DDL."""

from . import models
from .models import *  # noqa: F401,F403
from .clauses import (
    compile_group_by,
    compile_join,
    compile_limit,
    compile_order_by,
    compile_select,
    compile_set,
)
from .ddl import AlterTable, CreateTable, DropTable, RenameTable
from .quoting import column_ref, quote_ident, table_key
from .statements import (
    COUNT_LABEL,
    compile_count,
    compile_delete,
    compile_find,
    compile_find_one,
    compile_insert,
    compile_update,
    count,
    delete,
    find,
    find_one,
    insert,
    update,
)
from .where import compile_where

__all__ = [
    *models.__all__,
    "compile_where",
    "compile_select",
    "compile_join",
    "compile_group_by",
    "compile_order_by",
    "compile_limit",
    "compile_set",
    "column_ref",
    "quote_ident",
    "table_key",
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
    "CreateTable",
    "AlterTable",
    "DropTable",
    "RenameTable",
]
