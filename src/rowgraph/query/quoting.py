from __future__ import annotations

"""Identifier quoting for the backtick dialect."""

from typing import Optional

from ..errors import QueryCompileError

TABLE_KEY_PREFIX = "$t."
WILDCARD = "*"


def quote_ident(name: str) -> str:
    return "`" + str(name).replace("`", "``") + "`"


def column_ref(column: str, table: Optional[str] = None) -> str:
    col = column if column == WILDCARD else quote_ident(column)
    if table:
        return f"{quote_ident(table)}.{col}"
    return col


def resolve_key(key: str) -> str:
    """Quote a filter key; ``$t.<table>.<column>`` becomes table-qualified."""
    if key.startswith(TABLE_KEY_PREFIX):
        parts = key.split(".", 2)
        if len(parts) != 3 or not parts[1] or not parts[2]:
            raise QueryCompileError(f"Malformed table-qualified key: {key!r}")
        return column_ref(parts[2], parts[1])
    return quote_ident(key)


def table_key(table: str, column: str) -> str:
    return f"{TABLE_KEY_PREFIX}{table}.{column}"


def placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


__all__ = [
    "TABLE_KEY_PREFIX",
    "WILDCARD",
    "quote_ident",
    "column_ref",
    "resolve_key",
    "table_key",
    "placeholders",
]
