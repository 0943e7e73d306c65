from __future__ import annotations

"""CREATE / ALTER / DROP / RENAME TABLE builders."""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Optional

from ..errors import QueryCompileError
from ..schema.types import DataType, INTEGER_TYPES
from .models import CompiledQuery
from .quoting import quote_ident

if TYPE_CHECKING:
    from ..connection import Connector, ExecResult

FIRST = "FIRST"
DEFAULT_VARCHAR_SIZE = 255
DEFAULT_DECIMAL_PRECISION = (10, 2)

_NO_UNIQUE = frozenset({DataType.BOOLEAN, DataType.DATE, DataType.DATETIME})
_PRIMARY_KEY_TYPES = INTEGER_TYPES | {DataType.VARCHAR}


@dataclass
class ColumnDefinition:
    name: str
    type: DataType
    size: Optional[int] = None
    decimal: Optional[int] = None
    nullable: bool = False
    primary_key: bool = False
    unique: bool = False
    auto_increment: bool = False
    default: Any = None
    after: Optional[str] = None


def _render_type(column: ColumnDefinition) -> str:
    if column.type == DataType.DECIMAL:
        size = column.size if column.size is not None else DEFAULT_DECIMAL_PRECISION[0]
        decimal = column.decimal if column.decimal is not None else DEFAULT_DECIMAL_PRECISION[1]
        return f"DECIMAL({size},{decimal})"
    if column.type == DataType.VARCHAR:
        size = column.size if column.size is not None else DEFAULT_VARCHAR_SIZE
        return f"VARCHAR({size})"
    return column.type.value


def _render_column(column: ColumnDefinition, query: CompiledQuery) -> str:
    sql = f"{quote_ident(column.name)} {_render_type(column)}"
    sql += " NULL" if column.nullable else " NOT NULL"
    if column.unique and column.type not in _NO_UNIQUE:
        sql += " UNIQUE"
    if column.auto_increment and column.type in INTEGER_TYPES:
        sql += " AUTO_INCREMENT"
    if column.default is not None:
        sql += " DEFAULT ?"
        query.params.append(column.default)
    return sql


class _Statement:
    def to_query(self) -> CompiledQuery:  # pragma: no cover - abstract
        raise NotImplementedError

    def run(self, db: "Connector") -> "ExecResult":
        return db.run(self.to_query())


class CreateTable(_Statement):
    def __init__(self, table: str, if_not_exists: bool = True):
        self.table = table
        self.if_not_exists = if_not_exists
        self.columns: List[ColumnDefinition] = []

    def add_column(self, name: str, type: DataType, **options: Any) -> "CreateTable":
        self.columns.append(ColumnDefinition(name=name, type=type, **options))
        return self

    def to_query(self) -> CompiledQuery:
        if not self.columns:
            raise QueryCompileError(f"No columns defined for the table '{self.table}'")
        query = CompiledQuery()
        parts: List[str] = []
        for column in self.columns:
            parts.append(_render_column(column, query))
            if column.primary_key and column.type in _PRIMARY_KEY_TYPES:
                parts.append(f"PRIMARY KEY ({quote_ident(column.name)})")
        exists = " IF NOT EXISTS" if self.if_not_exists else ""
        query.sql = f"CREATE TABLE{exists} {quote_ident(self.table)} ({', '.join(parts)});"
        return query


class AlterAction(str, Enum):
    ADD_COLUMN = "ADD COLUMN"
    MODIFY_COLUMN = "MODIFY COLUMN"
    DROP_COLUMN = "DROP COLUMN"


@dataclass
class _Change:
    action: AlterAction
    column: ColumnDefinition


class AlterTable(_Statement):
    def __init__(self, table: str):
        self.table = table
        self.changes: List[_Change] = []

    def add_column(self, name: str, type: DataType, **options: Any) -> "AlterTable":
        self.changes.append(_Change(AlterAction.ADD_COLUMN, ColumnDefinition(name=name, type=type, **options)))
        return self

    def modify_column(self, name: str, type: DataType, **options: Any) -> "AlterTable":
        self.changes.append(_Change(AlterAction.MODIFY_COLUMN, ColumnDefinition(name=name, type=type, **options)))
        return self

    def drop_column(self, name: str) -> "AlterTable":
        self.changes.append(_Change(AlterAction.DROP_COLUMN, ColumnDefinition(name=name, type=DataType.INT)))
        return self

    def to_query(self) -> CompiledQuery:
        if not self.changes:
            raise QueryCompileError(f"No changes defined for the table '{self.table}'")
        query = CompiledQuery()
        parts: List[str] = []
        for change in self.changes:
            if change.action == AlterAction.DROP_COLUMN:
                parts.append(f"{change.action.value} {quote_ident(change.column.name)}")
                continue
            sql = f"{change.action.value} {_render_column(change.column, query)}"
            if change.column.after == FIRST:
                sql += " FIRST"
            elif change.column.after is not None:
                sql += f" AFTER {quote_ident(change.column.after)}"
            parts.append(sql)
        query.sql = f"ALTER TABLE {quote_ident(self.table)} {', '.join(parts)};"
        return query


class DropTable(_Statement):
    def __init__(self, table: str, if_exists: bool = True):
        self.table = table
        self.if_exists = if_exists

    def to_query(self) -> CompiledQuery:
        exists = " IF EXISTS" if self.if_exists else ""
        return CompiledQuery(sql=f"DROP TABLE{exists} {quote_ident(self.table)};")


class RenameTable(_Statement):
    def __init__(self, current: str, new_name: str):
        self.current = current
        self.new_name = new_name

    def to_query(self) -> CompiledQuery:
        return CompiledQuery(sql=f"ALTER TABLE {quote_ident(self.current)} RENAME TO {quote_ident(self.new_name)};")


__all__ = [
    "FIRST",
    "ColumnDefinition",
    "CreateTable",
    "AlterAction",
    "AlterTable",
    "DropTable",
    "RenameTable",
]
