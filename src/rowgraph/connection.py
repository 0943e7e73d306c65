from __future__ import annotations

"""Execution collaborator: runs compiled SQL on a DB-API 2.0 connection.

The connection must use the ``qmark`` paramstyle (``?`` placeholders), as
``sqlite3`` does. With ``nested=True`` every row is returned grouped by the
table label of its columns: a column labelled ``users.id`` lands in
``row["users"]["id"]``; unlabelled columns land under ``row[""]``.
"""

import datetime as dt
import logging
import sqlite3
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol, Sequence

from .errors import CoreError
from .query.models import CompiledQuery

logger = logging.getLogger(__name__)

LABEL_SEPARATOR = "."


@dataclass
class ExecResult:
    rows: List[Any] = field(default_factory=list)
    fields: List[str] = field(default_factory=list)
    last_insert_id: Optional[Any] = None
    affected_rows: int = 0


class Connector(Protocol):
    name: str

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None, nested: bool = False) -> ExecResult: ...

    def run(self, query: CompiledQuery) -> ExecResult: ...


def register_sqlite_adapters() -> None:
    """Bind dates as ISO text and decimals as strings on ``sqlite3`` connections."""
    sqlite3.register_adapter(dt.datetime, lambda value: value.isoformat(" "))
    sqlite3.register_adapter(dt.date, lambda value: value.isoformat())
    sqlite3.register_adapter(Decimal, str)


def group_row(fields: Sequence[str], values: Sequence[Any]) -> Dict[str, Dict[str, Any]]:
    grouped: Dict[str, Dict[str, Any]] = {}
    for label, value in zip(fields, values):
        if LABEL_SEPARATOR in label:
            table, column = label.split(LABEL_SEPARATOR, 1)
        else:
            table, column = "", label
        grouped.setdefault(table, {})[column] = value
    return grouped


class DBAPIConnector:
    """Single-connection executor; statements run one after another."""

    def __init__(self, connection: Any, name: str = "default", autocommit: bool = True):
        self.connection = connection
        self.name = name
        self.autocommit = autocommit

    @classmethod
    def sqlite(cls, database: str = ":memory:") -> "DBAPIConnector":
        register_sqlite_adapters()
        return cls(sqlite3.connect(database), name=database)

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None, nested: bool = False) -> ExecResult:
        bound = list(params or [])
        logger.debug("Executing SQL on %s: %s params=%r", self.name, sql, bound)
        cursor = self.connection.cursor()
        try:
            try:
                cursor.execute(sql, bound)
            except Exception as exc:
                raise CoreError(str(exc), sql=sql) from exc

            if cursor.description is None:
                if self.autocommit:
                    self.connection.commit()
                return ExecResult(last_insert_id=cursor.lastrowid, affected_rows=cursor.rowcount)

            fields = [desc[0] for desc in cursor.description]
            raw_rows = cursor.fetchall()
            if nested:
                rows: List[Any] = [group_row(fields, row) for row in raw_rows]
            else:
                rows = [dict(zip(fields, row)) for row in raw_rows]
            return ExecResult(rows=rows, fields=fields, affected_rows=len(rows))
        finally:
            cursor.close()

    def run(self, query: CompiledQuery) -> ExecResult:
        return self.execute(query.sql, query.params, query.nested)

    def close(self) -> None:
        self.connection.close()


__all__ = [
    "ExecResult",
    "Connector",
    "DBAPIConnector",
    "group_row",
    "register_sqlite_adapters",
    "LABEL_SEPARATOR",
]
