from __future__ import annotations

"""Ordered schema migrations with a history table.

A migration is recorded by name in the history table once its ``up`` ran.
``migrate`` applies every unrecorded migration in order; ``rollback`` undoes
the most recent recorded one.
"""

import datetime as dt
import logging
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence

from .config import get_settings
from .errors import CoreError
from .query.ddl import CreateTable
from .query.models import CompiledQuery
from .query.quoting import quote_ident
from .query.statements import delete, find, insert
from .schema.types import DataType

if TYPE_CHECKING:
    from .connection import Connector

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str, str], None]


class Migration:
    """Subclasses implement ``up`` and ``down``; ``name`` defaults to the class name."""

    name: Optional[str] = None

    def __init__(self, name: Optional[str] = None):
        self.name = name or self.name or type(self).__name__

    def up(self, db: "Connector") -> None:
        raise NotImplementedError

    def down(self, db: "Connector") -> None:
        raise NotImplementedError


def history_table(table: str) -> CompiledQuery:
    return (
        CreateTable(table)
        .add_column("id", DataType.INT, primary_key=True, auto_increment=True)
        .add_column("migration_name", DataType.VARCHAR)
        .add_column("implemented_at", DataType.DATETIME)
        .to_query()
    )


def sqlite_history_table(table: str) -> CompiledQuery:
    return CompiledQuery(
        sql=(
            f"CREATE TABLE IF NOT EXISTS {quote_ident(table)} ("
            "`id` INTEGER PRIMARY KEY AUTOINCREMENT, "
            "`migration_name` VARCHAR(255) NOT NULL, "
            "`implemented_at` DATETIME NOT NULL);"
        )
    )


class MigrationHandler:
    def __init__(
        self,
        db: "Connector",
        migrations: Sequence[Migration],
        *,
        table: Optional[str] = None,
        history_ddl: Optional[CompiledQuery] = None,
        on_status: Optional[StatusCallback] = None,
    ):
        self.db = db
        self.migrations = list(migrations)
        self.table = table or get_settings().migration_table
        self.history_ddl = history_ddl or history_table(self.table)
        self.on_status = on_status

    def _report(self, name: str, status: str) -> None:
        logger.info("Migration %s: %s", name, status)
        if self.on_status is not None:
            self.on_status(name, status)

    def prepare(self) -> None:
        self.db.run(self.history_ddl)

    def applied(self) -> List[str]:
        rows = find(self.db, self.table, options={"select": ["migration_name"], "order_by": [{"column": "id"}]})
        return [row["migration_name"] for row in rows]

    def _call(self, migration: Migration, step: str) -> None:
        try:
            getattr(migration, step)(self.db)
        except CoreError:
            self._report(migration.name, "failed")
            raise
        except Exception as exc:
            self._report(migration.name, "failed")
            raise CoreError(f"Migration {migration.name} failed during {step}: {exc}") from exc

    def migrate(self) -> List[str]:
        """Apply pending migrations in order; returns the names applied."""
        self.prepare()
        done = set(self.applied())
        applied: List[str] = []
        for migration in self.migrations:
            if migration.name in done:
                logger.debug("Skipping migration %s, already applied", migration.name)
                continue
            self._report(migration.name, "running")
            self._call(migration, "up")
            insert(self.db, self.table, {"migration_name": migration.name, "implemented_at": dt.datetime.now()})
            self._report(migration.name, "applied")
            applied.append(migration.name)
        if not applied:
            logger.info("No pending migrations")
        return applied

    def rollback(self) -> Optional[str]:
        """Undo the last recorded migration; returns its name or ``None``."""
        self.prepare()
        done = set(self.applied())
        for migration in reversed(self.migrations):
            if migration.name not in done:
                continue
            self._report(migration.name, "rolling back")
            self._call(migration, "down")
            delete(self.db, self.table, {"migration_name": migration.name})
            self._report(migration.name, "rolled back")
            return migration.name
        logger.info("Nothing to roll back")
        return None


__all__ = ["Migration", "MigrationHandler", "history_table", "sqlite_history_table"]
