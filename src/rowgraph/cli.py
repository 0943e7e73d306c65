from __future__ import annotations

import argparse
import importlib
import json
import sys
from typing import Any, List, Sequence

from .config import get_settings
from .connection import DBAPIConnector
from .errors import CoreError
from .logging_config import configure_logging
from .migration import Migration, MigrationHandler, sqlite_history_table
from .query.statements import compile_count, compile_find


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="rowgraph utilities")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    parser.add_argument("--log-json", action="store_true", default=settings.log_json, help="Log as JSON lines")
    sub = parser.add_subparsers(dest="command", required=True)

    compile_cmd = sub.add_parser("compile", help="Print the SQL and params of a find or count")
    compile_cmd.add_argument("table", help="Table name")
    compile_cmd.add_argument("--where", default="{}", help="Filter as a JSON object")
    compile_cmd.add_argument("--options", default="{}", help="Find/count options as a JSON object")
    compile_cmd.add_argument("--count", action="store_true", help="Compile a count instead of a find")

    for name, help_text in (("migrate", "Apply pending migrations"), ("rollback", "Undo the last migration")):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("migrations", nargs="+", help="Migrations as module:attribute")
        cmd.add_argument("--database", default=settings.database, help="SQLite database file")
    return parser.parse_args(argv)


def _load_json(raw: str, what: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SystemExit(f"Invalid JSON for {what}: {exc}")


def load_migrations(refs: Sequence[str]) -> List[Migration]:
    migrations: List[Migration] = []
    for ref in refs:
        module_name, _, attribute = ref.partition(":")
        if not module_name or not attribute:
            raise SystemExit(f"Migration reference must look like module:attribute, got {ref!r}")
        target = getattr(importlib.import_module(module_name), attribute)
        if isinstance(target, type):
            target = target()
        if isinstance(target, Migration):
            migrations.append(target)
        else:
            migrations.extend(target)
    return migrations


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging(level=args.log_level, jsonl=args.log_json)

    if args.command == "compile":
        where = _load_json(args.where, "--where")
        options = _load_json(args.options, "--options")
        compiler = compile_count if args.count else compile_find
        try:
            query = compiler(args.table, where, options)
        except CoreError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1
        print(query.sql)
        print(json.dumps(query.params, default=str))
        return 0

    if args.command in ("migrate", "rollback"):
        db = DBAPIConnector.sqlite(args.database)
        try:
            handler = MigrationHandler(
                db,
                load_migrations(args.migrations),
                history_ddl=sqlite_history_table(get_settings().migration_table),
            )
            if args.command == "migrate":
                applied = handler.migrate()
                print(f"Applied {len(applied)} migration(s)")
            else:
                name = handler.rollback()
                print(f"Rolled back {name}" if name else "Nothing to roll back")
        except CoreError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1
        finally:
            db.close()
        return 0
    raise SystemExit(f"Unknown command: {args.command}")


if __name__ == "__main__":
    sys.exit(main())
