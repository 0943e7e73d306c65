from __future__ import annotations

"""Exception hierarchy shared by the compiler, the schema layer and entities."""

from typing import Any, Dict, Mapping, Optional


class CoreError(Exception):
    """Base error; optionally carries the SQL text that failed."""

    def __init__(self, message: str, sql: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.sql = sql

    def __str__(self) -> str:
        if self.sql:
            return f"{self.message} (sql: {self.sql})"
        return self.message


class QueryCompileError(CoreError):
    """Malformed query description (filters, options, DDL builders)."""


class DefinitionError(CoreError):
    """Schema misconfiguration: primary keys, columns or associations."""


class ValidationError(CoreError):
    def __init__(self, message: str, errors: Mapping[str, Any]):
        super().__init__(message)
        self.errors: Dict[str, Any] = dict(errors)


class NotFoundError(CoreError):
    def __init__(self, entity: str, primary_key: Optional[str], where: Optional[Mapping[str, Any]] = None):
        super().__init__(f"{entity} not found (primary key: {primary_key}, filter: {dict(where or {})!r})")
        self.entity = entity
        self.primary_key = primary_key
        self.where = dict(where or {})


__all__ = [
    "CoreError",
    "QueryCompileError",
    "DefinitionError",
    "ValidationError",
    "NotFoundError",
]
