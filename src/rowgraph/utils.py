from __future__ import annotations

from typing import Any


def entities_match(first: Any, second: Any) -> bool:
    """True when both entities map to the same table and hold equal column values."""
    if first is None or second is None:
        return first is second
    first_schema = type(first).schema()
    second_schema = type(second).schema()
    if first_schema.table != second_schema.table:
        return False
    return first.to_dict() == second.to_dict()


__all__ = ["entities_match"]
