from __future__ import annotations

from enum import Enum


class EntityState(str, Enum):
    UNSAVED = "UNSAVED"
    PERSISTED = "PERSISTED"
    DELETED = "DELETED"


__all__ = ["EntityState"]
