from __future__ import annotations

"""Rebuild nested entity graphs from grouped joined rows.

Each row is a mapping ``{label: {storage_column: value}}`` as returned by a
nested connector call. ``levels[0]`` describes the root table; every further
level is one populated association and names the level it hangs from.

Rows must arrive grouped by every ancestor key (root first). The pass keeps a
``holder`` with one entity per level; when a row differs from the held slices
at position ``pos`` the held entities from the deepest level down to ``pos``
are folded into their parents and the root is emitted when level 0 folds.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..schema.types import Association
from .hydrate import hydrate


@dataclass(frozen=True)
class Level:
    entity: type
    label: str
    association: Optional[Association] = None
    parent: int = 0


RawSlice = Optional[Dict[str, Any]]


def _slice(row: Mapping[str, Any], level: Level) -> RawSlice:
    data = row.get(level.label)
    if not data or all(value is None for value in data.values()):
        return None
    return dict(data)


def _matching_prefix(current: Sequence[RawSlice], held: Sequence[RawSlice]) -> int:
    pos = 0
    for now, before in zip(current, held):
        if now != before:
            break
        pos += 1
    return pos


class _Holder:
    def __init__(self, levels: Sequence[Level]):
        if not levels:
            raise ValueError("At least the root level is required")
        self.levels = list(levels)
        self.depth = len(self.levels)
        self.raw: List[RawSlice] = [None] * self.depth
        self.entities: List[Any] = [None] * self.depth
        self.roots: List[Any] = []
        self._attached: Dict[Tuple[int, int], List[RawSlice]] = {}

    def fold(self, pos: int) -> None:
        for index in range(self.depth - 1, pos - 1, -1):
            entity = self.entities[index]
            if entity is not None:
                if index == 0:
                    self.roots.append(entity)
                else:
                    self._attach(index, entity)
            self.entities[index] = None
            self.raw[index] = None

    def _attach(self, index: int, child: Any) -> None:
        level = self.levels[index]
        parent = self.entities[level.parent]
        if parent is None or level.association is None:
            return
        name = level.association.name
        if not level.association.many:
            object.__setattr__(parent, name, child)
            return
        collection = getattr(parent, name, None)
        if collection is None:
            collection = []
            object.__setattr__(parent, name, collection)
        seen = self._attached.setdefault((id(parent), index), [])
        if self.raw[index] in seen:
            return
        seen.append(self.raw[index])
        collection.append(child)

    def hold(self, slices: Sequence[RawSlice], pos: int) -> None:
        for index in range(pos, self.depth):
            self.raw[index] = slices[index]
            level = self.levels[index]
            self.entities[index] = (
                hydrate(level.entity, slices[index], from_storage=True) if slices[index] is not None else None
            )


def _iterate(rows: Sequence[Mapping[str, Any]], levels: Sequence[Level], first_only: bool) -> List[Any]:
    holder = _Holder(levels)
    started = False
    for row in rows:
        slices = [_slice(row, level) for level in holder.levels]
        pos = _matching_prefix(slices, holder.raw) if started else 0
        if started and pos == holder.depth:
            continue
        holder.fold(pos)
        if first_only and holder.roots:
            return holder.roots[:1]
        holder.hold(slices, pos)
        started = True
    holder.fold(0)
    return holder.roots[:1] if first_only else holder.roots


def materialize(rows: Sequence[Mapping[str, Any]], levels: Sequence[Level]) -> List[Any]:
    return _iterate(rows, levels, first_only=False)


def materialize_one(rows: Sequence[Mapping[str, Any]], levels: Sequence[Level]) -> Optional[Any]:
    roots = _iterate(rows, levels, first_only=True)
    return roots[0] if roots else None


__all__ = ["Level", "materialize", "materialize_one"]
