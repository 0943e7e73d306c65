"""Entities on top of the query compilers."""

from .assembler import EntityFindOptions, QueryAssembler
from .entity import Entity
from .hydrate import hydrate, resolve_default
from .materialize import Level, materialize, materialize_one
from .state import EntityState

__all__ = [
    "Entity",
    "EntityState",
    "EntityFindOptions",
    "QueryAssembler",
    "Level",
    "materialize",
    "materialize_one",
    "hydrate",
    "resolve_default",
]
