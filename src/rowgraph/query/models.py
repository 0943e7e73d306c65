from __future__ import annotations

"""Structured query descriptions accepted by the clause compilers.

Options are pydantic models so callers can pass either model instances or
plain dictionaries (``{"select": [...], "limit": {"page": 2, "per": 20}}``);
:func:`coerce_options` validates the latter and turns validation failures
into :class:`~rowgraph.errors.QueryCompileError`.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import QueryCompileError

WhereOptions = Dict[str, Any]


@dataclass
class CompiledQuery:
    """SQL text plus positional parameters, in placeholder order."""

    sql: str = ""
    params: List[Any] = field(default_factory=list)
    nested: bool = False

    def append(self, other: "CompiledQuery", sep: str = " ") -> "CompiledQuery":
        if other.sql:
            self.sql = f"{self.sql}{sep}{other.sql}" if self.sql else other.sql
        self.params.extend(other.params)
        return self

    def __bool__(self) -> bool:
        return bool(self.sql)


class AggregateOp(str, Enum):
    COUNT = "COUNT"
    DISTINCT = "DISTINCT"
    SUM = "SUM"
    AVG = "AVG"
    MIN = "MIN"
    MAX = "MAX"


class JoinType(str, Enum):
    INNER = "INNER"
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    CROSS = "CROSS"


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class _Options(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class TableRef(_Options):
    table: str
    as_: Optional[str] = Field(default=None, alias="as")

    @property
    def label(self) -> str:
        return self.as_ or self.table


class SelectColumn(_Options):
    column: str
    as_: Optional[str] = Field(default=None, alias="as")
    table: Optional[str] = None
    operator: Optional[AggregateOp] = None

    @field_validator("operator", mode="before")
    @classmethod
    def _upper_operator(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class JoinCondition(_Options):
    column: str
    table: Optional[str] = None


class JoinSpec(_Options):
    table: Union[str, TableRef]
    type: JoinType = JoinType.INNER
    on: Union[str, JoinCondition]
    with_: Union[str, JoinCondition] = Field(alias="with")

    @field_validator("type", mode="before")
    @classmethod
    def _upper_type(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class GroupColumn(_Options):
    column: str
    table: Optional[str] = None


class OrderColumn(_Options):
    column: str
    table: Optional[str] = None
    order: SortOrder = SortOrder.ASC

    @field_validator("order", mode="before")
    @classmethod
    def _upper_order(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class Pagination(_Options):
    page: int = Field(default=1, ge=1)
    per: Optional[int] = Field(default=None, ge=1)


SelectEntry = Union[str, SelectColumn]
GroupEntry = Union[str, GroupColumn]


class FindOneOptions(_Options):
    select: List[SelectEntry] = Field(default_factory=list)
    join: List[JoinSpec] = Field(default_factory=list)
    group_by: List[GroupEntry] = Field(default_factory=list)
    order_by: List[OrderColumn] = Field(default_factory=list)


class FindOptions(FindOneOptions):
    limit: Optional[Pagination] = None


class CountOptions(_Options):
    count_by: Optional[str] = None
    join: List[JoinSpec] = Field(default_factory=list)
    group_by: List[GroupEntry] = Field(default_factory=list)


_OptionsT = TypeVar("_OptionsT", bound=BaseModel)


def coerce_options(model: Type[_OptionsT], value: Union[_OptionsT, Mapping[str, Any], None]) -> _OptionsT:
    if value is None:
        return model()
    if isinstance(value, model):
        return value
    if isinstance(value, BaseModel):
        value = value.model_dump(by_alias=True, exclude_unset=True)
    try:
        return model.model_validate(value)
    except ValidationError as exc:
        raise QueryCompileError(f"Invalid {model.__name__}: {exc}") from exc


def coerce_table(table: Union[str, TableRef, Mapping[str, Any]]) -> TableRef:
    if isinstance(table, TableRef):
        return table
    if isinstance(table, str):
        return TableRef(table=table)
    try:
        return TableRef.model_validate(table)
    except ValidationError as exc:
        raise QueryCompileError(f"Invalid table reference: {exc}") from exc


__all__ = [
    "WhereOptions",
    "CompiledQuery",
    "AggregateOp",
    "JoinType",
    "SortOrder",
    "TableRef",
    "SelectColumn",
    "JoinCondition",
    "JoinSpec",
    "GroupColumn",
    "OrderColumn",
    "Pagination",
    "SelectEntry",
    "GroupEntry",
    "FindOneOptions",
    "FindOptions",
    "CountOptions",
    "coerce_options",
    "coerce_table",
]
