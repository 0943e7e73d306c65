from pydantic import __version__ as _pydantic_version

# rowgraph relies on the Pydantic v2 API (model_validate/model_dump, etc.).
if not _pydantic_version.startswith("2"):
    raise ImportError(
        "rowgraph requires pydantic>=2.0; detected version %s" % _pydantic_version
    )

from .config import RowgraphSettings, get_settings, reset_settings
from .connection import Connector, DBAPIConnector, ExecResult
from .errors import CoreError, DefinitionError, NotFoundError, QueryCompileError, ValidationError
from .migration import Migration, MigrationHandler
from .orm import Entity, EntityFindOptions, EntityState, Level, hydrate, materialize, materialize_one
from .query import (
    AlterTable,
    CompiledQuery,
    CountOptions,
    CreateTable,
    DropTable,
    FindOneOptions,
    FindOptions,
    RenameTable,
    compile_count,
    compile_delete,
    compile_find,
    compile_find_one,
    compile_insert,
    compile_update,
    compile_where,
)
from .schema import (
    BelongsTo,
    BelongsToMany,
    Column,
    DataType,
    DefaultValue,
    EntitySchema,
    HasMany,
    HasOne,
    SchemaRegistry,
    ValidationReason,
    registry,
)
from .utils import entities_match

__version__ = "0.1.0"

__all__ = [
    "RowgraphSettings",
    "get_settings",
    "reset_settings",
    "Connector",
    "DBAPIConnector",
    "ExecResult",
    "CoreError",
    "DefinitionError",
    "NotFoundError",
    "QueryCompileError",
    "ValidationError",
    "Migration",
    "MigrationHandler",
    "Entity",
    "EntityFindOptions",
    "EntityState",
    "Level",
    "hydrate",
    "materialize",
    "materialize_one",
    "AlterTable",
    "CompiledQuery",
    "CountOptions",
    "CreateTable",
    "DropTable",
    "FindOneOptions",
    "FindOptions",
    "RenameTable",
    "compile_count",
    "compile_delete",
    "compile_find",
    "compile_find_one",
    "compile_insert",
    "compile_update",
    "compile_where",
    "BelongsTo",
    "BelongsToMany",
    "Column",
    "DataType",
    "DefaultValue",
    "EntitySchema",
    "HasMany",
    "HasOne",
    "SchemaRegistry",
    "ValidationReason",
    "registry",
    "entities_match",
]
