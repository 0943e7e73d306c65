from __future__ import annotations

"""Runtime settings, read from ``ROWGRAPH_*`` environment variables."""

import logging
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PAGE_SIZE = 1000
MIGRATION_HISTORY_TABLE = "db_migration_history"


class RowgraphSettings(BaseSettings):
    default_page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1)
    migration_table: str = MIGRATION_HISTORY_TABLE
    database: str = ":memory:"
    log_level: str = "INFO"
    log_json: bool = False

    model_config = SettingsConfigDict(env_prefix="ROWGRAPH_", env_file=".env", extra="ignore")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = str(value).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level


_settings: Optional[RowgraphSettings] = None


def get_settings() -> RowgraphSettings:
    global _settings
    if _settings is None:
        _settings = RowgraphSettings()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MIGRATION_HISTORY_TABLE",
    "RowgraphSettings",
    "get_settings",
    "reset_settings",
]
