from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from anvbot.errors import ConfigError


class DBDialect(str, Enum):
    SQLITE3 = "sqlite3"
    POSTGRES = "postgres"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"

    def to_logging(self) -> int:
        return {
            LogLevel.DEBUG: logging.DEBUG,
            LogLevel.INFO: logging.INFO,
            LogLevel.WARN: logging.WARNING,
            LogLevel.ERROR: logging.ERROR,
        }[self]


VALID_DB_DIALECTS = frozenset(d.value for d in DBDialect)


class HistorySyncConfig(BaseModel):
    """Device properties requested when a full history sync is wanted."""

    full_sync_days_limit: int = 3650
    full_sync_size_mb_limit: int = 102400
    storage_quota_mb: int = 102400


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ANV_",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    DB_NAME: str = Field(default="file:anv.db?_foreign_keys=on")
    LOG_LEVEL: LogLevel = Field(default=LogLevel.INFO)
    REQUEST_FULL_SYNC: bool = Field(default=False)
    DB_DIALECT: DBDialect = Field(default=DBDialect.SQLITE3)

    # Collaborator + runtime
    ADAPTER: str = Field(default="neonize")
    DEVICE_NAME: str = Field(default="AnvBot")
    LOG_JSON: bool = Field(default=False)

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _validate_log_level(cls, v):  # type: ignore[override]
        if isinstance(v, str):
            v = v.strip().upper()
            if v == "WARNING":
                v = "WARN"
        return v

    @field_validator("DB_DIALECT", mode="before")
    @classmethod
    def _validate_dialect(cls, v):  # type: ignore[override]
        return v.strip().lower() if isinstance(v, str) else v

    def history_sync(self) -> HistorySyncConfig | None:
        return HistorySyncConfig() if self.REQUEST_FULL_SYNC else None

    def describe(self) -> str:
        return (
            f"DATABASE: {self.DB_NAME} LOG: {self.LOG_LEVEL.value} "
            f"RequestFullSync: {str(self.REQUEST_FULL_SYNC).lower()} DBDialect: {self.DB_DIALECT.value}"
        )


# An option mutates the pending field values before Settings is built.
Option = Callable[[dict[str, Any]], None]


def with_db_name(db_name: str) -> Option:
    """Set the database location.

    Bare names are wrapped into a sqlite URI with foreign keys enabled; values
    that already look like a URI or DSN are kept verbatim.
    """
    if db_name.startswith("file:") or "://" in db_name:
        value = db_name
    else:
        value = f"file:{db_name}?_foreign_keys=on"

    def apply(values: dict[str, Any]) -> None:
        values["DB_NAME"] = value

    return apply


def with_log_level(log_level: str | LogLevel) -> Option:
    def apply(values: dict[str, Any]) -> None:
        values["LOG_LEVEL"] = log_level

    return apply


def with_request_full_sync() -> Option:
    def apply(values: dict[str, Any]) -> None:
        values["REQUEST_FULL_SYNC"] = True

    return apply


def with_db_dialect(dialect: str | DBDialect) -> Option:
    """Select the store dialect; raises ConfigError for unsupported dialects."""
    name = dialect.value if isinstance(dialect, DBDialect) else str(dialect).strip().lower()
    if name not in VALID_DB_DIALECTS:
        raise ConfigError(
            f"invalid dialect {dialect!r}, valid options are: {sorted(VALID_DB_DIALECTS)}",
            field="DB_DIALECT",
        )

    def apply(values: dict[str, Any]) -> None:
        values["DB_DIALECT"] = name

    return apply


def new_config(*options: Option, **overrides: Any) -> Settings:
    """Build settings from defaults, applying options in order (later wins)."""
    values: dict[str, Any] = dict(overrides)
    for option in options:
        option(values)
    return Settings(**values)
