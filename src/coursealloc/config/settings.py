"""Typed settings for the course allocation core."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class DatabaseSettings(BaseModel):
    """Database connection settings.

    Attributes:
        dsn: SQLAlchemy-compatible connection string.
        pool_size: Persistent connections kept by the pool (server databases only).
        max_overflow: Extra connections allowed above ``pool_size``.
        pool_timeout_seconds: Seconds to wait for a free pooled connection.
        statement_timeout_ms: Per-statement timeout applied on PostgreSQL.
        lock_timeout_ms: Row-lock wait limit applied on PostgreSQL.
        sqlite_busy_timeout_seconds: Wait for the SQLite write lock before failing.
        echo: Log every emitted SQL statement.
    """

    model_config = ConfigDict(frozen=True)

    dsn: str = Field(default="sqlite:///coursealloc.db", min_length=1)
    pool_size: int = Field(default=20, ge=1)
    max_overflow: int = Field(default=40, ge=0)
    pool_timeout_seconds: float = Field(default=5.0, gt=0)
    statement_timeout_ms: int = Field(default=2000, ge=0)
    lock_timeout_ms: int = Field(default=2000, ge=0)
    sqlite_busy_timeout_seconds: float = Field(default=10.0, gt=0)
    echo: bool = False

    @property
    def is_sqlite(self) -> bool:
        return self.dsn.startswith("sqlite")


class AllocationSettings(BaseModel):
    """Business knobs of the allocation engine.

    Attributes:
        max_instances_per_period: Distinct instances a teacher may hold per
            (study year, study period).
        exercise_activity_name: Activity created and used by ``add_exercise``.
        study_year: Fixed "current" study year for cost aggregation; the clock
            decides when unset.
    """

    model_config = ConfigDict(frozen=True)

    max_instances_per_period: int = Field(default=4, ge=1)
    exercise_activity_name: str = Field(default="Exercise", min_length=1)
    study_year: int | None = Field(default=None, ge=1900, le=9999)


class LoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    file: Path | None = None

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: Any) -> str:
        text = str(value or "INFO").strip().upper()
        if text not in _LOG_LEVELS:
            raise ValueError(f"unknown log level: {value!r}")
        return text


class AppSettings(BaseSettings):
    """Aggregate settings, read from ``COURSEALLOC_*`` variables and ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="COURSEALLOC_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    allocation: AllocationSettings = Field(default_factory=AllocationSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    metrics_enabled: bool = True
    timezone: str = Field(default="Europe/Stockholm")

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the settings with the DSN password masked."""

        data = self.model_dump(mode="json")
        data["database"]["dsn"] = _mask_dsn(self.database.dsn)
        return data


def _mask_dsn(dsn: str) -> str:
    scheme, sep, rest = dsn.partition("://")
    if not sep or "@" not in rest:
        return dsn
    credentials, _, host = rest.rpartition("@")
    user, has_password, _ = credentials.partition(":")
    if not has_password:
        return dsn
    return f"{scheme}://{user}:***@{host}"


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return the process-wide settings instance."""

    return AppSettings()


__all__ = [
    "AllocationSettings",
    "AppSettings",
    "DatabaseSettings",
    "LoggingSettings",
    "get_settings",
]
