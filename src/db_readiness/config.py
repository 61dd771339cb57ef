"""Environment-driven readiness check configuration."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

REQUIRED_DATABASE_URLS: tuple[str, ...] = ("DATABASE_URL", "DIRECT_DATABASE_URL")


@dataclass(frozen=True)
class DataSourceConfig:
    name: str
    url: str

    @property
    def schema(self) -> str | None:
        """Schema named by the connection string's `schema` query parameter."""
        try:
            value = make_url(self.url).query.get("schema")
        except (ArgumentError, ValueError):
            return None
        if isinstance(value, tuple):
            value = value[-1]
        return value or None


class Settings(BaseSettings):
    """Readiness check settings loaded from environment variables and `.env`."""

    database_url: str = ""
    direct_database_url: str = ""
    skip_db_check: str = ""
    migrator: Literal["command", "alembic"] = Field(
        default="command", validation_alias="DB_CHECK_MIGRATOR"
    )
    migrate_command: str = Field(
        default="npx prisma migrate deploy", validation_alias="DB_CHECK_MIGRATE_COMMAND"
    )
    alembic_config: str = Field(default="alembic.ini", validation_alias="DB_CHECK_ALEMBIC_CONFIG")
    migrations_table: str = Field(
        default="_prisma_migrations", validation_alias="DB_CHECK_MIGRATIONS_TABLE"
    )
    log_level: str = Field(default="WARNING", validation_alias="DB_CHECK_LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def skip_requested(self) -> bool:
        return bool(self.skip_db_check)

    def environment_values(self) -> dict[str, str]:
        return {
            "DATABASE_URL": self.database_url,
            "DIRECT_DATABASE_URL": self.direct_database_url,
        }

    def data_sources(self) -> list[DataSourceConfig]:
        """Return data sources in declared order, labelled by their variable name."""
        values = self.environment_values()
        return [DataSourceConfig(name=name, url=values[name]) for name in REQUIRED_DATABASE_URLS]


@lru_cache
def get_settings() -> Settings:
    """Return cached readiness check settings."""
    return Settings()
