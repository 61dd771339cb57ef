"""Forward schema migration through an external tool."""

from __future__ import annotations

import io
import logging
import os
import shlex
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.engine import Connection

from alembic import command
from alembic.config import Config
from db_readiness.config import DataSourceConfig, Settings
from db_readiness.errors import MigrationApplyError

logger = logging.getLogger(__name__)

DEFAULT_MIGRATE_COMMAND = "npx prisma migrate deploy"
COMMAND_NOT_FOUND = 127


@dataclass(frozen=True)
class MigrationResult:
    returncode: int
    output: str


class Migrator(Protocol):
    def apply(self, source: DataSourceConfig, connection: Connection) -> MigrationResult: ...


class CommandMigrator:
    """Runs a migration command with the data source URL in its environment."""

    def __init__(self, command: str = DEFAULT_MIGRATE_COMMAND, *, url_env_var: str = "DATABASE_URL"):
        self.command = command
        self.url_env_var = url_env_var

    def apply(self, source: DataSourceConfig, connection: Connection) -> MigrationResult:
        args = shlex.split(self.command)
        env = {**os.environ, self.url_env_var: source.url}
        logger.info("running migration command %r for %s", self.command, source.name)
        try:
            completed = subprocess.run(
                args,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                encoding="utf-8",
                errors="replace",
                env=env,
                check=False,
            )
        except FileNotFoundError as exc:
            return MigrationResult(returncode=COMMAND_NOT_FOUND, output=f"{exc}\n")
        return MigrationResult(returncode=completed.returncode, output=completed.stdout or "")


class AlembicMigrator:
    """Upgrades the schema in-process with alembic, on the open connection."""

    def __init__(self, config_path: str = "alembic.ini", *, revision: str = "head"):
        self.config_path = config_path
        self.revision = revision

    def _config_for(self, source: DataSourceConfig, connection: Connection, stdout: io.StringIO) -> Config:
        config = Config(self.config_path, stdout=stdout)
        # Percent signs in URLs would be read as configparser interpolation.
        config.set_main_option("sqlalchemy.url", source.url.replace("%", "%%"))
        config.attributes["connection"] = connection
        return config

    def apply(self, source: DataSourceConfig, connection: Connection) -> MigrationResult:
        stdout = io.StringIO()
        config = self._config_for(source, connection, stdout)
        logger.info("running alembic upgrade to %s for %s", self.revision, source.name)
        try:
            command.upgrade(config, self.revision)
            if connection.in_transaction():
                connection.commit()
        except Exception as exc:
            if connection.in_transaction():
                connection.rollback()
            stdout.write(f"{type(exc).__name__}: {exc}\n")
            return MigrationResult(returncode=1, output=stdout.getvalue())
        return MigrationResult(returncode=0, output=stdout.getvalue())


def build_migrator(settings: Settings) -> Migrator:
    if settings.migrator == "alembic":
        return AlembicMigrator(settings.alembic_config)
    return CommandMigrator(settings.migrate_command)


def apply_migrations(
    migrator: Migrator,
    source: DataSourceConfig,
    connection: Connection,
    emit_output: Callable[[str], None] | None = None,
) -> MigrationResult:
    """Apply migrations once; a non-zero exit is fatal and never retried."""
    result = migrator.apply(source, connection)
    if emit_output is not None:
        emit_output(result.output)
    if result.returncode != 0:
        raise MigrationApplyError(returncode=result.returncode, output=result.output)
    return result
