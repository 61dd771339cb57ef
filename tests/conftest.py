from __future__ import annotations

import io
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import pytest
import sqlalchemy as sa
from rich.console import Console
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url

from db_readiness.config import DataSourceConfig, get_settings
from db_readiness.migrator import MigrationResult
from db_readiness.reporting import StatusReporter

_ENV_VARS = (
    "DATABASE_URL",
    "DIRECT_DATABASE_URL",
    "SKIP_DB_CHECK",
    "DB_CHECK_MIGRATOR",
    "DB_CHECK_MIGRATE_COMMAND",
    "DB_CHECK_ALEMBIC_CONFIG",
    "DB_CHECK_MIGRATIONS_TABLE",
    "DB_CHECK_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch, tmp_path: Path):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's ./.env out of the settings under test.
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class RecordingMigrator:
    def __init__(self, returncode: int = 0, output: str = "No pending migrations to apply.\n"):
        self.returncode = returncode
        self.output = output
        self.calls: list[str] = []
        self.in_transaction: list[bool] = []

    def apply(self, source: DataSourceConfig, connection) -> MigrationResult:
        self.calls.append(source.name)
        if connection is not None:
            self.in_transaction.append(connection.in_transaction())
        return MigrationResult(returncode=self.returncode, output=self.output)


@pytest.fixture
def migrator() -> RecordingMigrator:
    return RecordingMigrator()


@pytest.fixture
def reporter() -> StatusReporter:
    console = Console(file=io.StringIO(), force_terminal=False, width=240, highlight=False)
    return StatusReporter(console)


def versioned_engine_factory(
    versions: dict[str, str],
    opened: list[str] | None = None,
    *,
    attach: dict[str, Path] | None = None,
) -> Callable[[str], Engine]:
    """Build engines whose SQLite connections answer SELECT version().

    `attach` maps schema names to database files attached on every connection.
    """

    def factory(url: str) -> Engine:
        database = make_url(url).database
        engine = create_engine(url)
        reported = versions[database]

        @event.listens_for(engine, "connect")
        def _register_version(dbapi_connection, connection_record) -> None:
            dbapi_connection.create_function("version", 0, lambda: reported)
            for schema, path in (attach or {}).items():
                dbapi_connection.execute(f"ATTACH DATABASE '{path}' AS \"{schema}\"")
            if opened is not None:
                opened.append(database)

        return engine

    return factory


def create_migration_history(url: str, started_at: list[datetime], *, table: str = "_prisma_migrations") -> None:
    metadata = sa.MetaData()
    history = sa.Table(
        table,
        metadata,
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("migration_name", sa.String(255), nullable=False),
        sa.Column("started_at", sa.DateTime, nullable=False),
    )
    engine = create_engine(url)
    try:
        metadata.create_all(engine)
        with engine.begin() as conn:
            for index, value in enumerate(started_at):
                conn.execute(
                    history.insert().values(migration_name=f"{index:02d}_migration", started_at=value)
                )
    finally:
        engine.dispose()


@pytest.fixture
def engine_factory_for() -> Callable[..., Callable[[str], Engine]]:
    return versioned_engine_factory


@pytest.fixture
def migration_history() -> Callable[..., None]:
    return create_migration_history


@pytest.fixture
def make_migrator() -> type[RecordingMigrator]:
    return RecordingMigrator
