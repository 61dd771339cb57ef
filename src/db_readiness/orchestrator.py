"""Sequential readiness check across configured data sources."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from db_readiness.config import REQUIRED_DATABASE_URLS, DataSourceConfig, Settings
from db_readiness.environment import validate_environment
from db_readiness.errors import ConnectivityError, DataSourceCheckError, ReadinessError
from db_readiness.legacy_schema import check_legacy_schema
from db_readiness.migrator import Migrator, apply_migrations
from db_readiness.reporting import StatusReporter, log_structured_event
from db_readiness.results import CheckResult, ReadinessReport
from db_readiness.version_gate import VersionInfo, check_version

logger = logging.getLogger(__name__)

VERSION_QUERY = "SELECT version()"

# Query parameters only the Node ORM understands; drivers reject them.
_ORM_ONLY_QUERY_KEYS = ("schema", "connection_limit", "pool_timeout", "pgbouncer")

# Bare schemes resolve to the installed drivers; explicit +driver URLs are kept.
_DEFAULT_DRIVERS = {
    "postgres": "postgresql+psycopg",
    "postgresql": "postgresql+psycopg",
    "mysql": "mysql+pymysql",
}


def engine_url(url: str) -> str:
    """Translate an application connection string into a SQLAlchemy URL."""
    parsed = make_url(url)
    drivername = _DEFAULT_DRIVERS.get(parsed.drivername, parsed.drivername)
    parsed = parsed.set(drivername=drivername).difference_update_query(_ORM_ONLY_QUERY_KEYS)
    return parsed.render_as_string(hide_password=False)


class ReadinessCheck:
    def __init__(
        self,
        settings: Settings,
        migrator: Migrator,
        *,
        reporter: StatusReporter | None = None,
        engine_factory: Callable[[str], Engine] = create_engine,
    ):
        self.settings = settings
        self.migrator = migrator
        self.reporter = reporter or StatusReporter()
        self.engine_factory = engine_factory
        self._results: list[CheckResult] = []

    def _record(self, label: str, passed: bool, message: str) -> None:
        self._record_result(CheckResult(label=label, passed=passed, message=message))

    def _record_result(self, result: CheckResult) -> None:
        self._results.append(result)
        self.reporter.record(result)

    @contextmanager
    def _connect(self, source: DataSourceConfig) -> Iterator[Connection]:
        try:
            engine = self.engine_factory(engine_url(source.url))
        except (ArgumentError, ImportError, ValueError) as exc:
            raise ConnectivityError(str(exc)) from exc
        try:
            try:
                connection = engine.connect()
            except SQLAlchemyError as exc:
                raise ConnectivityError(str(exc)) from exc
            with connection:
                yield connection
        finally:
            engine.dispose()

    def _query_version(self, connection: Connection) -> str | None:
        value = connection.execute(text(VERSION_QUERY)).scalar()
        return None if value is None else str(value)

    def check_data_source(self, source: DataSourceConfig) -> VersionInfo:
        label = source.name
        with self._connect(source) as connection:
            self._record(label, True, f"[{label}] Database connection successful.")

            try:
                raw_version = self._query_version(connection)
            except SQLAlchemyError as exc:
                raise ConnectivityError(str(exc)) from exc
            version = check_version(raw_version, source.url)
            self._record(label, True, f"[{label}] Database version ({version.normalized}) is compatible.")

            try:
                check_legacy_schema(
                    connection,
                    label,
                    table=self.settings.migrations_table,
                    schema=source.schema,
                )
            except SQLAlchemyError as exc:
                raise ConnectivityError(str(exc)) from exc
            self._record(label, True, f"[{label}] No Umami v1 tables detected.")

            # The migration tool works on its own connection; release our snapshot first.
            if connection.in_transaction():
                connection.rollback()

            apply_migrations(self.migrator, source, connection, emit_output=self.reporter.output)
            self._record(label, True, f"[{label}] Database is up to date.")
        return version

    def run(self) -> ReadinessReport:
        self._results = []
        report = ReadinessReport(results=self._results)
        try:
            validate_environment(
                self.settings.environment_values(),
                REQUIRED_DATABASE_URLS,
                on_result=self._record_result,
            )
            for source in self.settings.data_sources():
                log_structured_event("data_source_check_started", label=source.name, url=source.url)
                try:
                    version = self.check_data_source(source)
                except ReadinessError as exc:
                    raise DataSourceCheckError(source.name, exc) from exc
                log_structured_event(
                    "data_source_check_passed",
                    label=source.name,
                    version=str(version.normalized),
                )
        except ReadinessError as exc:
            logger.debug("readiness check aborted", exc_info=True)
            log_structured_event("readiness_check_failed", error=str(exc), error_type=type(exc).__name__)
            self._record(getattr(exc, "label", "environment"), False, str(exc))
            report.error = exc
            return report

        self.reporter.info("All database checks passed successfully.")
        log_structured_event("readiness_check_passed", data_sources=len(REQUIRED_DATABASE_URLS))
        return report
