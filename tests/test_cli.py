import shlex
import sys
from pathlib import Path

import pytest

from db_readiness import cli
from db_readiness.orchestrator import ReadinessCheck


class _NoConnectionCheck:
    def __init__(self, *args, **kwargs):
        raise AssertionError("readiness check must not run when skipped")


def _output(reporter) -> str:
    return reporter.console.file.getvalue()


@pytest.mark.parametrize(
    "environment",
    [
        {},
        {"DATABASE_URL": "postgresql://db/app"},
        {"DATABASE_URL": "postgres://u:p@unreachable:5432/app", "DIRECT_DATABASE_URL": "nosuchdb://x"},
    ],
)
def test_skip_variable_exits_zero_without_connecting(monkeypatch, reporter, environment) -> None:
    monkeypatch.setenv("SKIP_DB_CHECK", "1")
    for name, value in environment.items():
        monkeypatch.setenv(name, value)
    monkeypatch.setattr(cli, "ReadinessCheck", _NoConnectionCheck)

    assert cli.main([], reporter=reporter) == 0
    assert "Skipping database check." in _output(reporter)


def test_skip_variable_read_from_dotenv_file(tmp_path: Path, monkeypatch, reporter) -> None:
    (tmp_path / "deploy.env").write_text("SKIP_DB_CHECK=true\n")
    monkeypatch.setattr(cli, "ReadinessCheck", _NoConnectionCheck)

    assert cli.main(["--env-file", str(tmp_path / "deploy.env")], reporter=reporter) == 0


def test_missing_variables_exit_one(reporter) -> None:
    assert cli.main([], reporter=reporter) == 1
    output = _output(reporter)
    assert "✗ DATABASE_URL is not defined." in output
    assert "✗ DIRECT_DATABASE_URL is not defined." in output


def test_database_without_version_function_exits_one(tmp_path: Path, monkeypatch, reporter) -> None:
    url = f"sqlite:///{tmp_path / 'app.sqlite'}"
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.setenv("DIRECT_DATABASE_URL", url)

    assert cli.main([], reporter=reporter) == 1
    output = _output(reporter)
    assert "✓ [DATABASE_URL] Database connection successful." in output
    assert "no such function: version" in output


def test_dotenv_in_working_directory_configures_full_run(
    tmp_path: Path, monkeypatch, reporter, engine_factory_for
) -> None:
    primary = tmp_path / "primary.sqlite"
    direct = tmp_path / "direct.sqlite"
    migrate = shlex.join([sys.executable, "-c", "print('All migrations have been successfully applied.')"])
    monkeypatch.setenv("DB_CHECK_MIGRATE_COMMAND", migrate)
    (tmp_path / ".env").write_text(
        f"DATABASE_URL=sqlite:///{primary}\n"
        f"DIRECT_DATABASE_URL=sqlite:///{direct}\n"
    )
    factory = engine_factory_for({str(primary): "PostgreSQL 15.4", str(direct): "PostgreSQL 15.4"})

    def build_check(settings, migrator, *, reporter):
        return ReadinessCheck(settings, migrator, reporter=reporter, engine_factory=factory)

    monkeypatch.setattr(cli, "ReadinessCheck", build_check)

    assert cli.main(["--log-level", "debug"], reporter=reporter) == 0
    output = _output(reporter)
    assert output.count("All migrations have been successfully applied.") == 2
    assert "✓ [DIRECT_DATABASE_URL] Database is up to date." in output
    assert "All database checks passed successfully." in output
