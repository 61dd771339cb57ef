"""Command line entry point for the database readiness check."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence

from db_readiness.config import Settings, get_settings
from db_readiness.migrator import build_migrator
from db_readiness.orchestrator import ReadinessCheck
from db_readiness.reporting import StatusReporter, log_structured_event


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Verify database readiness before deployment")
    parser.add_argument("--env-file", default=None, help="Dotenv file to read instead of ./.env")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level for diagnostic logging (defaults to DB_CHECK_LOG_LEVEL or WARNING)",
    )
    return parser


def _load_settings(env_file: str | None) -> Settings:
    if env_file is None:
        return get_settings()
    return Settings(_env_file=env_file)


def main(argv: Sequence[str] | None = None, *, reporter: StatusReporter | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = _load_settings(args.env_file)

    level_name = (args.log_level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    reporter = reporter or StatusReporter()
    if settings.skip_requested:
        reporter.info("Skipping database check.")
        log_structured_event("readiness_check_skipped")
        return 0

    check = ReadinessCheck(settings, build_migrator(settings), reporter=reporter)
    return check.run().exit_code
