"""Typed readiness check errors."""

from __future__ import annotations

from collections.abc import Sequence

from packaging.version import Version


class ReadinessError(RuntimeError):
    """Base error for database readiness check failures."""


class ConfigurationError(ReadinessError):
    """Raised when required environment variables are missing."""

    def __init__(self, missing: Sequence[str]):
        self.missing = list(missing)
        super().__init__(
            "One or more required database environment variables are missing: "
            + ", ".join(self.missing)
        )


class ConnectivityError(ReadinessError):
    """Raised when the database cannot be reached or queried."""


class UnparseableVersionError(ReadinessError):
    """Raised when no version can be extracted from the reported string."""

    def __init__(self, raw: str | None):
        self.raw = raw
        super().__init__("Unable to parse database version.")


class IncompatibleVersionError(ReadinessError):
    """Raised when the database engine is older than the supported minimum."""

    def __init__(self, *, family: str | None, minimum: Version, actual: Version):
        self.family = family
        self.minimum = minimum
        self.actual = actual
        super().__init__(
            f"Database version ({actual}) is not compatible. "
            f"Please upgrade {family} to version {minimum} or greater."
        )


class LegacySchemaError(ReadinessError):
    """Raised when pre-cutoff (v1) migration rows are present."""

    def __init__(self, *, label: str, guide_url: str, row_count: int):
        self.label = label
        self.guide_url = guide_url
        self.row_count = row_count
        super().__init__(
            "Umami v1 tables detected. "
            f"To upgrade from v1 to v2, visit {guide_url}."
        )


class MigrationApplyError(ReadinessError):
    """Raised when the migration tool exits non-zero."""

    def __init__(self, *, returncode: int, output: str):
        self.returncode = returncode
        self.output = output
        super().__init__(f"Migration command failed with exit code {returncode}.")


class DataSourceCheckError(ReadinessError):
    """Wraps the first failure of a data source, prefixed with its label."""

    def __init__(self, label: str, cause: ReadinessError):
        self.label = label
        self.cause = cause
        super().__init__(f"[{label}] {cause}")
