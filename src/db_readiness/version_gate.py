"""Database engine version parsing and minimum-version enforcement."""

from __future__ import annotations

import re
from dataclasses import dataclass

from packaging.version import Version

from db_readiness.errors import IncompatibleVersionError, UnparseableVersionError

POSTGRESQL_MINIMUM = Version("9.4.0")
DEFAULT_MINIMUM = Version("5.7.0")

# First major[.minor[.patch]] run not embedded in a longer number.
_VERSION_PATTERN = re.compile(r"(?<!\d)(\d{1,16})(?:\.(\d{1,16}))?(?:\.(\d{1,16}))?(?!\d)")


@dataclass(frozen=True)
class VersionInfo:
    raw: str | None
    normalized: Version | None
    family: str | None = None


def get_database_type(url: str | None) -> str | None:
    if not url:
        return None
    scheme = url.split(":")[0]
    if scheme == "postgres":
        return "postgresql"
    return scheme


def coerce_version(raw: str | None) -> Version | None:
    """Extract a major.minor.patch version from free-form engine output."""
    if not raw:
        return None
    match = _VERSION_PATTERN.search(raw)
    if match is None:
        return None
    major, minor, patch = (int(part or 0) for part in match.groups())
    return Version(f"{major}.{minor}.{patch}")


def minimum_version_for(family: str | None) -> Version:
    backend = (family or "").split("+")[0]
    if backend in {"postgres", "postgresql"}:
        return POSTGRESQL_MINIMUM
    return DEFAULT_MINIMUM


def check_version(raw: str | None, url: str | None) -> VersionInfo:
    family = get_database_type(url)
    normalized = coerce_version(raw)
    if normalized is None:
        raise UnparseableVersionError(raw)

    minimum = minimum_version_for(family)
    if normalized < minimum:
        raise IncompatibleVersionError(family=family, minimum=minimum, actual=normalized)
    return VersionInfo(raw=raw, normalized=normalized, family=family)
