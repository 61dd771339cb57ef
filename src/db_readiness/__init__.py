"""Database readiness check package."""

from db_readiness.config import REQUIRED_DATABASE_URLS, DataSourceConfig, Settings, get_settings
from db_readiness.orchestrator import ReadinessCheck
from db_readiness.results import CheckResult, ReadinessReport
from db_readiness.version_gate import VersionInfo, check_version, get_database_type

__all__ = [
    "REQUIRED_DATABASE_URLS",
    "CheckResult",
    "DataSourceConfig",
    "ReadinessCheck",
    "ReadinessReport",
    "Settings",
    "VersionInfo",
    "check_version",
    "get_database_type",
    "get_settings",
]
