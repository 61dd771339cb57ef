"""Status line output and structured logging helpers."""

from __future__ import annotations

import json
import logging
from typing import Any

from rich.console import Console
from rich.markup import escape
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from db_readiness.results import CheckResult

_audit_logger = logging.getLogger("db_readiness.audit")

_REDACTED = "***REDACTED***"
_SENSITIVE_KEYS = {"password", "secret", "token", "api_key", "authorization"}


def redact_url(url: str) -> str:
    """Render a database URL with its password hidden."""
    if not url:
        return url
    try:
        return make_url(url).render_as_string(hide_password=True)
    except (ArgumentError, ValueError):
        return _REDACTED


def _redact_fields(fields: dict[str, Any]) -> dict[str, Any]:
    redacted: dict[str, Any] = {}
    for key, value in fields.items():
        normalized = key.lower().replace("-", "_")
        if normalized in _SENSITIVE_KEYS:
            redacted[key] = _REDACTED
        elif normalized.endswith("url") and isinstance(value, str):
            redacted[key] = redact_url(value)
        else:
            redacted[key] = value
    return redacted


def log_structured_event(event_type: str, **fields: Any) -> str:
    payload = _redact_fields({"event_type": event_type, **fields})
    serialized = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    _audit_logger.info(serialized)
    return serialized


class StatusReporter:
    """Prints colorized pass/fail lines as each step completes."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(highlight=False)

    def success(self, message: str) -> None:
        self.console.print(f"[bright_green]✓ {escape(message)}[/bright_green]")

    def error(self, message: str) -> None:
        self.console.print(f"[bright_red]✗ {escape(message)}[/bright_red]")

    def info(self, message: str) -> None:
        self.console.print(f"[bright_blue]{escape(message)}[/bright_blue]")

    def output(self, text: str) -> None:
        """Re-emit external tool output verbatim."""
        if text:
            self.console.out(text, end="" if text.endswith("\n") else "\n", highlight=False)

    def record(self, result: CheckResult) -> None:
        if result.passed:
            self.success(result.message)
        else:
            self.error(result.message)
        log_structured_event(
            "readiness_step", label=result.label, passed=result.passed, message=result.message
        )
