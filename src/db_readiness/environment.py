"""Required environment variable validation."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence

from db_readiness.errors import ConfigurationError
from db_readiness.results import CheckResult


def validate_environment(
    values: Mapping[str, str | None],
    required: Sequence[str],
    on_result: Callable[[CheckResult], None] | None = None,
) -> list[CheckResult]:
    """Check every required name and raise with all missing names at once."""
    results: list[CheckResult] = []
    for name in required:
        if values.get(name):
            result = CheckResult(label=name, passed=True, message=f"{name} is defined.")
        else:
            result = CheckResult(label=name, passed=False, message=f"{name} is not defined.")
        results.append(result)
        if on_result is not None:
            on_result(result)

    missing = [result.label for result in results if not result.passed]
    if missing:
        raise ConfigurationError(missing)
    return results
