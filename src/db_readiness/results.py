"""Per-step check results and the aggregate run report."""

from __future__ import annotations

from dataclasses import dataclass, field

from db_readiness.errors import ReadinessError


@dataclass(frozen=True)
class CheckResult:
    label: str
    passed: bool
    message: str


@dataclass
class ReadinessReport:
    results: list[CheckResult] = field(default_factory=list)
    error: ReadinessError | None = None

    @property
    def passed(self) -> bool:
        return self.error is None

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1

    def failures(self) -> list[CheckResult]:
        return [result for result in self.results if not result.passed]
