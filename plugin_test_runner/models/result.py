"""Models for test and suite execution results."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

type TestStatus = Literal["passed", "failed", "skipped", "error"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, kw_only=True)
class TestResult:
    """Outcome of a single test invocation.

    Suites executed as subprocesses produce one synthetic result each, since
    the assertions inside the suite file are not visible to the runner.
    """

    __test__ = False

    name: str
    status: TestStatus
    duration: float
    message: str = ""
    details: Mapping[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True, kw_only=True)
class SuiteSummary:
    """Status counts for a sequence of test results."""

    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    errors: int = 0

    @classmethod
    def from_results(cls, results: Sequence[TestResult]) -> "SuiteSummary":
        """Count results by status."""
        statuses = [result.status for result in results]
        return cls(
            total=len(statuses),
            passed=statuses.count("passed"),
            failed=statuses.count("failed"),
            skipped=statuses.count("skipped"),
            errors=statuses.count("error"),
        )


@dataclass(frozen=True, kw_only=True)
class SuiteOutcome:
    """Result container for one suite run."""

    suite_name: str
    source_path: str
    duration: float
    results: Sequence[TestResult]
    summary: SuiteSummary

    @classmethod
    def assemble(
        cls,
        suite_name: str,
        source_path: str,
        duration: float,
        results: Sequence[TestResult],
    ) -> "SuiteOutcome":
        """Build an outcome whose summary is derived from its results."""
        results = tuple(results)
        return cls(
            suite_name=suite_name,
            source_path=source_path,
            duration=duration,
            results=results,
            summary=SuiteSummary.from_results(results),
        )

    @property
    def succeeded(self) -> bool:
        """True when no result failed or errored."""
        return self.summary.failed == 0 and self.summary.errors == 0
