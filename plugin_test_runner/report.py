"""Render run results and derive the process exit code."""

import json
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from plugin_test_runner.models.config import RunnerConfig
from plugin_test_runner.models.result import SuiteOutcome, TestResult

log = logging.getLogger(__name__)

RULE = "=" * 60


class ReportWriteError(Exception):
    """Raised when a report cannot be written to its output file."""

    def __init__(self, output: Path, reason: str) -> None:
        super().__init__(f"Could not write report to {output}: {reason}")
        self.output = output
        self.reason = reason


type Renderer = Callable[
    ["AggregateSummary", Sequence[SuiteOutcome], Path | None], None
]


@dataclass(frozen=True, kw_only=True)
class AggregateSummary:
    """Totals across every suite of a run."""

    suites: int
    tests: int
    passed: int
    failed: int
    skipped: int
    errors: int
    success_rate: float

    @property
    def succeeded(self) -> bool:
        return self.failed == 0 and self.errors == 0

    @property
    def exit_code(self) -> int:
        return 0 if self.succeeded else 1

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def success_rate(passed: int, tests: int) -> float:
    """Percentage of passed tests, rounded to one decimal; 0 without tests."""
    if tests == 0:
        return 0.0
    return round(passed / tests * 100, 1)


def compute_summary(outcomes: Sequence[SuiteOutcome]) -> AggregateSummary:
    """Aggregate per-suite summaries."""
    tests = sum(outcome.summary.total for outcome in outcomes)
    passed = sum(outcome.summary.passed for outcome in outcomes)
    return AggregateSummary(
        suites=len(outcomes),
        tests=tests,
        passed=passed,
        failed=sum(outcome.summary.failed for outcome in outcomes),
        skipped=sum(outcome.summary.skipped for outcome in outcomes),
        errors=sum(outcome.summary.errors for outcome in outcomes),
        success_rate=success_rate(passed, tests),
    )


def format_summary(summary: AggregateSummary) -> Sequence[str]:
    """Lines of the aggregate summary block."""
    if summary.succeeded:
        verdict = "✅ All tests passed"
    else:
        verdict = f"❌ {summary.failed} failed, {summary.errors} error(s)"

    return [
        RULE,
        "Test Results Summary",
        RULE,
        f"Suites:  {summary.suites}",
        f"Tests:   {summary.tests}",
        f"Passed:  {summary.passed}",
        f"Failed:  {summary.failed}",
        f"Skipped: {summary.skipped}",
        f"Errors:  {summary.errors}",
        f"Success Rate: {summary.success_rate:g}%",
        RULE,
        verdict,
    ]


def format_suite_details(outcomes: Sequence[SuiteOutcome]) -> Sequence[str]:
    """Per-suite marker lines with one entry per failed or errored test."""
    lines = ["", "Suite Results:"]
    for outcome in outcomes:
        marker = "✅" if outcome.succeeded else "❌"
        lines.append(
            f"{marker} {outcome.suite_name} "
            f"({outcome.summary.passed}/{outcome.summary.total} passed, "
            f"{outcome.duration:.2f}s)"
        )
        for result in outcome.results:
            if result.status not in ("failed", "error"):
                continue
            symbol = "❌" if result.status == "failed" else "❗"
            message, *rest = (result.message or result.status).splitlines() or [""]
            lines.append(f"    {symbol} {result.name}: {message}")
            lines.extend(f"        {line}" for line in rest)
    return lines


def _result_to_dict(result: TestResult) -> dict[str, Any]:
    return {
        "name": result.name,
        "status": result.status,
        "duration": result.duration,
        "message": result.message,
        "details": dict(result.details),
        "timestamp": result.timestamp.isoformat(),
    }


def format_json(
    summary: AggregateSummary, outcomes: Sequence[SuiteOutcome]
) -> dict[str, Any]:
    """Build the structured report document."""
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "summary": summary.to_dict(),
        "results": [
            {
                "suite": outcome.suite_name,
                "path": outcome.source_path,
                "duration": outcome.duration,
                "summary": asdict(outcome.summary),
                "results": [_result_to_dict(result) for result in outcome.results],
            }
            for outcome in outcomes
        ],
    }


def render_summary(
    summary: AggregateSummary, outcomes: Sequence[SuiteOutcome], output: Path | None
) -> None:
    print("\n".join(format_summary(summary)))


def render_detailed(
    summary: AggregateSummary, outcomes: Sequence[SuiteOutcome], output: Path | None
) -> None:
    print("\n".join([*format_summary(summary), *format_suite_details(outcomes)]))


def render_json(
    summary: AggregateSummary, outcomes: Sequence[SuiteOutcome], output: Path | None
) -> None:
    document = json.dumps(format_json(summary, outcomes), indent=2, default=str)
    if output is None:
        print(document)
        return

    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(document + "\n")
    except OSError as e:
        log.error("Failed to write report to %s: %s", output, e)
        print(document)
        raise ReportWriteError(output, str(e)) from e
    log.info("Report written to %s", output)


RENDERERS: Mapping[str, Renderer] = {
    "summary": render_summary,
    "detailed": render_detailed,
    "json": render_json,
}

REPORT_FORMATS = ("summary", "detailed", "json", "junit")


def render(
    report_format: str,
    summary: AggregateSummary,
    outcomes: Sequence[SuiteOutcome],
    output: Path | None = None,
) -> None:
    """Render with the named format; unsupported formats use ``summary``."""
    renderer = RENDERERS.get(report_format)
    if renderer is None:
        log.warning("Report format '%s' is not supported, using summary", report_format)
        render("summary", summary, outcomes, output)
        return
    renderer(summary, outcomes, output)


def generate_report(
    outcomes: Sequence[SuiteOutcome], config: RunnerConfig
) -> AggregateSummary:
    """Render the run results and return the aggregate summary.

    Raises:
        ReportWriteError: If the report file cannot be written; the report
            is printed to stdout instead

    """
    summary = compute_summary(outcomes)
    render(config.report_format, summary, outcomes, config.output)
    return summary
