"""Execution engine running tests and suites with failure isolation."""

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from plugin_test_runner.executors.base import SuiteExecutor, SuiteLoadError
from plugin_test_runner.models.config import RunnerConfig
from plugin_test_runner.models.result import SuiteOutcome, TestResult
from plugin_test_runner.models.suite import SuiteDescriptor

log = logging.getLogger(__name__)

FILE_EXECUTION = "file_execution"

STATUS_SYMBOLS = {
    "passed": "✅",
    "failed": "❌",
    "error": "❗",
    "skipped": "⏭️",
}

type TestBody = Callable[[], Awaitable[Any] | Any]


async def run_single_test(name: str, body: TestBody, config: RunnerConfig) -> TestResult:
    """Invoke a test body and convert its outcome into a result.

    Any exception raised by the body becomes a ``failed`` result; nothing
    propagates past this function.
    """
    start = time.monotonic()
    try:
        outcome = body()
        if inspect.isawaitable(outcome):
            await outcome
    except Exception as e:
        duration = time.monotonic() - start
        if config.verbose:
            log.info("%s %s: %s", STATUS_SYMBOLS["failed"], name, e)
        return TestResult(
            name=name,
            status="failed",
            duration=duration,
            message=str(e) or type(e).__name__,
            details={"error": e, "type": type(e).__name__},
        )

    duration = time.monotonic() - start
    if config.verbose:
        log.info("%s %s (%.2fs)", STATUS_SYMBOLS["passed"], name, duration)
    return TestResult(name=name, status="passed", duration=duration)


async def run_function_suite(
    name: str,
    tests: Mapping[str, TestBody],
    config: RunnerConfig,
    *,
    source_path: str = "",
) -> SuiteOutcome:
    """Run an in-process set of test functions as one suite.

    With ``stop_on_failure`` the tests after the first failure are reported
    as skipped.
    """
    start = time.monotonic()
    results: list[TestResult] = []
    stopped = False

    for test_name, body in tests.items():
        if stopped:
            results.append(
                TestResult(
                    name=test_name,
                    status="skipped",
                    duration=0.0,
                    message="Skipped after earlier failure",
                )
            )
            continue

        result = await run_single_test(test_name, body, config)
        results.append(result)
        if config.stop_on_failure and result.status != "passed":
            stopped = True

    return SuiteOutcome.assemble(
        suite_name=name,
        source_path=source_path,
        duration=time.monotonic() - start,
        results=results,
    )


def make_batches(
    suites: Sequence[SuiteDescriptor], size: int
) -> Sequence[Sequence[SuiteDescriptor]]:
    """Split suites into consecutive batches of at most ``size``."""
    return [suites[i : i + size] for i in range(0, len(suites), size)]


@dataclass(frozen=True, kw_only=True)
class ExecutionEngine:
    """Runs suite files through an executor, batch by batch."""

    config: RunnerConfig
    executor: SuiteExecutor

    async def run_suites(
        self, suites: Sequence[SuiteDescriptor]
    ) -> Sequence[SuiteOutcome]:
        """Run all suites and return their outcomes in discovery order.

        Members of a batch run concurrently; a batch starts only after the
        previous one has completed.

        Args:
            suites: Suites to run

        Returns:
            One outcome per suite that was started

        """
        if not suites:
            log.info("No suites to run")
            return []

        batches = make_batches(suites, self.config.max_parallel_jobs)
        outcomes: list[SuiteOutcome] = []

        for index, batch in enumerate(batches, start=1):
            log.info(
                "Running batch %d/%d (%d suite(s))", index, len(batches), len(batch)
            )
            results = await asyncio.gather(
                *(self.run_suite(suite) for suite in batch), return_exceptions=True
            )
            batch_outcomes = self._process_results(batch, results)
            outcomes.extend(batch_outcomes)

            if self.config.stop_on_failure and _has_non_passed(batch_outcomes):
                remaining = len(suites) - len(outcomes)
                if remaining:
                    log.warning(
                        "Stopping after batch %d; %d suite(s) not started",
                        index,
                        remaining,
                    )
                break

        log.info("Suite execution completed")
        return outcomes

    async def run_suite(self, suite: SuiteDescriptor) -> SuiteOutcome:
        """Run one suite file and translate its exit status into a result."""
        log.info("Running suite %s (%s)", suite.suite_name, suite.path)
        start = time.monotonic()

        try:
            command = await self.executor.execute(suite, self.config.timeout)
        except SuiteLoadError as e:
            result = _error_result(start, str(e), e)
        except TimeoutError as e:
            result = _error_result(
                start, f"Suite timed out after {self.config.timeout:g} seconds", e
            )
        else:
            duration = time.monotonic() - start
            if command.ok:
                result = TestResult(
                    name=FILE_EXECUTION,
                    status="passed",
                    duration=duration,
                    details={"returncode": command.returncode},
                )
            else:
                result = TestResult(
                    name=FILE_EXECUTION,
                    status="failed",
                    duration=duration,
                    message=command.output
                    or f"Suite exited with code {command.returncode}",
                    details={
                        "returncode": command.returncode,
                        "stdout": command.stdout,
                        "stderr": command.stderr,
                    },
                )
            if self.config.verbose and command.stdout.strip():
                log.info("Output of %s:\n%s", suite.file, command.stdout.rstrip())

        outcome = SuiteOutcome.assemble(
            suite_name=suite.suite_name,
            source_path=str(suite.path),
            duration=time.monotonic() - start,
            results=[result],
        )
        log.info(
            "%s %s: %s (%.2fs)",
            STATUS_SYMBOLS[result.status],
            suite.suite_name,
            result.status,
            outcome.duration,
        )
        return outcome

    def _process_results(
        self,
        batch: Sequence[SuiteDescriptor],
        results: Sequence[SuiteOutcome | BaseException],
    ) -> Sequence[SuiteOutcome]:
        """Turn unexpected exceptions from a batch into error outcomes."""
        outcomes: list[SuiteOutcome] = []

        for suite, result in zip(batch, results, strict=True):
            if isinstance(result, SuiteOutcome):
                outcomes.append(result)
            elif isinstance(result, Exception):
                log.error(
                    "Suite %s execution failed: %s",
                    suite.suite_name,
                    result,
                    exc_info=result,
                )
                outcomes.append(
                    SuiteOutcome.assemble(
                        suite_name=suite.suite_name,
                        source_path=str(suite.path),
                        duration=0.0,
                        results=[
                            TestResult(
                                name=FILE_EXECUTION,
                                status="error",
                                duration=0.0,
                                message=str(result) or type(result).__name__,
                                details={"error": result},
                            )
                        ],
                    )
                )
            else:
                raise result

        return outcomes


def _error_result(start: float, message: str, error: Exception) -> TestResult:
    return TestResult(
        name=FILE_EXECUTION,
        status="error",
        duration=time.monotonic() - start,
        message=message,
        details={"error": error, "type": type(error).__name__},
    )


def _has_non_passed(outcomes: Sequence[SuiteOutcome]) -> bool:
    return any(
        result.status != "passed" for outcome in outcomes for result in outcome.results
    )
