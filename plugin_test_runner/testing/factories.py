"""Test factories for generating test data."""

from collections.abc import Sequence

from polyfactory import Use
from polyfactory.factories import DataclassFactory
from polyfactory.factories.pydantic_factory import ModelFactory

from plugin_test_runner.models.result import SuiteOutcome, TestResult, TestStatus
from plugin_test_runner.models.suite import SuiteDescriptor
from plugin_test_runner.shell import CommandResult


class TestResultFactory(DataclassFactory[TestResult]):
    """Factory for TestResult."""

    __model__ = TestResult

    status = "passed"
    message = ""
    details = Use(dict)


class SuiteDescriptorFactory(ModelFactory[SuiteDescriptor]):
    """Factory for SuiteDescriptor."""


class CommandResultFactory(DataclassFactory[CommandResult]):
    """Factory for CommandResult, successful and silent by default."""

    __model__ = CommandResult

    args = ("nu", "-c", "secret info")
    returncode = 0
    stdout = ""
    stderr = ""
    duration = 0.01


def build_outcome(
    suite_name: str, statuses: Sequence[TestStatus], *, duration: float = 0.1
) -> SuiteOutcome:
    """Build a suite outcome with one generated result per status."""
    return SuiteOutcome.assemble(
        suite_name=suite_name,
        source_path=f"/tests/{suite_name}.nu",
        duration=duration,
        results=[
            TestResultFactory.build(
                name=f"test_{index}",
                status=status,
                message="" if status == "passed" else f"{status} test_{index}",
            )
            for index, status in enumerate(statuses)
        ],
    )
