"""Abstract base class for suite executors."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from plugin_test_runner.models.suite import SuiteDescriptor
from plugin_test_runner.shell import CommandResult


class SuiteLoadError(Exception):
    """Raised when a suite cannot be started or the plugin is unavailable."""


@dataclass(frozen=True, kw_only=True)
class SuiteExecutor(ABC):
    """Runs one suite file as an isolated job.

    The engine only interprets the exit status and captured text of the job,
    so an executor never needs to know what the suite asserts.
    """

    @abstractmethod
    async def execute(self, suite: SuiteDescriptor, timeout: float) -> CommandResult:
        """Run a suite to completion.

        Args:
            suite: Suite to run
            timeout: Seconds before the job is killed

        Returns:
            Captured result of the finished job

        Raises:
            SuiteLoadError: If the job cannot be started
            TimeoutError: If the job exceeds timeout

        """
