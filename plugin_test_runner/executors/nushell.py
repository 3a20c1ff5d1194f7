"""Executor running suite files with the Nushell interpreter."""

import logging
import os
from dataclasses import dataclass

from plugin_test_runner.executors.base import SuiteExecutor, SuiteLoadError
from plugin_test_runner.models.config import LifecycleConfig
from plugin_test_runner.models.suite import SuiteDescriptor
from plugin_test_runner.shell import CommandResult, run_command

log = logging.getLogger(__name__)

TEST_DIR_ENV = "NU_PLUGIN_SECRET_TEST_DIR"


@dataclass(frozen=True, kw_only=True)
class NushellExecutor(SuiteExecutor):
    """Spawns ``nu <suite file>`` from the suite's directory."""

    config: LifecycleConfig

    async def execute(self, suite: SuiteDescriptor, timeout: float) -> CommandResult:
        """Run the suite file in its own ``nu`` process."""
        if not suite.path.is_file():
            raise SuiteLoadError(f"Suite file not found: {suite.path}")
        if not os.access(suite.path, os.R_OK):
            raise SuiteLoadError(f"Suite file not readable: {suite.path}")

        log.debug("Starting suite %s with %s", suite.file, self.config.nu_path)
        try:
            return await run_command(
                [self.config.nu_path, str(suite.path)],
                cwd=suite.path.parent,
                env={TEST_DIR_ENV: str(self.config.temp_dir)},
                timeout=timeout,
            )
        except OSError as e:
            raise SuiteLoadError(f"Failed to start suite {suite.file}: {e}") from e
