"""Suite executors."""

from plugin_test_runner.executors.base import SuiteExecutor, SuiteLoadError
from plugin_test_runner.executors.nushell import NushellExecutor

__all__ = ["NushellExecutor", "SuiteExecutor", "SuiteLoadError"]
