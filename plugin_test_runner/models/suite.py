"""Models describing discovered test suites."""

from pathlib import Path

from pydantic import Field

from plugin_test_runner.models.base import Model


class SuiteDescriptor(Model):
    """A single suite file scheduled as one isolated job."""

    file: str = Field(..., description="File name of the suite")
    suite_name: str = Field(..., description="Suite name (file name without suffix)")
    path: Path = Field(..., description="Full path to the suite file")
    group: str = Field(default="", description="Suite group the file belongs to")
