"""Configuration models for the runner and the plugin lifecycle."""

import os
import re
import sys
import tempfile
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator

from plugin_test_runner.models.base import Model

DURATION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([a-z]*)\s*$")

DURATION_UNITS = {
    "": 1.0,
    "ms": 0.001,
    "s": 1.0,
    "sec": 1.0,
    "secs": 1.0,
    "second": 1.0,
    "seconds": 1.0,
    "m": 60.0,
    "min": 60.0,
    "mins": 60.0,
    "minute": 60.0,
    "minutes": 60.0,
    "h": 3600.0,
    "hr": 3600.0,
    "hour": 3600.0,
    "hours": 3600.0,
}


def parse_duration(value: str | float | int) -> float:
    """Convert a duration such as ``30sec``, ``5m`` or ``500ms`` to seconds.

    Bare numbers are taken as seconds.

    Raises:
        ValueError: If the value is not a positive duration

    """
    if isinstance(value, int | float):
        seconds = float(value)
    else:
        match = DURATION_PATTERN.match(value.lower())
        if match is None or match.group(2) not in DURATION_UNITS:
            raise ValueError(f"Invalid duration: '{value}'")
        seconds = float(match.group(1)) * DURATION_UNITS[match.group(2)]

    if seconds <= 0:
        raise ValueError(f"Duration must be positive: '{value}'")
    return seconds


def user_config_dir(
    environ: Mapping[str, str] = os.environ, platform: str = sys.platform
) -> Path:
    """Per-user configuration directory as the plugin resolves it.

    ``%APPDATA%`` on Windows, ``~/Library/Application Support`` on macOS,
    otherwise ``$XDG_CONFIG_HOME`` when it is an absolute path, else
    ``~/.config``.
    """
    if platform == "win32":
        appdata = environ.get("APPDATA")
        return Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
    if platform == "darwin":
        return Path.home() / "Library" / "Application Support"

    xdg = environ.get("XDG_CONFIG_HOME", "")
    if xdg and Path(xdg).is_absolute():
        return Path(xdg)
    return Path.home() / ".config"


def _default_plugin_config_dir() -> Path:
    return user_config_dir() / "nushell" / "plugins" / "secret"


def _default_temp_dir() -> Path:
    return Path(tempfile.gettempdir()) / "nu_plugin_secret_test"


def _default_backup_dir() -> Path:
    return Path(tempfile.gettempdir()) / "nu_plugin_secret_config_backup"


class LifecycleConfig(Model):
    """Paths and commands used to manage the plugin under test."""

    project_root: Path = Field(default_factory=Path.cwd)
    nu_path: str = "nu"
    plugin_name: str = "secret"
    binary_name: str = "nu_plugin_secret"
    build_command: Sequence[str] = ("cargo", "build", "--release")
    plugin_config_dir: Path = Field(default_factory=_default_plugin_config_dir)
    temp_dir: Path = Field(default_factory=_default_temp_dir)
    backup_dir: Path = Field(default_factory=_default_backup_dir)
    command_timeout: float = Field(default=60.0, gt=0)
    build_timeout: float = Field(default=1800.0, gt=0)

    @property
    def binary_path(self) -> Path:
        """Location of the release build of the plugin."""
        return self.project_root / "target" / "release" / self.binary_name


class RunnerConfig(Model):
    """Immutable snapshot of run options, built once at startup."""

    suite: str = "all"
    test_dir: Path = Field(default_factory=lambda: Path("tests") / "nushell")
    timeout: float = Field(default=30.0, description="Per-suite timeout (seconds)")
    max_parallel_jobs: int = Field(default=1, ge=1)
    verbose: bool = False
    stop_on_failure: bool = False
    report_format: str = "detailed"
    output: Path | None = None
    lifecycle: LifecycleConfig = Field(default_factory=LifecycleConfig)

    @field_validator("timeout", mode="before")
    @classmethod
    def _parse_timeout(cls, value: Any) -> float:
        return parse_duration(value)
