"""Discover Nushell suite files in the test tree."""

import logging
from collections.abc import Sequence
from pathlib import Path

from plugin_test_runner.models.suite import SuiteDescriptor

log = logging.getLogger(__name__)

SUITE_GROUPS: Sequence[str] = ("commands", "integration", "security", "performance")
SUITE_MARKER = ".nu"
EXCLUDED_FILES = frozenset({"setup.nu", "config.nu", "mod.nu", "runner.nu"})


class UnknownSuiteError(Exception):
    """Raised when a suite group name is not registered."""

    def __init__(self, name: str, valid: Sequence[str]) -> None:
        super().__init__(
            f"Unknown suite '{name}'. Valid suites: {', '.join(['all', *valid])}"
        )
        self.name = name
        self.valid = valid


def resolve_suite_groups(name: str) -> Sequence[str]:
    """Map a ``--suite`` value to the suite groups it selects."""
    if name == "all":
        return SUITE_GROUPS
    if name in SUITE_GROUPS:
        return (name,)
    raise UnknownSuiteError(name, SUITE_GROUPS)


def is_suite_file(path: Path) -> bool:
    """Check the naming convention for suite files."""
    return (
        path.name.endswith(SUITE_MARKER)
        and path.name not in EXCLUDED_FILES
        and path.is_file()
    )


def discover_suites(directory: Path, *, group: str = "") -> Sequence[SuiteDescriptor]:
    """Find suite files directly under a directory.

    Args:
        directory: Directory to scan (not recursed)
        group: Suite group recorded on each descriptor

    Returns:
        Suite descriptors in filesystem enumeration order; empty when the
        directory is absent or unreadable.

    """
    try:
        entries = list(directory.iterdir())
    except OSError as e:
        log.debug("Cannot read suite directory %s: %s", directory, e)
        return []

    suites = [
        SuiteDescriptor(
            file=entry.name,
            suite_name=entry.name.removesuffix(SUITE_MARKER),
            path=entry,
            group=group,
        )
        for entry in entries
        if is_suite_file(entry)
    ]
    log.debug("Discovered %d suite(s) in %s", len(suites), directory)
    return suites


def discover_all(test_dir: Path, groups: Sequence[str]) -> Sequence[SuiteDescriptor]:
    """Discover suites for each group, in group order."""
    return [
        suite
        for group in groups
        for suite in discover_suites(test_dir / group, group=group)
    ]
