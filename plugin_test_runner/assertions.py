"""Primitive checks for in-process test bodies.

Each check returns ``None`` or raises ``AssertionFailed``. An explicit message
always replaces the generated one.
"""

from collections.abc import Container
from typing import Any

_MISSING: Any = object()


class AssertionFailed(Exception):
    """Raised when a check does not hold."""

    def __init__(
        self, message: str, *, expected: Any = _MISSING, actual: Any = _MISSING
    ) -> None:
        super().__init__(message)
        self.message = message
        self.expected = expected
        self.actual = actual

    @property
    def has_values(self) -> bool:
        """True when the failure carries compared values."""
        return self.expected is not _MISSING or self.actual is not _MISSING


def assert_true(condition: Any, message: str | None = None) -> None:
    if not condition:
        raise AssertionFailed(message or "Assertion failed: expected a true condition")


def assert_false(condition: Any, message: str | None = None) -> None:
    if condition:
        raise AssertionFailed(
            message or "Assertion failed: expected a false condition"
        )


def assert_equal(actual: Any, expected: Any, message: str | None = None) -> None:
    if actual != expected:
        raise AssertionFailed(
            message or f"Expected {expected!r}, got {actual!r}",
            expected=expected,
            actual=actual,
        )


def assert_not_equal(actual: Any, unexpected: Any, message: str | None = None) -> None:
    if actual == unexpected:
        raise AssertionFailed(
            message or f"Expected a value different from {unexpected!r}",
            actual=actual,
        )


def assert_contains(
    haystack: Container[Any], needle: Any, message: str | None = None
) -> None:
    if needle not in haystack:
        raise AssertionFailed(
            message or f"Expected {haystack!r} to contain {needle!r}",
            expected=needle,
            actual=haystack,
        )


def assert_not_contains(
    haystack: Container[Any], needle: Any, message: str | None = None
) -> None:
    if needle in haystack:
        raise AssertionFailed(
            message or f"Expected {haystack!r} not to contain {needle!r}",
            actual=haystack,
        )


def assert_type(value: Any, expected_type: type, message: str | None = None) -> None:
    if not isinstance(value, expected_type):
        raise AssertionFailed(
            message
            or f"Expected type {expected_type.__name__}, got {type(value).__name__}",
            expected=expected_type,
            actual=type(value),
        )
