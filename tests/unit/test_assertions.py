"""Tests for the assertion library."""

import pytest

from plugin_test_runner.assertions import (
    AssertionFailed,
    assert_contains,
    assert_equal,
    assert_false,
    assert_not_contains,
    assert_not_equal,
    assert_true,
    assert_type,
)


def test_passing_assertions_return_none() -> None:
    """Checks that hold return normally."""
    assert assert_true(1 == 1) is None
    assert assert_false("") is None
    assert assert_equal("a", "a") is None
    assert assert_not_equal(1, 2) is None
    assert assert_contains("<redacted:string>", "redacted") is None
    assert assert_not_contains([1, 2], 3) is None
    assert assert_type("value", str) is None


def test_assert_equal_default_message() -> None:
    """Generated message names expected and actual values."""
    with pytest.raises(AssertionFailed, match="Expected 2, got 1") as exc_info:
        assert_equal(1, 2)

    assert exc_info.value.expected == 2
    assert exc_info.value.actual == 1
    assert exc_info.value.has_values


def test_explicit_message_takes_precedence() -> None:
    """An explicit message replaces the generated one."""
    with pytest.raises(AssertionFailed) as exc_info:
        assert_equal("a", "b", "wrapped value must be redacted")

    assert exc_info.value.message == "wrapped value must be redacted"
    assert str(exc_info.value) == "wrapped value must be redacted"


@pytest.mark.parametrize(
    ("check", "args", "expected"),
    [
        (assert_true, (False,), "expected a true condition"),
        (assert_false, (True,), "expected a false condition"),
        (assert_not_equal, (1, 1), "different from 1"),
        (assert_contains, ("secret", "x"), "to contain 'x'"),
        (assert_not_contains, ("secret", "sec"), "not to contain 'sec'"),
        (assert_type, (1, str), "Expected type str, got int"),
    ],
)
def test_failing_assertions_raise(check, args, expected: str) -> None:
    """Each check raises AssertionFailed with a descriptive message."""
    with pytest.raises(AssertionFailed, match=expected):
        check(*args)


def test_condition_failure_has_no_values() -> None:
    """Boolean checks do not carry compared values."""
    with pytest.raises(AssertionFailed) as exc_info:
        assert_true(False)

    assert not exc_info.value.has_values
