"""
Unit tests for the HTTP-side conflict retry policy.
"""

import pytest

from taskboard.crosscutting.exceptions import (
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from taskboard.interfaces.api.http.conflict_retry import (
    create_conflict_retry,
    is_retryable,
)

pytestmark = pytest.mark.unit


class _Flaky:
    def __init__(self, failures, error):
        self.failures = failures
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "ok"


def _retry(attempts=3):
    return create_conflict_retry(max_attempts=attempts, base_delay=0, max_delay=0.01)


def test_only_conflicts_are_retryable():
    assert is_retryable(ConflictError("busy")) is True
    assert is_retryable(StorageError("down")) is False
    assert is_retryable(ValidationError("bad")) is False
    assert is_retryable(NotFoundError("Task", "x")) is False
    assert is_retryable(RuntimeError("other")) is False


def test_conflict_is_retried_until_success():
    fn = _Flaky(2, ConflictError("busy"))
    assert _retry()(fn)() == "ok"
    assert fn.calls == 3


def test_gives_up_after_max_attempts_with_original_error():
    fn = _Flaky(10, ConflictError("busy"))
    with pytest.raises(ConflictError):
        _retry(attempts=2)(fn)()
    assert fn.calls == 2


@pytest.mark.parametrize(
    "error", [StorageError("down"), ValidationError("bad", field="title")]
)
def test_non_retryable_errors_fail_fast(error):
    fn = _Flaky(1, error)
    with pytest.raises(type(error)):
        _retry()(fn)()
    assert fn.calls == 1


@pytest.mark.parametrize(
    "kwargs",
    [{"max_attempts": 0}, {"base_delay": -1}, {"max_delay": 0}],
)
def test_invalid_policy_is_rejected(kwargs):
    with pytest.raises(ValueError):
        create_conflict_retry(**kwargs)
