from __future__ import annotations

from typing import List

import pytest

from fieldguard.errors import FatalStoreError, TransientStoreError, WriteConflict
from fieldguard.execution.retry import RetryPolicy


def _run(policy: RetryPolicy, failures: List[Exception], sleeps: List[float]) -> int:
    calls = 0
    for attempt in policy.retrying(sleep=sleeps.append):
        with attempt:
            calls += 1
            if failures:
                raise failures.pop(0)
    return calls


def test_transient_errors_are_retried_until_success() -> None:
    sleeps: List[float] = []
    policy = RetryPolicy(max_attempts=5, base_delay_seconds=0.1, max_delay_seconds=2.0)

    calls = _run(policy, [TransientStoreError("throttled"), TransientStoreError("throttled")], sleeps)

    assert calls == 3
    assert len(sleeps) == 2
    assert 0 <= sleeps[0] <= policy.backoff_ceiling(1)
    assert 0 <= sleeps[1] <= policy.backoff_ceiling(2)


def test_retries_stop_at_max_attempts_and_reraise() -> None:
    sleeps: List[float] = []
    policy = RetryPolicy(max_attempts=3)

    with pytest.raises(TransientStoreError):
        _run(policy, [TransientStoreError(str(i)) for i in range(10)], sleeps)

    assert len(sleeps) == 2


@pytest.mark.parametrize("error", [WriteConflict("newer"), FatalStoreError("ValidationException")])
def test_conflicts_and_fatal_errors_are_not_retried(error: Exception) -> None:
    sleeps: List[float] = []

    with pytest.raises(type(error)):
        _run(RetryPolicy(), [error], sleeps)

    assert sleeps == []


def test_backoff_ceiling_grows_exponentially_and_is_capped() -> None:
    policy = RetryPolicy(base_delay_seconds=0.1, max_delay_seconds=2.0)

    assert policy.backoff_ceiling(1) == pytest.approx(0.1)
    assert policy.backoff_ceiling(2) == pytest.approx(0.2)
    assert policy.backoff_ceiling(4) == pytest.approx(0.8)
    assert policy.backoff_ceiling(10) == pytest.approx(2.0)


def test_before_sleep_hook_sees_each_retry() -> None:
    seen: List[int] = []
    policy = RetryPolicy(max_attempts=4, base_delay_seconds=0.0, max_delay_seconds=0.0)
    failures = [TransientStoreError("a"), TransientStoreError("b")]

    for attempt in policy.retrying(on_retry=lambda state: seen.append(state.attempt_number), sleep=lambda _: None):
        with attempt:
            if failures:
                raise failures.pop(0)

    assert seen == [1, 2]


@pytest.mark.parametrize(
    "kwargs",
    [{"max_attempts": 0}, {"base_delay_seconds": -1.0}, {"max_delay_seconds": -0.5}],
)
def test_invalid_policy_is_rejected(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)
