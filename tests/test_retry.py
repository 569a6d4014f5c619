"""Retry policy: decisions, backoff bounds and attempt accounting."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from tyrell.errors import APIStatusError, DecodeError, NetworkError, RateLimitError
from tyrell.retry import (
    RetryPolicy,
    _compute_backoff_delay,
    retry_async,
    retry_call,
    should_retry,
)

pytestmark = pytest.mark.unit


def _status(code: int, **kwargs: object) -> APIStatusError:
    return APIStatusError(f"status {code}", status_code=code, body="", **kwargs)  # type: ignore[arg-type]


class Flaky:
    """Callable failing with *errors* in order, then returning "ok"."""

    def __init__(self, *errors: Exception) -> None:
        self.errors = list(errors)
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return "ok"


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (_status(429), True),
        (_status(529), True),
        (_status(500), True),
        (_status(400), False),
        (_status(401), False),
        (_status(400, retryable=True), True),
        (NetworkError("down"), True),
        (httpx.ConnectTimeout("slow"), True),
        (DecodeError("bad json"), False),
        (ValueError("bug"), False),
    ],
)
def test_should_retry(exc: BaseException, expected: bool) -> None:
    assert should_retry(exc) is expected


def test_should_retry_never_retries_cancellation() -> None:
    assert should_retry(asyncio.CancelledError()) is False


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_attempts": 0},
        {"initial_delay_s": -1},
        {"backoff_multiplier": 0},
        {"max_delay_s": -1},
        {"max_elapsed_s": -1},
    ],
)
def test_policy_validation(kwargs: dict[str, float]) -> None:
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)  # type: ignore[arg-type]


def test_backoff_grows_and_is_capped_without_jitter() -> None:
    policy = RetryPolicy(initial_delay_s=1.0, backoff_multiplier=2.0, max_delay_s=3.0, jitter=False)

    delays = [_compute_backoff_delay(policy, retry_index=i) for i in (1, 2, 3, 4)]

    assert delays == [1.0, 2.0, 3.0, 3.0]


def test_jittered_backoff_stays_within_base() -> None:
    policy = RetryPolicy(initial_delay_s=1.0, max_delay_s=1.0, jitter=True)

    for _ in range(20):
        assert 0.0 <= _compute_backoff_delay(policy, retry_index=1) <= 1.0


def test_default_policy_makes_a_single_attempt() -> None:
    fn = Flaky(_status(503))

    with pytest.raises(APIStatusError):
        retry_call(fn, policy=RetryPolicy(), sleep=lambda _s: None)

    assert fn.calls == 1


def test_retry_call_retries_transient_failures() -> None:
    slept: list[float] = []
    fn = Flaky(NetworkError("reset"), _status(503))
    policy = RetryPolicy(max_attempts=3, initial_delay_s=0.1, jitter=False)

    assert retry_call(fn, policy=policy, sleep=slept.append) == "ok"
    assert fn.calls == 3
    assert slept == [0.1, 0.2]


def test_retry_call_does_not_retry_client_errors() -> None:
    fn = Flaky(_status(400))

    with pytest.raises(APIStatusError):
        retry_call(fn, policy=RetryPolicy(max_attempts=5), sleep=lambda _s: None)

    assert fn.calls == 1


def test_retry_call_gives_up_after_max_attempts() -> None:
    fn = Flaky(_status(503), _status(503), _status(503))

    with pytest.raises(APIStatusError):
        retry_call(fn, policy=RetryPolicy(max_attempts=2, jitter=False), sleep=lambda _s: None)

    assert fn.calls == 2


def test_retry_after_sets_the_minimum_delay() -> None:
    slept: list[float] = []
    fn = Flaky(RateLimitError("slow down", status_code=429, body="", retry_after_s=2.5))
    policy = RetryPolicy(max_attempts=2, initial_delay_s=0.1, jitter=False)

    retry_call(fn, policy=policy, sleep=slept.append)

    assert slept == [2.5]


def test_max_elapsed_caps_the_delay() -> None:
    slept: list[float] = []
    fn = Flaky(RateLimitError("slow down", status_code=429, body="", retry_after_s=60.0))
    policy = RetryPolicy(max_attempts=2, jitter=False, max_elapsed_s=1.0)

    retry_call(fn, policy=policy, sleep=slept.append)

    assert len(slept) == 1
    assert slept[0] <= 1.0


@pytest.mark.asyncio
async def test_retry_async_retries_then_succeeds() -> None:
    calls = 0

    async def factory() -> str:
        nonlocal calls
        calls += 1
        if calls == 1:
            raise NetworkError("reset")
        return "ok"

    policy = RetryPolicy(max_attempts=2, initial_delay_s=0.0, jitter=False)

    assert await retry_async(factory, policy=policy) == "ok"
    assert calls == 2


@pytest.mark.asyncio
async def test_retry_async_propagates_non_retryable_errors() -> None:
    calls = 0

    async def factory() -> str:
        nonlocal calls
        calls += 1
        raise DecodeError("bad")

    with pytest.raises(DecodeError):
        await retry_async(factory, policy=RetryPolicy(max_attempts=3))

    assert calls == 1
