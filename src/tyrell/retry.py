"""Bounded retry with explicit error contracts.

The default policy makes a single attempt: callers opt into retries by
passing a ``RetryPolicy`` with ``max_attempts > 1`` to ``Config``.

Design goals:
- Small API surface
- Explicit state (policy + attempt counters)
- No brittle substring matching for retry decisions
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
import random
import time
from typing import TYPE_CHECKING, TypeVar

import httpx

from tyrell._http import RETRYABLE_STATUS_CODES
from tyrell.errors import APIStatusError, NetworkError, _walk_exception_chain

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry policy with exponential backoff and optional jitter."""

    max_attempts: int = 1
    initial_delay_s: float = 0.5
    backoff_multiplier: float = 2.0
    max_delay_s: float = 5.0
    jitter: bool = True  # "full jitter" when enabled
    max_elapsed_s: float | None = 30.0

    def __post_init__(self) -> None:
        """Validate invariants to keep retry behavior predictable."""
        if self.max_attempts < 1:
            raise ValueError("RetryPolicy.max_attempts must be >= 1")
        if self.initial_delay_s < 0:
            raise ValueError("RetryPolicy.initial_delay_s must be >= 0")
        if self.backoff_multiplier <= 0:
            raise ValueError("RetryPolicy.backoff_multiplier must be > 0")
        if self.max_delay_s < 0:
            raise ValueError("RetryPolicy.max_delay_s must be >= 0")
        if self.max_elapsed_s is not None and self.max_elapsed_s < 0:
            raise ValueError("RetryPolicy.max_elapsed_s must be >= 0 or None")


def _retry_after_from_error(exc: BaseException) -> float | None:
    if isinstance(exc, APIStatusError):
        v = exc.retry_after_s
        if isinstance(v, (int, float)) and v >= 0:
            return float(v)
    return None


def _is_transient_network_error(exc: BaseException) -> bool:
    for e in _walk_exception_chain(exc):
        if isinstance(e, (TimeoutError, asyncio.TimeoutError)):
            return True
        if isinstance(e, (httpx.TimeoutException, httpx.RequestError)):
            return True
    return False


def should_retry(exc: BaseException) -> bool:
    """Return True when a send failure should be retried.

    Contract:
    - Cancellation is never retried.
    - APIStatusError is retried only when marked retryable or when its
      status code is in the retryable set.
    - Network failures (timeouts, connection errors) are retried.
    """
    if isinstance(exc, asyncio.CancelledError):
        return False

    if isinstance(exc, APIStatusError):
        return (exc.retryable is True) or exc.status_code in RETRYABLE_STATUS_CODES

    if isinstance(exc, NetworkError):
        return True

    return _is_transient_network_error(exc)


def _compute_backoff_delay(policy: RetryPolicy, *, retry_index: int) -> float:
    # retry_index starts at 1 for the first retry sleep.
    base = policy.initial_delay_s * (
        policy.backoff_multiplier ** max(0, retry_index - 1)
    )
    base = min(policy.max_delay_s, base)
    if base <= 0:
        return 0.0
    if not policy.jitter:
        return base
    # Full jitter: random in [0, base] to avoid thundering herd.
    return random.random() * base  # noqa: S311


def _next_delay(
    policy: RetryPolicy, exc: BaseException, *, attempt: int, start: float
) -> float | None:
    """Return the sleep before the next attempt, or None to give up."""
    if not should_retry(exc) or attempt >= policy.max_attempts:
        return None

    delay = _compute_backoff_delay(policy, retry_index=attempt)
    retry_after = _retry_after_from_error(exc)
    if retry_after is not None:
        delay = max(delay, retry_after)

    if policy.max_elapsed_s is not None:
        remaining = policy.max_elapsed_s - (time.monotonic() - start)
        if remaining <= 0:
            return None
        delay = min(delay, remaining)
    return delay


def retry_call(
    fn: Callable[[], T],
    *,
    policy: RetryPolicy,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run a blocking callable with bounded retries."""
    start = time.monotonic()
    for attempt in range(1, policy.max_attempts + 1):
        try:
            return fn()
        except Exception as exc:
            delay = _next_delay(policy, exc, attempt=attempt, start=start)
            if delay is None:
                raise
            logger.debug("Retrying after %s (attempt %d, sleep %.2fs)", exc, attempt, delay)
            if delay > 0:
                sleep(delay)

    # Loop always returns or raises.
    raise RuntimeError("retry_call exhausted without an exception")  # pragma: no cover


async def retry_async(
    factory: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
) -> T:
    """Run an async factory with bounded retries."""
    start = time.monotonic()
    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await factory()
        except Exception as exc:
            delay = _next_delay(policy, exc, attempt=attempt, start=start)
            if delay is None:
                raise
            logger.debug("Retrying after %s (attempt %d, sleep %.2fs)", exc, attempt, delay)
            if delay > 0:
                await asyncio.sleep(delay)

    raise RuntimeError("retry_async exhausted without an exception")  # pragma: no cover
