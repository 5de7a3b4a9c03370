"""
Retry helper with a fixed base delay plus bounded jitter.

Each retry waits `interval + U[0, jitter)` seconds. The delay does not grow
with the attempt number: independent clients that share the same base interval
are spread out by the jitter alone, which is enough to avoid synchronized
retry storms against a rate-limited endpoint.

Example
-------
from alchemy_web3.utils.retry import aretry_call
from alchemy_web3.errors import is_transient

async def flaky():
    ...

result = await aretry_call(flaky, retries=3, interval=1.0, jitter=0.25, retry_if=is_transient)

Notes
-----
- Only exceptions for which `retry_if` returns True are retried; everything
  else propagates immediately.
- When retries are exhausted the last exception is re-raised unchanged.
- `on_retry` callback receives (attempt_index, exception, sleep_seconds).
"""

from __future__ import annotations

import asyncio
import math
import random
from typing import Any, Awaitable, Callable, Optional, TypeVar

__all__ = [
    "retry_delay",
    "aretry_call",
]

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[Any]]


def retry_delay(
    interval: float,
    jitter: float,
    *,
    rand: Callable[[], float] = random.random,
) -> float:
    """
    Delay (same unit as the inputs) before the next attempt.

    The result lies in [interval, interval + jitter); with no jitter it is `interval`.
    """
    if interval < 0 or jitter < 0:
        raise ValueError("interval and jitter must be non-negative")
    upper = interval + jitter
    delay = interval + rand() * jitter
    # Float rounding can land on the upper bound when rand() is just below 1.
    if jitter > 0 and delay >= upper:
        delay = max(interval, math.nextafter(upper, interval))
    return delay


async def aretry_call(
    fn: Callable[..., Awaitable[T]],
    *args: Any,
    retries: int = 3,
    interval: float = 1.0,
    jitter: float = 0.25,
    retry_if: Callable[[BaseException], bool] = lambda exc: True,
    on_retry: Optional[Callable[[int, BaseException, float], None]] = None,
    sleep: Sleep = asyncio.sleep,
    rand: Callable[[], float] = random.random,
    **kwargs: Any,
) -> T:
    """
    Await `fn(*args, **kwargs)`, retrying up to `retries` times.

    N retries means at most N+1 calls to `fn`. `interval` and `jitter` are in
    seconds (they are handed to `sleep` as-is).
    """
    if retries < 0:
        raise ValueError("retries must be non-negative")

    attempt = 0
    while True:
        attempt += 1
        try:
            return await fn(*args, **kwargs)
        except Exception as exc:
            if not retry_if(exc) or attempt > retries:
                raise

            sleep_s = retry_delay(interval, jitter, rand=rand)
            if on_retry is not None:
                on_retry(attempt, exc, sleep_s)
            await sleep(sleep_s)
