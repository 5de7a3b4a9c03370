"""
Awaitable / callback bridge.

Every public client method returns an `asyncio.Future` and optionally accepts a
legacy node-style `callback(error, value)`. Both consumers observe the same
single execution of the underlying operation:

    fut = call_when_done(do_request(), callback)
    value = await fut            # raises on failure
    # callback(None, value) or callback(error, None), exactly once

The callback is attached as a done-callback, so it only fires once the future
has settled and it never causes the operation to run again.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional, TypeVar

__all__ = ["Callback", "call_when_done"]

T = TypeVar("T")

Callback = Callable[[Optional[BaseException], Any], Any]


def call_when_done(
    awaitable: Awaitable[T],
    callback: Optional[Callback] = None,
) -> "asyncio.Future[T]":
    """
    Schedule `awaitable` and return its future; deliver the outcome to
    `callback` (if given) after it settles.

    Must be called with a running event loop.
    """
    future = asyncio.ensure_future(awaitable)
    if callback is not None:
        future.add_done_callback(lambda f: _deliver(f, callback))
    return future


def _deliver(future: "asyncio.Future[Any]", callback: Callback) -> None:
    if future.cancelled():
        callback(asyncio.CancelledError(), None)
        return
    # Reading the exception here also marks it as retrieved, so an unawaited
    # future whose error went to the callback does not log "never retrieved".
    exc = future.exception()
    if exc is not None:
        callback(exc, None)
    else:
        callback(None, future.result())
