"""
Push subscriptions over a subscription-capable provider (`eth_subscribe`).

`Subscription` is the handle returned to callers. It owns the lifecycle

    UNSUBSCRIBED -> SUBSCRIBING -> ACTIVE -> UNSUBSCRIBED   (unsubscribe())
                                          -> ERROR          (transport failure)

and delivers events two ways: to the optional `(error, event)` listener, and
through async iteration:

    sub = await Subscription(provider, "newBlockHeaders").subscribe()
    async for header in sub:
        ...

The iterator is lazy, unbounded and single-pass. It ends after `unsubscribe()`
and raises the transport error after a failure. `ERROR` is terminal; a new
subscription needs a new handle. When a listener is given, the iterator only
sees events that arrive after iteration starts; a listener-only handle keeps
nothing buffered. Exceptions raised by the listener are logged and do not
affect the subscription.

Only the types in `KNOWN_SUBSCRIPTIONS` are recognized. Any other type is sent
as-is after a warning; the warning goes through a context-local sink so a
caller can intercept it for the duration of one subscribe call (see
`warning_sink`).
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from ..errors import ConfigurationError, InvalidSubscriptionArgs, raise_for_jsonrpc_response
from ..types import SubscriptionProvider, Web3Callback, next_request_id

log = logging.getLogger(__name__)

UNKNOWN_SUBSCRIPTION_WARNING = " doesn't exist. Subscribing anyway."


@dataclass(frozen=True)
class SubscriptionSpec:
    subscription_name: str  # first eth_subscribe parameter
    params: int  # number of extra arguments the type takes


KNOWN_SUBSCRIPTIONS: Dict[str, SubscriptionSpec] = {
    "logs": SubscriptionSpec("logs", 1),
    "newBlockHeaders": SubscriptionSpec("newHeads", 0),
    "pendingTransactions": SubscriptionSpec("newPendingTransactions", 0),
    "syncing": SubscriptionSpec("syncing", 0),
}


class SubscriptionState(str, enum.Enum):
    UNSUBSCRIBED = "unsubscribed"
    SUBSCRIBING = "subscribing"
    ACTIVE = "active"
    ERROR = "error"


# --- warning sink -----------------------------------------------------------

WarningSink = Callable[[str], None]

_warning_sink: ContextVar[WarningSink] = ContextVar("subscription_warning_sink", default=log.warning)


def current_warning_sink() -> WarningSink:
    return _warning_sink.get()


@contextlib.contextmanager
def warning_sink(sink: WarningSink) -> Iterator[None]:
    """Send subscription warnings raised in this context to `sink`; restore on exit."""
    token = _warning_sink.set(sink)
    try:
        yield
    finally:
        _warning_sink.reset(token)


# --- handle -----------------------------------------------------------------

Validator = Callable[["Subscription", Sequence[Any]], None]

_END = object()


class Subscription:
    """One `eth_subscribe` stream on a subscription-capable provider."""

    def __init__(
        self,
        provider: Any,
        subscription_method: str,
        args: Sequence[Any] = (),
        listener: Optional[Web3Callback] = None,
    ) -> None:
        if not isinstance(provider, SubscriptionProvider):
            raise ConfigurationError(
                f"{provider!r} does not support subscriptions; use a websocket (ws:// or wss://) endpoint"
            )
        self.provider = provider
        self.subscription_method = subscription_method
        self.args: List[Any] = list(args)
        self.listener = listener
        spec = KNOWN_SUBSCRIPTIONS.get(subscription_method)
        self.subscription_name: Optional[str] = spec.subscription_name if spec else None
        self.expected_params = spec.params if spec else 0
        self.id: Optional[str] = None
        self.state = SubscriptionState.UNSUBSCRIBED
        self.error: Optional[BaseException] = None
        self._queue: asyncio.Queue = asyncio.Queue()
        self._iterating = False

    def __repr__(self) -> str:
        return f"Subscription({self.subscription_method!r}, id={self.id!r}, state={self.state.value})"

    # ------------- validation ------------------

    def validate_args(self, args: Sequence[Any]) -> None:
        """Default argument-shape check: the argument count must match the type."""
        if len(args) != self.expected_params:
            raise InvalidSubscriptionArgs(
                f"Invalid number of parameters for subscription {self.subscription_method!r}. "
                f"Got {len(args)} expected {self.expected_params}!"
            )

    # ------------- lifecycle -------------------

    async def subscribe(self, validator: Optional[Validator] = None) -> "Subscription":
        """
        Validate, send `eth_subscribe` and wait for the subscription id.

        `validator` replaces the default `validate_args` check for this call.
        """
        if self.state is not SubscriptionState.UNSUBSCRIBED or self.id is not None:
            raise ConfigurationError(f"{self!r} cannot be started again; create a new subscription")

        if self.subscription_method not in KNOWN_SUBSCRIPTIONS:
            current_warning_sink()(f"Subscription {self.subscription_method!r}{UNKNOWN_SUBSCRIPTION_WARNING}")

        if validator is None:
            self.validate_args(self.args)
        else:
            validator(self, self.args)

        name = self.subscription_name or self.subscription_method
        payload = {"jsonrpc": "2.0", "id": next_request_id(), "method": "eth_subscribe", "params": [name, *self.args]}
        self.state = SubscriptionState.SUBSCRIBING
        try:
            resp = await self.provider.send(payload)
            sub_id = raise_for_jsonrpc_response(resp, method="eth_subscribe")
        except BaseException as e:
            self._fail(e)
            raise

        self.id = str(sub_id)
        self.state = SubscriptionState.ACTIVE
        self.provider.add_subscription_listener(self.id, self._on_event, self._on_error)
        log.info("subscribed to %s (id=%s)", name, self.id)
        return self

    async def unsubscribe(self) -> bool:
        """Send `eth_unsubscribe`, stop delivering events and end iteration."""
        if self.state is not SubscriptionState.ACTIVE:
            return False
        assert self.id is not None
        self.provider.remove_subscription_listener(self.id)
        self.state = SubscriptionState.UNSUBSCRIBED
        self._queue.put_nowait(_END)
        payload = {"jsonrpc": "2.0", "id": next_request_id(), "method": "eth_unsubscribe", "params": [self.id]}
        resp = await self.provider.send(payload)
        log.info("unsubscribed %s", self.id)
        return bool(raise_for_jsonrpc_response(resp, method="eth_unsubscribe"))

    # ------------- delivery --------------------

    def __aiter__(self) -> "Subscription":
        self._iterating = True
        return self

    async def __anext__(self) -> Any:
        self._iterating = True
        if self._queue.empty():
            if self.state is SubscriptionState.ERROR:
                assert self.error is not None
                raise self.error
            if self.state is SubscriptionState.UNSUBSCRIBED:
                raise StopAsyncIteration
        item = await self._queue.get()
        if item is _END:
            # Leave the marker for any other consumer of this handle.
            self._queue.put_nowait(_END)
            if self.error is not None:
                raise self.error
            raise StopAsyncIteration
        return item

    def _on_event(self, event: Any) -> None:
        if self.state is not SubscriptionState.ACTIVE:
            return
        log.debug("event on %s", self.id)
        # With a listener, only events that arrive once iteration has begun are queued.
        if self.listener is None or self._iterating:
            self._queue.put_nowait(event)
        self._notify(None, event)

    def _on_error(self, exc: BaseException) -> None:
        if self.state is not SubscriptionState.ACTIVE:
            return
        self._fail(exc)

    def _fail(self, exc: BaseException) -> None:
        self.state = SubscriptionState.ERROR
        self.error = exc
        self._queue.put_nowait(_END)
        if isinstance(exc, Exception):
            self._notify(exc, None)

    def _notify(self, err: Optional[BaseException], event: Any) -> None:
        if self.listener is None:
            return
        try:
            self.listener(err, event)
        except Exception:
            log.exception("subscription listener for %s raised", self.id)


__all__ = [
    "UNKNOWN_SUBSCRIPTION_WARNING",
    "KNOWN_SUBSCRIPTIONS",
    "SubscriptionSpec",
    "SubscriptionState",
    "Subscription",
    "current_warning_sink",
    "warning_sink",
]
