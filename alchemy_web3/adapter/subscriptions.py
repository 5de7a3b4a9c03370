"""
Subscription types beyond the standard `eth_subscribe` set.

The service pushes full pending transactions under two wire names that the
transport layer does not know about. Public names map onto them through
`SUBSCRIPTION_ALIASES`; several public names share a wire name for backward
compatibility.

Every public type resolves to one of three kinds, and the kind decides how the
subscription is named and validated:

- STANDARD:               wire name = public name, default validation.
- ALIASED_FULL:           records its wire name on the pending subscription,
                          then default validation (no options allowed).
- ALIASED_FILTERED_FULL:  no validation; any options object is passed through.

For the aliased kinds the transport's "doesn't exist. Subscribing anyway."
warning is expected noise and is dropped, for that one subscribe call only.
"""

from __future__ import annotations

import contextlib
import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Optional, Sequence

from ..rpc.subscriptions import (UNKNOWN_SUBSCRIPTION_WARNING, Subscription,
                                 current_warning_sink, warning_sink)
from ..types import SubscriptionDescriptor, Web3Callback
from .router import ProviderRouter

log = logging.getLogger(__name__)

FULL_PENDING_TRANSACTIONS = "alchemy_newFullPendingTransactions"
FILTERED_FULL_PENDING_TRANSACTIONS = "alchemy_filteredNewFullPendingTransactions"


class SubscriptionKind(enum.Enum):
    STANDARD = "standard"
    ALIASED_FULL = "aliased_full"
    ALIASED_FILTERED_FULL = "aliased_filtered_full"


@dataclass(frozen=True)
class Alias:
    kind: SubscriptionKind
    wire_type: str


SUBSCRIPTION_ALIASES: Mapping[str, Alias] = {
    "alchemy_fullPendingTransactions": Alias(SubscriptionKind.ALIASED_FULL, FULL_PENDING_TRANSACTIONS),
    "alchemy_newFullPendingTransactions": Alias(SubscriptionKind.ALIASED_FULL, FULL_PENDING_TRANSACTIONS),
    "alchemy_filteredNewFullPendingTransactions": Alias(
        SubscriptionKind.ALIASED_FILTERED_FULL, FILTERED_FULL_PENDING_TRANSACTIONS
    ),
    "alchemy_filteredPendingTransactions": Alias(
        SubscriptionKind.ALIASED_FILTERED_FULL, FILTERED_FULL_PENDING_TRANSACTIONS
    ),
    "alchemy_filteredFullPendingTransactions": Alias(
        SubscriptionKind.ALIASED_FILTERED_FULL, FILTERED_FULL_PENDING_TRANSACTIONS
    ),
}


def resolve(public_type: str) -> Alias:
    return SUBSCRIPTION_ALIASES.get(public_type) or Alias(SubscriptionKind.STANDARD, public_type)


# --- validation strategies --------------------------------------------------


def _validate_full(subscription: Subscription, args: Sequence[Any]) -> None:
    # Without a recorded name the type is unknown to the transport and its
    # events would not be attributed to this subscription.
    subscription.subscription_name = subscription.subscription_method
    subscription.validate_args(args)


def _validate_filtered(subscription: Subscription, args: Sequence[Any]) -> None:
    return None


_VALIDATORS = {
    SubscriptionKind.STANDARD: None,
    SubscriptionKind.ALIASED_FULL: _validate_full,
    SubscriptionKind.ALIASED_FILTERED_FULL: _validate_filtered,
}


@contextlib.contextmanager
def suppress_no_subscription_exists_warning() -> Iterator[None]:
    """Drop the transport's unknown-type warning inside this block; pass others on."""
    previous = current_warning_sink()

    def sink(message: str) -> None:
        if UNKNOWN_SUBSCRIPTION_WARNING in message:
            return
        previous(message)

    with warning_sink(sink):
        yield


class SubscriptionAdapter:
    def __init__(self, router: ProviderRouter) -> None:
        self._router = router

    def describe(
        self,
        public_type: str,
        options: Optional[Mapping[str, Any]] = None,
        listener: Optional[Web3Callback] = None,
    ) -> SubscriptionDescriptor:
        return SubscriptionDescriptor(public_type, resolve(public_type).wire_type, options, listener)

    async def subscribe(
        self,
        public_type: str,
        options: Optional[Mapping[str, Any]] = None,
        listener: Optional[Web3Callback] = None,
    ) -> Subscription:
        """
        Open a subscription on the read provider and wait until it is active.

        `listener(error, event)` receives every event; the returned handle can
        also be iterated with `async for`.
        """
        kind = resolve(public_type).kind
        desc = self.describe(public_type, options, listener)
        args = [] if desc.options is None else [dict(desc.options)]
        subscription = Subscription(self._router.read_provider, desc.wire_type, args, desc.listener)
        log.debug("subscribe %s -> %s (%s)", desc.public_type, desc.wire_type, kind.value)

        if kind is SubscriptionKind.STANDARD:
            return await subscription.subscribe()
        with suppress_no_subscription_exists_warning():
            return await subscription.subscribe(_VALIDATORS[kind])


__all__ = [
    "FULL_PENDING_TRANSACTIONS",
    "FILTERED_FULL_PENDING_TRANSACTIONS",
    "SubscriptionKind",
    "Alias",
    "SUBSCRIPTION_ALIASES",
    "resolve",
    "suppress_no_subscription_exists_warning",
    "SubscriptionAdapter",
]
