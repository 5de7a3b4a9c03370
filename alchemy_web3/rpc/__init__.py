"""
alchemy_web3.rpc
----------------

Transports and the push-subscription mechanism.

This package exposes:
- HttpProvider:      JSON-RPC over HTTP POST (see .http)
- WebsocketProvider: JSON-RPC over a WebSocket, with subscriptions (see .ws)
- Subscription:      `eth_subscribe` handle (see .subscriptions)

Import style:

    from alchemy_web3.rpc import HttpProvider, WebsocketProvider, make_provider
    read = make_provider("wss://eth-mainnet.ws.alchemyapi.io/v2/<key>")
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from .http import HttpProvider
from .subscriptions import Subscription, SubscriptionState
from .ws import WebsocketProvider


def make_provider(
    url: str,
    *,
    timeout: float = 30.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Any:
    """Pick the provider class from the URL scheme (http(s) or ws(s))."""
    lower = url.lower()
    if lower.startswith(("ws://", "wss://")):
        return WebsocketProvider(url, request_timeout=timeout)
    if lower.startswith(("http://", "https://")):
        return HttpProvider(url, timeout=timeout, transport=transport)
    raise ValueError(f"URL must start with http(s):// or ws(s)://, got: {url!r}")


__all__ = ["HttpProvider", "WebsocketProvider", "Subscription", "SubscriptionState", "make_provider"]
