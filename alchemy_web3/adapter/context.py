"""
Wire the dispatch layer for one service endpoint.

    ctx = make_alchemy_context("https://eth-mainnet.alchemyapi.io/v2/<key>", config)
    await ctx.json_rpc.send("eth_blockNumber")
    await ctx.rest.send_rest_payload("/v1/getNFTs/", {"owner": "0x..."})
    await ctx.subscriptions.subscribe("newBlockHeaders")
    ctx.set_write_provider(wallet)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx

from ..config import Config
from ..rpc import make_provider
from ..types import Provider
from .json_rpc import JsonRpcDispatcher
from .rest import RestDispatcher
from .router import ProviderRouter
from .subscriptions import SubscriptionAdapter


@dataclass
class AlchemyContext:
    provider: Provider
    router: ProviderRouter
    json_rpc: JsonRpcDispatcher
    rest: RestDispatcher
    subscriptions: SubscriptionAdapter

    def set_write_provider(self, provider: Optional[Provider]) -> None:
        self.router.set_write_provider(provider)

    async def close(self) -> None:
        """Close the read provider and the REST client. The write provider belongs to the caller."""
        await self.rest.close()
        await self.provider.close()


def make_alchemy_context(
    url: str,
    config: Config,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AlchemyContext:
    """
    Build the read provider for `url` and the dispatchers on top of it.

    `transport` is handed to the HTTP clients (httpx.MockTransport in tests).
    """
    provider = make_provider(url, timeout=config.request_timeout, transport=transport)
    router = ProviderRouter(provider, config.write_provider)
    return AlchemyContext(
        provider=provider,
        router=router,
        json_rpc=JsonRpcDispatcher(router, config),
        rest=RestDispatcher(router, timeout=config.request_timeout, transport=transport),
        subscriptions=SubscriptionAdapter(router),
    )
