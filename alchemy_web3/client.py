"""
Public entry point.

    import asyncio
    from alchemy_web3 import create_alchemy_web3

    async def main():
        async with create_alchemy_web3("wss://eth-mainnet.ws.alchemyapi.io/v2/<key>") as web3:
            print(await web3.eth.get_block_number())
            balances = await web3.alchemy.get_token_balances("0x...")
            sub = await web3.eth.subscribe("alchemy_fullPendingTransactions")
            async for tx in sub:
                print(tx["hash"])

    asyncio.run(main())

Reads go to the given endpoint. Signing methods go to the write provider, from
`config["write_provider"]`, the ALCHEMY_WRITE_PROVIDER_URL environment variable,
or a later `set_write_provider()` call.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

import httpx

from .adapter.context import AlchemyContext, make_alchemy_context
from .config import Config, fill_in_config_defaults
from .errors import ConfigurationError
from .methods import AlchemyEth, AlchemyMethods
from .types import Provider


class AlchemyWeb3:
    def __init__(
        self,
        url: str,
        config: Union[Config, Mapping[str, Any], None] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = fill_in_config_defaults(config)
        self._ctx: AlchemyContext = make_alchemy_context(url, self.config, transport=transport)
        self.alchemy = AlchemyMethods(self._ctx)
        self.eth = AlchemyEth(self._ctx)

    @property
    def provider(self) -> Provider:
        return self._ctx.provider

    @property
    def write_provider(self) -> Optional[Provider]:
        return self._ctx.router.write_provider

    def set_provider(self, provider: Any) -> None:
        raise ConfigurationError(
            "set_provider is not supported. To change the provider used for writes, "
            "use set_write_provider() instead."
        )

    def set_write_provider(self, provider: Optional[Provider]) -> None:
        self._ctx.set_write_provider(provider)

    async def close(self) -> None:
        await self._ctx.close()

    async def __aenter__(self) -> "AlchemyWeb3":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.close()


def create_alchemy_web3(
    alchemy_url: str,
    config: Union[Config, Mapping[str, Any], None] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AlchemyWeb3:
    return AlchemyWeb3(alchemy_url, config, transport=transport)


__all__ = ["AlchemyWeb3", "create_alchemy_web3"]
