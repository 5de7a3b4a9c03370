"""
Read/write provider routing.

Reads go to the endpoint the client was created with. Methods that need a
private key (signing, sending unsigned transactions, listing accounts) go to
the optional write provider, which can be swapped at runtime:

    router = ProviderRouter(read_provider, write_provider=None)
    router.route("eth_blockNumber")      # -> read_provider
    router.route("eth_sendTransaction")  # -> ConfigurationError until a writer is set
    router.set_write_provider(wallet)
"""

from __future__ import annotations

import logging
from typing import FrozenSet, Optional

from ..errors import ConfigurationError
from ..types import Provider

log = logging.getLogger(__name__)

WRITE_METHODS: FrozenSet[str] = frozenset(
    {
        "eth_accounts",
        "eth_requestAccounts",
        "eth_sendTransaction",
        "eth_sign",
        "eth_signTransaction",
        "eth_signTypedData",
        "eth_signTypedData_v3",
        "eth_signTypedData_v4",
        "personal_sign",
        "personal_ecRecover",
    }
)


def is_write_method(method: str) -> bool:
    return method in WRITE_METHODS


class ProviderRouter:
    def __init__(self, read_provider: Provider, write_provider: Optional[Provider] = None) -> None:
        self._read_provider = read_provider
        self._write_provider = write_provider

    @property
    def read_provider(self) -> Provider:
        return self._read_provider

    @property
    def write_provider(self) -> Optional[Provider]:
        return self._write_provider

    def route(self, method: str) -> Provider:
        """
        Transport for `method`. The caller keeps the returned provider for the
        whole call, so a later `set_write_provider()` does not affect it.
        """
        if not is_write_method(method):
            return self._read_provider
        provider = self._write_provider
        if provider is None:
            raise ConfigurationError(
                f"No provider available for method {method!r}. This method signs or sends "
                "from a local account; configure one with set_write_provider()."
            )
        return provider

    def set_write_provider(self, provider: Optional[Provider]) -> None:
        """Replace the write provider; None disables write methods until set again."""
        self._write_provider = provider
        log.info("write provider set to %r", provider)
