from __future__ import annotations

"""
Shared types for the client.

This module provides:
- The request model passed through the middleware chain (`RpcRequest`).
- Minimal `Protocol`s describing what the dispatch layer expects from a
  transport, so any object with the right methods can act as a provider.
- `TypedDict` shapes mirroring the enhanced API's JSON payloads. These are for
  documentation and type checkers only; values travel as plain dicts.

Nothing here performs network I/O.
"""

import time
from dataclasses import dataclass, field
from itertools import count
from typing import (Any, Awaitable, Callable, Dict, List, Mapping, Optional,
                    Protocol, Sequence, TypedDict, Union, runtime_checkable)

from .utils.callbacks import Callback

JSON = Union[dict, list, str, int, float, bool, None]

# Node-style callback: (error, value). Exactly one of the two is meaningful.
Web3Callback = Callback


# --- JSON-RPC request model -------------------------------------------------

# One counter for the whole process: requests and subscription calls may share
# a websocket, where ids correlate responses.
_request_ids = count(start=int(time.time() * 1000))


def next_request_id() -> int:
    return next(_request_ids)


@dataclass(frozen=True)
class RpcRequest:
    """One outgoing JSON-RPC call, before an id is assigned."""

    method: str
    params: tuple = ()

    def with_params(self, params: Sequence[Any]) -> "RpcRequest":
        return RpcRequest(self.method, tuple(params))

    def to_payload(self, id: int) -> Dict[str, Any]:
        return {"jsonrpc": "2.0", "id": id, "method": self.method, "params": list(self.params)}


Next = Callable[[RpcRequest], Awaitable[Any]]

# A middleware receives the request and the rest of the chain. It may call
# `await next_(request)` (optionally with a rewritten request) or return a
# result directly to short-circuit everything after it.
Middleware = Callable[[RpcRequest, Next], Awaitable[Any]]


# --- Provider protocols -----------------------------------------------------


@runtime_checkable
class Provider(Protocol):
    """Anything that can carry one raw JSON-RPC payload and return the raw response."""

    async def send(self, payload: Dict[str, Any]) -> Dict[str, Any]: ...

    async def close(self) -> None: ...


OnEvent = Callable[[Any], None]
OnError = Callable[[BaseException], None]


@runtime_checkable
class SubscriptionProvider(Provider, Protocol):
    """A provider that can also push `eth_subscription` notifications."""

    def add_subscription_listener(self, subscription_id: str, on_event: OnEvent, on_error: OnError) -> None: ...

    def remove_subscription_listener(self, subscription_id: str) -> None: ...


# --- Subscriptions ----------------------------------------------------------


@dataclass
class SubscriptionDescriptor:
    """What the caller asked for (`public_type`) and what goes on the wire (`wire_type`)."""

    public_type: str
    wire_type: str
    options: Optional[Mapping[str, Any]] = None
    listener: Optional[Web3Callback] = field(default=None, repr=False)


class LogsOptions(TypedDict, total=False):
    fromBlock: Union[int, str]
    address: Union[str, List[str]]
    topics: List[Optional[Union[str, List[str]]]]


class TransactionsOptions(TypedDict, total=False):
    toAddress: Union[str, List[str]]
    fromAddress: Union[str, List[str]]
    hashesOnly: bool


# --- Enhanced API payloads --------------------------------------------------


class TokenAllowanceParams(TypedDict):
    contract: str
    owner: str
    spender: str


class TokenBalance(TypedDict, total=False):
    contractAddress: str
    tokenBalance: Optional[str]
    error: Optional[str]


class TokenBalancesResponse(TypedDict):
    address: str
    tokenBalances: List[TokenBalance]


class TokenMetadataResponse(TypedDict, total=False):
    decimals: Optional[int]
    logo: Optional[str]
    name: Optional[str]
    symbol: Optional[str]


class AssetTransfersParams(TypedDict, total=False):
    fromBlock: Union[int, str]
    toBlock: Union[int, str]
    fromAddress: str
    toAddress: str
    contractAddresses: List[str]
    excludeZeroValue: bool
    maxCount: int
    category: List[str]
    pageKey: str
    order: str


class GetNftMetadataParams(TypedDict, total=False):
    contractAddress: str
    tokenId: str
    tokenType: str


class GetNftsParams(TypedDict, total=False):
    owner: str
    pageKey: str
    contractAddresses: List[str]
    withMetadata: bool


class TransactionReceiptsParams(TypedDict, total=False):
    blockNumber: str
    blockHash: str


class PrivateTransactionPreferences(TypedDict, total=False):
    fast: bool


__all__ = [
    "JSON",
    "Web3Callback",
    "next_request_id",
    "RpcRequest",
    "Next",
    "Middleware",
    "Provider",
    "SubscriptionProvider",
    "OnEvent",
    "OnError",
    "SubscriptionDescriptor",
    "LogsOptions",
    "TransactionsOptions",
    "TokenAllowanceParams",
    "TokenBalance",
    "TokenBalancesResponse",
    "TokenMetadataResponse",
    "AssetTransfersParams",
    "GetNftMetadataParams",
    "GetNftsParams",
    "TransactionReceiptsParams",
    "PrivateTransactionPreferences",
]
