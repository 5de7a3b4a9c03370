"""
Enhanced API methods (`web3.alchemy.*`) and the extra `web3.eth.*` methods.

Each method is a method name (or REST path) plus parameters over the dispatch
layer. All of them return an `asyncio.Future` and accept an optional node-style
`callback(error, value)`; see `utils.callbacks.call_when_done`.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from .adapter.context import AlchemyContext
from .rpc.subscriptions import Subscription
from .types import (AssetTransfersParams, GetNftMetadataParams, GetNftsParams,
                    LogsOptions, PrivateTransactionPreferences,
                    TokenAllowanceParams, TokenBalancesResponse,
                    TransactionReceiptsParams, TransactionsOptions,
                    Web3Callback)
from .utils.callbacks import call_when_done
from .utils.hex import BlockIdentifier, decode_integer, format_block, to_hex

DEFAULT_CONTRACT_ADDRESSES = "DEFAULT_TOKENS"


def _identity(x: Any) -> Any:
    return x


def call_json_rpc_method(
    ctx: AlchemyContext,
    method: str,
    params: Sequence[Any],
    callback: Optional[Web3Callback] = None,
    process_response: Callable[[Any], Any] = _identity,
) -> "asyncio.Future[Any]":
    async def run() -> Any:
        return process_response(await ctx.json_rpc.send(method, params))

    return call_when_done(run(), callback)


def call_rest_endpoint(
    ctx: AlchemyContext,
    path: str,
    params: Mapping[str, Any],
    callback: Optional[Web3Callback] = None,
    process_response: Callable[[Any], Any] = _identity,
) -> "asyncio.Future[Any]":
    async def run() -> Any:
        return process_response(await ctx.rest.send_rest_payload(path, params))

    return call_when_done(run(), callback)


def process_token_balance_response(raw: TokenBalancesResponse) -> TokenBalancesResponse:
    """Convert `tokenBalance` fields from hex strings to decimal strings."""
    balances = [
        {**b, "tokenBalance": decode_integer("uint256", b["tokenBalance"])}
        if b.get("tokenBalance") is not None
        else b
        for b in raw["tokenBalances"]
    ]
    return {**raw, "tokenBalances": balances}


def format_asset_transfers_params(params: AssetTransfersParams) -> Dict[str, Any]:
    out: Dict[str, Any] = dict(params)
    for key in ("fromBlock", "toBlock"):
        if out.get(key) is not None:
            out[key] = format_block(out[key])
    if out.get("maxCount") is not None:
        out["maxCount"] = to_hex(out["maxCount"])
    return {k: v for k, v in out.items() if v is not None}


class AlchemyMethods:
    """`web3.alchemy`: the enhanced API."""

    def __init__(self, ctx: AlchemyContext) -> None:
        self._ctx = ctx

    def get_token_allowance(self, params: TokenAllowanceParams, callback: Optional[Web3Callback] = None):
        return call_json_rpc_method(self._ctx, "alchemy_getTokenAllowance", [params], callback)

    def get_token_balances(
        self,
        address: str,
        contract_addresses: Optional[List[str]] = None,
        callback: Optional[Web3Callback] = None,
    ):
        return call_json_rpc_method(
            self._ctx,
            "alchemy_getTokenBalances",
            [address, contract_addresses or DEFAULT_CONTRACT_ADDRESSES],
            callback,
            process_response=process_token_balance_response,
        )

    def get_token_metadata(self, address: str, callback: Optional[Web3Callback] = None):
        return call_json_rpc_method(self._ctx, "alchemy_getTokenMetadata", [address], callback)

    def get_asset_transfers(self, params: AssetTransfersParams, callback: Optional[Web3Callback] = None):
        return call_json_rpc_method(
            self._ctx, "alchemy_getAssetTransfers", [format_asset_transfers_params(params)], callback
        )

    def get_nft_metadata(self, params: GetNftMetadataParams, callback: Optional[Web3Callback] = None):
        return call_rest_endpoint(self._ctx, "/v1/getNFTMetadata/", params, callback)

    def get_nfts(self, params: GetNftsParams, callback: Optional[Web3Callback] = None):
        return call_rest_endpoint(self._ctx, "/v1/getNFTs/", params, callback)

    def get_transaction_receipts(self, params: TransactionReceiptsParams, callback: Optional[Web3Callback] = None):
        return call_json_rpc_method(self._ctx, "alchemy_getTransactionReceipts", [params], callback)


class AlchemyEth:
    """`web3.eth`: a few standard methods plus the provider-specific extras."""

    def __init__(self, ctx: AlchemyContext) -> None:
        self._ctx = ctx

    def request(self, method: str, params: Optional[Sequence[Any]] = None, callback: Optional[Web3Callback] = None):
        """Any JSON-RPC method, routed, retried and passed through the middlewares."""
        return call_json_rpc_method(self._ctx, method, list(params or ()), callback)

    async def subscribe(
        self,
        type: str,
        options: Optional[Union[LogsOptions, TransactionsOptions]] = None,
        listener: Optional[Web3Callback] = None,
    ) -> Subscription:
        """
        `options` is a `LogsOptions` filter for "logs" and a `TransactionsOptions`
        filter for the filtered full-pending-transaction feeds.
        """
        return await self._ctx.subscriptions.subscribe(type, options, listener)

    def get_block_number(self, callback: Optional[Web3Callback] = None):
        return call_json_rpc_method(self._ctx, "eth_blockNumber", [], callback, process_response=_hex_to_int)

    def get_balance(self, address: str, block: BlockIdentifier = "latest", callback: Optional[Web3Callback] = None):
        return call_json_rpc_method(
            self._ctx, "eth_getBalance", [address, format_block(block)], callback, process_response=_hex_to_int
        )

    def send_transaction(self, tx: Mapping[str, Any], callback: Optional[Web3Callback] = None):
        return call_json_rpc_method(self._ctx, "eth_sendTransaction", [dict(tx)], callback)

    def sign(self, address: str, message: str, callback: Optional[Web3Callback] = None):
        return call_json_rpc_method(self._ctx, "eth_sign", [address, message], callback)

    def get_max_priority_fee_per_gas(self, callback: Optional[Web3Callback] = None):
        return call_json_rpc_method(self._ctx, "eth_maxPriorityFeePerGas", [], callback)

    def send_private_transaction(
        self,
        tx: str,
        max_block_number: Optional[BlockIdentifier] = None,
        preferences: Optional[PrivateTransactionPreferences] = None,
        callback: Optional[Web3Callback] = None,
    ):
        body: Dict[str, Any] = {"tx": tx}
        if max_block_number is not None:
            body["maxBlockNumber"] = format_block(max_block_number)
        if preferences is not None:
            body["preferences"] = dict(preferences)
        return call_json_rpc_method(self._ctx, "eth_sendPrivateTransaction", [body], callback)

    def cancel_private_transaction(self, tx_hash: str, callback: Optional[Web3Callback] = None):
        return call_json_rpc_method(self._ctx, "eth_cancelPrivateTransaction", [{"txHash": tx_hash}], callback)


def _hex_to_int(value: Any) -> Any:
    return int(value, 16) if isinstance(value, str) and value.startswith(("0x", "0X")) else value
