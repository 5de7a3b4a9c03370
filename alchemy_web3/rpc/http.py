from __future__ import annotations

"""
HTTP JSON-RPC provider (async).

- Uses httpx.AsyncClient; one client (and connection pool) per provider.
- Sends exactly one POST per `send()`; retrying is the dispatcher's job.
- Maps HTTP-level failures onto the error taxonomy so the dispatcher can tell
  transient failures from permanent ones:

    connect/read errors, timeouts, 502/503/504  -> TransportError
    429                                          -> RateLimited
    other non-2xx                                -> ApplicationError

Example:
    from alchemy_web3.rpc.http import HttpProvider
    provider = HttpProvider("https://eth-mainnet.alchemyapi.io/v2/<key>")
    resp = await provider.send({"jsonrpc": "2.0", "id": 1, "method": "eth_blockNumber", "params": []})
    print(resp["result"])
"""

import json
import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from ..errors import ApplicationError, JsonRpcCode, RateLimited, TransportError, from_jsonrpc_error
from ..version import default_headers

log = logging.getLogger(__name__)


def _is_gateway_failure(status: int) -> bool:
    # The node behind the gateway is unreachable; as transient as a refused connection.
    return status in (502, 503, 504)


class HttpProvider:
    """JSON-RPC 2.0 over HTTP POST."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 30.0,
        headers: Optional[Mapping[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        merged_headers = default_headers()
        if headers:
            merged_headers.update(dict(headers))
        self._client = httpx.AsyncClient(timeout=timeout, headers=merged_headers, transport=transport)

    def __repr__(self) -> str:
        return f"HttpProvider({self.url!r})"

    # --- context manager -------------------------------------------------

    async def __aenter__(self) -> "HttpProvider":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    # --- public API ------------------------------------------------------

    async def send(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST one JSON-RPC payload and return the decoded response object."""
        method = payload.get("method")
        body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        log.debug("POST %s method=%s id=%s", self.url, method, payload.get("id"))
        try:
            r = await self._client.post(self.url, content=body)
        except httpx.TimeoutException as e:
            raise TransportError(f"timeout: {e}", method=method, url=self.url) from e
        except httpx.TransportError as e:
            raise TransportError(f"network error: {e}", method=method, url=self.url) from e

        if _is_gateway_failure(r.status_code):
            raise TransportError(f"HTTP {r.status_code}", method=method, url=self.url)

        try:
            resp = r.json()
        except ValueError as e:
            if r.status_code == 429:
                raise RateLimited(
                    method=method, code=JsonRpcCode.RATE_LIMITED, message="Too Many Requests",
                    data=r.text[:256], http_status=429,
                ) from e
            raise ApplicationError(
                method=method,
                code=JsonRpcCode.INTERNAL_ERROR if r.is_success else JsonRpcCode.INVALID_REQUEST,
                message="Non-JSON response from RPC",
                data=f"HTTP {r.status_code}: {r.text[:256]}",
                http_status=r.status_code,
            ) from e

        if r.is_success:
            return resp

        # Non-2xx with a JSON body: keep the server's error object when there is one.
        err = resp.get("error") if isinstance(resp, dict) else None
        if not isinstance(err, dict):
            err = {"code": r.status_code if r.status_code == 429 else JsonRpcCode.INVALID_REQUEST,
                   "message": f"HTTP {r.status_code}", "data": resp}
        raise from_jsonrpc_error(
            err,
            method=method,
            request_id=resp.get("id") if isinstance(resp, dict) else None,
            http_status=r.status_code,
        )


__all__ = ["HttpProvider"]
