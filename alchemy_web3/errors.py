"""
Typed error classes for the alchemy-web3 client.

These are raised by the providers (rpc/http, rpc/ws), the dispatchers in
`adapter/` and the subscription layer so callers can catch specific failure
modes while still being able to catch the base `AlchemyWeb3Error`.

Retry classification lives here too: `is_transient()` is the single place that
decides whether the JSON-RPC dispatcher may try a request again.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Optional

__all__ = [
    "AlchemyWeb3Error",
    "RpcError",
    "ApplicationError",
    "RateLimited",
    "TransportError",
    "ConfigurationError",
    "RestError",
    "InvalidSubscriptionArgs",
    "JsonRpcCode",
    "RATE_LIMIT_CODES",
    "from_jsonrpc_error",
    "raise_for_jsonrpc_response",
    "is_transient",
]


class AlchemyWeb3Error(Exception):
    """Base class for all client errors."""


class JsonRpcCode(IntEnum):
    # JSON-RPC 2.0 standard codes
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    # Server errors (implementation-defined range: -32099 to -32000)
    SERVER_ERROR = -32000
    LIMIT_EXCEEDED = -32005

    # Returned by the service when compute-units-per-second capacity is exceeded
    RATE_LIMITED = 429


# Error codes that mean "slow down" rather than "your request is wrong".
RATE_LIMIT_CODES = frozenset({int(JsonRpcCode.RATE_LIMITED), int(JsonRpcCode.LIMIT_EXCEEDED)})


@dataclass(slots=True, eq=False)
class RpcError(AlchemyWeb3Error):
    """Raised when a JSON-RPC call returns an error object."""

    method: Optional[str]
    code: int
    message: str
    data: Optional[Any] = None
    request_id: Optional[Any] = None
    http_status: Optional[int] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        parts = [f"RPC[{self.method or '-'}] code={self.code} msg={self.message!r}"]
        if self.request_id is not None:
            parts.append(f"id={self.request_id}")
        if self.http_status is not None:
            parts.append(f"http={self.http_status}")
        if self.data is not None:
            parts.append(f"data={self.data!r}")
        return " ".join(parts)


class ApplicationError(RpcError):
    """
    Permanent failure: a well-formed JSON-RPC error, a malformed request, or an
    HTTP 4xx other than 429. Never retried.
    """


class RateLimited(RpcError):
    """HTTP 429 or a provider rate-limit error code. Retried like a transport failure."""


@dataclass(slots=True, eq=False)
class TransportError(AlchemyWeb3Error):
    """
    Connection-level failure: refused/reset connections, timeouts, gateway
    errors (HTTP 502/503/504) and dropped websockets.
    """

    message: str
    method: Optional[str] = None
    url: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        where = f" [{self.method}]" if self.method else ""
        url = f" url={self.url}" if self.url else ""
        return f"TransportError{where}: {self.message}{url}"


class ConfigurationError(AlchemyWeb3Error):
    """
    The client is not set up for the requested operation, e.g. a signing call
    with no write provider configured. Raised before any network attempt.
    """


@dataclass(slots=True, eq=False)
class RestError(AlchemyWeb3Error):
    """
    Non-2xx response (or transport failure) from an enhanced REST endpoint.

    `status` is None when no HTTP response was received at all.
    """

    status: Optional[int]
    body: Any
    path: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        path = f" path={self.path}" if self.path else ""
        return f"RestError status={self.status}{path}: {self.body!r}"


class InvalidSubscriptionArgs(AlchemyWeb3Error, ValueError):
    """The arguments given to a subscription do not match what its type expects."""


def from_jsonrpc_error(
    err_obj: Dict[str, Any],
    *,
    method: Optional[str] = None,
    request_id: Optional[Any] = None,
    http_status: Optional[int] = None,
) -> RpcError:
    """
    Convert a JSON-RPC error object into `RateLimited` or `ApplicationError`.

    `err_obj` should resemble: {"code": int, "message": str, "data": any?}
    """
    code = int(err_obj.get("code", JsonRpcCode.SERVER_ERROR))
    message = str(err_obj.get("message", "Unknown JSON-RPC error"))
    cls = RateLimited if code in RATE_LIMIT_CODES or http_status == 429 else ApplicationError
    return cls(
        method=method,
        code=code,
        message=message,
        data=err_obj.get("data"),
        request_id=request_id,
        http_status=http_status,
    )


def raise_for_jsonrpc_response(
    response: Any,
    *,
    method: Optional[str] = None,
    http_status: Optional[int] = None,
) -> Any:
    """
    Return the `result` member of a JSON-RPC response object, or raise the
    matching error if it carries an `error` member or is malformed.
    """
    if not isinstance(response, dict):
        raise ApplicationError(
            method=method,
            code=JsonRpcCode.INTERNAL_ERROR,
            message="Invalid JSON-RPC response type",
            data=type(response).__name__,
            http_status=http_status,
        )
    err = response.get("error")
    if err is not None:
        if not isinstance(err, dict):
            err = {"message": str(err)}
        raise from_jsonrpc_error(
            err, method=method, request_id=response.get("id"), http_status=http_status
        )
    if "result" not in response:
        raise ApplicationError(
            method=method,
            code=JsonRpcCode.INTERNAL_ERROR,
            message="Malformed JSON-RPC response",
            data=response,
            request_id=response.get("id"),
            http_status=http_status,
        )
    return response["result"]


def is_transient(exc: BaseException) -> bool:
    """True for failures worth retrying: transport errors and rate limiting."""
    return isinstance(exc, (TransportError, RateLimited))
