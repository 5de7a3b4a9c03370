"""
JSON-RPC dispatch: routing, middleware chain, retry.

`JsonRpcDispatcher.send(method, params)`:

1. resolves the transport once via `ProviderRouter.route(method)`;
2. runs the configured middlewares in registration order; each one gets the
   request and `next_` (the rest of the chain) and may rewrite the request or
   return a result without calling `next_`;
3. transmits whatever reaches the end of the chain, retrying transient
   failures (`errors.is_transient`) up to `max_retries` times with a delay of
   `retry_interval + U[0, retry_jitter)` milliseconds before each retry.

Permanent failures (JSON-RPC application errors, rejected requests) are raised
after the first attempt. When retries run out the last error is raised as-is.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Optional, Sequence

from ..config import Config
from ..errors import is_transient, raise_for_jsonrpc_response
from ..types import Middleware, Next, Provider, RpcRequest, next_request_id
from ..utils.retry import Sleep, aretry_call
from .router import ProviderRouter

log = logging.getLogger(__name__)


class JsonRpcDispatcher:
    def __init__(
        self,
        router: ProviderRouter,
        config: Config,
        *,
        sleep: Sleep = asyncio.sleep,
        rand: Callable[[], float] = random.random,
    ) -> None:
        self._router = router
        self._middlewares: tuple[Middleware, ...] = tuple(config.middlewares)
        self._max_retries = config.max_retries
        self._interval = config.retry_interval_s
        self._jitter = config.retry_jitter_s
        self._sleep = sleep
        self._rand = rand

    @property
    def middlewares(self) -> tuple[Middleware, ...]:
        return self._middlewares

    async def send(self, method: str, params: Optional[Sequence[Any]] = None) -> Any:
        """Send one JSON-RPC call and return its `result`."""
        provider = self._router.route(method)
        request = RpcRequest(method, tuple(params or ()))
        return await self._chain(provider)(request)

    def _chain(self, provider: Provider) -> Next:
        async def transmit(request: RpcRequest) -> Any:
            return await aretry_call(
                self._send_once,
                provider,
                request,
                retries=self._max_retries,
                interval=self._interval,
                jitter=self._jitter,
                retry_if=is_transient,
                on_retry=lambda attempt, exc, delay: log.debug(
                    "retrying %s after %s (attempt %d/%d, sleeping %.3fs)",
                    request.method, exc, attempt, self._max_retries, delay,
                ),
                sleep=self._sleep,
                rand=self._rand,
            )

        handler: Next = transmit
        for mw in reversed(self._middlewares):
            handler = _bind(mw, handler)
        return handler

    async def _send_once(self, provider: Provider, request: RpcRequest) -> Any:
        payload = request.to_payload(next_request_id())
        log.debug("send %s id=%s via %r", request.method, payload["id"], provider)
        response = await provider.send(payload)
        return raise_for_jsonrpc_response(response, method=request.method)


def _bind(middleware: Middleware, next_: Next) -> Next:
    def handler(request: RpcRequest) -> Awaitable[Any]:
        return middleware(request, next_)

    return handler
