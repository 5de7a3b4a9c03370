from __future__ import annotations

"""
WebSocket JSON-RPC provider (async) with push-subscription support.

- Uses the `websockets` package (asyncio implementation).
- Correlates responses to requests by `id` and routes `eth_subscription`
  notifications to the listener registered for their subscription id.
- Connects lazily on the first `send()`; after a disconnect the next `send()`
  reconnects. Open subscriptions do not survive a disconnect: their listeners
  get a `TransportError` and are dropped, and callers resubscribe explicitly.

Example:
    import asyncio
    from alchemy_web3.rpc.ws import WebsocketProvider

    async def main():
        async with WebsocketProvider("wss://eth-mainnet.ws.alchemyapi.io/v2/<key>") as ws:
            resp = await ws.send({"jsonrpc": "2.0", "id": 1, "method": "eth_blockNumber", "params": []})
            print(resp["result"])

    asyncio.run(main())
"""

import asyncio
import contextlib
import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, InvalidStatus, WebSocketException

from ..errors import JsonRpcCode, RateLimited, TransportError
from ..types import OnError, OnEvent
from ..version import USER_AGENT, __version__

log = logging.getLogger(__name__)

# Notifications that arrive between the eth_subscribe response and the
# listener registration are held here, per subscription id.
_MAX_EARLY_EVENTS = 1024


class WebsocketProvider:
    """JSON-RPC 2.0 over a single WebSocket connection."""

    def __init__(
        self,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        connect_timeout: float = 15.0,
        request_timeout: float = 30.0,
        ping_interval: Optional[float] = 20.0,
    ) -> None:
        self.url = url
        self.headers = headers
        self.connect_timeout = connect_timeout
        self.request_timeout = request_timeout
        self.ping_interval = ping_interval
        self._ws: Optional[ClientConnection] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._connect_lock = asyncio.Lock()
        self._pending: Dict[Any, asyncio.Future] = {}
        self._listeners: Dict[str, Tuple[OnEvent, OnError]] = {}
        self._early: Dict[str, List[Any]] = {}
        self._closing = False

    def __repr__(self) -> str:
        return f"WebsocketProvider({self.url!r})"

    # ------------- context manager -------------

    async def __aenter__(self) -> "WebsocketProvider":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.close()

    # ------------- lifecycle -------------------

    @property
    def connected(self) -> bool:
        return self._ws is not None

    async def connect(self) -> None:
        """Establish the WebSocket connection and start the reader loop."""
        async with self._connect_lock:
            if self._ws is not None:
                return
            self._closing = False
            hdrs = {"User-Agent": USER_AGENT, "Alchemy-Web3-Version": __version__}
            if self.headers:
                hdrs.update(dict(self.headers))
            try:
                self._ws = await connect(
                    self.url,
                    additional_headers=hdrs,
                    open_timeout=self.connect_timeout,
                    ping_interval=self.ping_interval,
                )
            except InvalidStatus as e:
                status = e.response.status_code
                if status == 429:
                    raise RateLimited(
                        method=None, code=JsonRpcCode.RATE_LIMITED,
                        message="Too Many Requests", http_status=429,
                    ) from e
                raise TransportError(f"WS handshake rejected: HTTP {status}", url=self.url) from e
            except (OSError, TimeoutError, WebSocketException) as e:
                raise TransportError(f"WS connect failed: {e}", url=self.url) from e
            log.debug("websocket connected: %s", self.url)
            self._reader_task = asyncio.create_task(self._reader_loop(self._ws), name="WebsocketProvider.reader")

    async def close(self) -> None:
        """Close the WebSocket, cancel the reader and fail anything still waiting."""
        self._closing = True
        ws, self._ws = self._ws, None
        if self._reader_task and not self._reader_task.done():
            self._reader_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reader_task
        self._reader_task = None
        if ws is not None:
            await ws.close()
        self._fail_all(TransportError("WS closed", url=self.url))

    # ------------- RPC primitives --------------

    async def send(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Send one JSON-RPC payload and await the response object with the same id."""
        if self._ws is None:
            await self.connect()
        ws = self._ws
        assert ws is not None

        method = payload.get("method")
        rid = payload.get("id")
        fut: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending[rid] = fut
        try:
            try:
                await ws.send(json.dumps(payload, separators=(",", ":")))
            except (ConnectionClosed, OSError) as e:
                raise TransportError(f"WS send failed: {e}", method=method, url=self.url) from e
            try:
                return await asyncio.wait_for(fut, timeout=self.request_timeout)
            except asyncio.TimeoutError as e:
                raise TransportError("WS request timed out", method=method, url=self.url) from e
        finally:
            self._pending.pop(rid, None)

    # ------------- Subscriptions ----------------

    def add_subscription_listener(self, subscription_id: str, on_event: OnEvent, on_error: OnError) -> None:
        """Route notifications for `subscription_id` to `on_event`; disconnects go to `on_error`."""
        self._listeners[subscription_id] = (on_event, on_error)
        for event in self._early.pop(subscription_id, []):
            self._deliver(subscription_id, on_event, event)

    def remove_subscription_listener(self, subscription_id: str) -> None:
        self._listeners.pop(subscription_id, None)
        self._early.pop(subscription_id, None)

    # ------------- internals --------------------

    async def _reader_loop(self, ws: ClientConnection) -> None:
        """Continuously read frames and dispatch to pending futures or listeners."""
        try:
            async for msg in ws:
                try:
                    data = json.loads(msg)
                except ValueError:
                    log.debug("ignoring non-JSON frame from %s", self.url)
                    continue
                self._dispatch(data)
        except ConnectionClosed as e:
            if not self._closing:
                log.warning("websocket disconnected from %s: %s", self.url, e)
        finally:
            if self._ws is ws:
                self._ws = None
            if not self._closing:
                self._fail_all(TransportError("WS disconnected", url=self.url))

    def _dispatch(self, data: Any) -> None:
        if not isinstance(data, dict):
            return

        # Response to a request
        if "id" in data and ("result" in data or "error" in data):
            fut = self._pending.get(data.get("id"))
            if fut is not None and not fut.done():
                fut.set_result(data)
            return

        # Subscription notification
        params = data.get("params")
        if data.get("method") == "eth_subscription" and isinstance(params, dict):
            sub_id = str(params.get("subscription"))
            listener = self._listeners.get(sub_id)
            if listener is None:
                early = self._early.setdefault(sub_id, [])
                if len(early) < _MAX_EARLY_EVENTS:
                    early.append(params.get("result"))
                return
            self._deliver(sub_id, listener[0], params.get("result"))

    def _deliver(self, sub_id: str, on_event: OnEvent, event: Any) -> None:
        try:
            on_event(event)
        except Exception:
            log.exception("listener for subscription %s raised", sub_id)

    def _fail_all(self, exc: TransportError) -> None:
        for fut in list(self._pending.values()):
            if not fut.done():
                fut.set_exception(exc)
        self._pending.clear()
        listeners = list(self._listeners.items())
        self._listeners.clear()
        self._early.clear()
        for sub_id, (_, on_error) in listeners:
            try:
                on_error(exc)
            except Exception:
                log.exception("error listener for subscription %s raised", sub_id)


__all__ = ["WebsocketProvider"]
