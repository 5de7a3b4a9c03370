import asyncio
import json
import logging

import pytest
from websockets.asyncio.server import serve

from alchemy_web3.errors import TransportError
from alchemy_web3.rpc.subscriptions import Subscription, SubscriptionState
from alchemy_web3.rpc.ws import WebsocketProvider


def make_handler():
    async def handler(ws):
        async for msg in ws:
            req = json.loads(msg)
            method = req["method"]
            if method == "eth_subscribe":
                await ws.send(json.dumps({"jsonrpc": "2.0", "id": req["id"], "result": "0xfeed"}))
                await ws.send(json.dumps({
                    "jsonrpc": "2.0",
                    "method": "eth_subscription",
                    "params": {"subscription": "0xfeed", "result": {"number": "0x1"}},
                }))
            elif method == "test_drop":
                await ws.close()
                return
            elif method == "eth_unsubscribe":
                await ws.send(json.dumps({"jsonrpc": "2.0", "id": req["id"], "result": True}))
            elif method == "eth_blockNumber":
                await ws.send("not json")
                await ws.send(json.dumps({"jsonrpc": "2.0", "id": req["id"], "result": "0x10"}))
            else:
                await ws.send(json.dumps({
                    "jsonrpc": "2.0", "id": req["id"], "error": {"code": -32601, "message": "method not found"},
                }))

    return handler


def url_of(server):
    port = server.sockets[0].getsockname()[1]
    return f"ws://127.0.0.1:{port}"


@pytest.mark.asyncio
async def test_request_response_by_id():
    async with serve(make_handler(), "127.0.0.1", 0) as server:
        async with WebsocketProvider(url_of(server)) as provider:
            assert provider.connected
            resp = await provider.send({"jsonrpc": "2.0", "id": 7, "method": "eth_blockNumber", "params": []})
            err = await provider.send({"jsonrpc": "2.0", "id": 8, "method": "eth_nope", "params": []})

    assert resp == {"jsonrpc": "2.0", "id": 7, "result": "0x10"}
    assert err["error"]["code"] == -32601


@pytest.mark.asyncio
async def test_connects_lazily_on_first_send():
    async with serve(make_handler(), "127.0.0.1", 0) as server:
        provider = WebsocketProvider(url_of(server))
        assert not provider.connected
        try:
            resp = await provider.send({"jsonrpc": "2.0", "id": 1, "method": "eth_blockNumber", "params": []})
        finally:
            await provider.close()
    assert resp["result"] == "0x10"


@pytest.mark.asyncio
async def test_subscription_receives_notifications():
    async with serve(make_handler(), "127.0.0.1", 0) as server:
        async with WebsocketProvider(url_of(server)) as provider:
            sub = await Subscription(provider, "newBlockHeaders").subscribe()
            first = await asyncio.wait_for(sub.__anext__(), timeout=5)
            assert await sub.unsubscribe() is True

    assert sub.id == "0xfeed"
    assert first == {"number": "0x1"}


async def wait_until(predicate, timeout=5.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        assert asyncio.get_running_loop().time() < deadline, "condition not reached"
        await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_listener_receives_notifications():
    events = []
    async with serve(make_handler(), "127.0.0.1", 0) as server:
        async with WebsocketProvider(url_of(server)) as provider:
            sub = await Subscription(provider, "newBlockHeaders", listener=lambda e, v: events.append(v)).subscribe()
            await wait_until(lambda: events)

    assert events == [{"number": "0x1"}]
    assert sub._queue.qsize() == 0


@pytest.mark.asyncio
async def test_raising_listener_does_not_stop_the_reader(caplog):
    events = []

    def listener(err, event):
        events.append(event)
        raise RuntimeError("user bug")

    async with serve(make_handler(), "127.0.0.1", 0) as server:
        async with WebsocketProvider(url_of(server)) as provider:
            with caplog.at_level(logging.ERROR):
                sub = await Subscription(provider, "newBlockHeaders", listener=listener).subscribe()
                await wait_until(lambda: events)
            resp = await provider.send({"jsonrpc": "2.0", "id": 5, "method": "eth_blockNumber", "params": []})
            assert provider.connected
            assert sub.state is SubscriptionState.ACTIVE

    assert resp["result"] == "0x10"
    assert events == [{"number": "0x1"}]
    assert any(r.levelno == logging.ERROR and r.exc_info for r in caplog.records)


@pytest.mark.asyncio
async def test_provider_logs_raising_event_listener(caplog):
    events = []

    def on_event(event):
        events.append(event)
        raise RuntimeError("user bug")

    async with serve(make_handler(), "127.0.0.1", 0) as server:
        async with WebsocketProvider(url_of(server)) as provider:
            with caplog.at_level(logging.ERROR, logger="alchemy_web3.rpc.ws"):
                resp = await provider.send(
                    {"jsonrpc": "2.0", "id": 3, "method": "eth_subscribe", "params": ["newHeads"]}
                )
                provider.add_subscription_listener(resp["result"], on_event, lambda exc: None)
                await wait_until(lambda: events)
            block = await provider.send({"jsonrpc": "2.0", "id": 4, "method": "eth_blockNumber", "params": []})
            assert provider.connected

    assert block["result"] == "0x10"
    assert events == [{"number": "0x1"}]
    assert [r.exc_info[0] for r in caplog.records if r.name == "alchemy_web3.rpc.ws"] == [RuntimeError]


@pytest.mark.asyncio
async def test_disconnect_fails_open_subscriptions():
    async with serve(make_handler(), "127.0.0.1", 0) as server:
        provider = WebsocketProvider(url_of(server))
        try:
            sub = await Subscription(provider, "newBlockHeaders").subscribe()
            assert await asyncio.wait_for(sub.__anext__(), timeout=5) == {"number": "0x1"}
            with pytest.raises(TransportError):
                await provider.send({"jsonrpc": "2.0", "id": 99, "method": "test_drop", "params": []})
            with pytest.raises(TransportError):
                await asyncio.wait_for(sub.__anext__(), timeout=5)
        finally:
            await provider.close()

    assert sub.state is SubscriptionState.ERROR
    assert isinstance(sub.error, TransportError)


@pytest.mark.asyncio
async def test_connect_failure_is_transport_error():
    async with serve(make_handler(), "127.0.0.1", 0) as server:
        url = url_of(server)
    provider = WebsocketProvider(url, connect_timeout=2)
    with pytest.raises(TransportError):
        await provider.send({"jsonrpc": "2.0", "id": 1, "method": "eth_blockNumber", "params": []})
