"""Test helpers for the alchemy_web3 package.

Provides a minimal asyncio runner so tests marked with ``@pytest.mark.asyncio``
can execute without external plugins, plus in-memory providers that record
every payload they are given.
"""
from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable, Dict, List, Tuple

import pytest

from alchemy_web3.config import WRITE_PROVIDER_ENV


@pytest.hookimpl(tryfirst=True)
def pytest_configure(config: pytest.Config) -> None:  # pragma: no cover - plugin hook
    config.addinivalue_line("markers", "asyncio: mark test as requiring asyncio event loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:  # pragma: no cover - plugin hook
    if pyfuncitem.get_closest_marker("asyncio") is None:
        return None

    test_func = pyfuncitem.obj
    if inspect.iscoroutinefunction(test_func):
        argnames = getattr(pyfuncitem, "_fixtureinfo", None)
        wanted = set(getattr(argnames, "argnames", []) or [])
        kwargs = {k: v for k, v in pyfuncitem.funcargs.items() if k in wanted}
        asyncio.run(test_func(**kwargs))
        return True
    return None


@pytest.fixture(autouse=True)
def _no_write_provider_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(WRITE_PROVIDER_ENV, raising=False)


class FakeProvider:
    """
    Scripted JSON-RPC provider.

    Each queued reply is a response fragment ({"result": ...} or {"error": ...}),
    an exception instance to raise, or a callable taking the payload and
    returning one of those. With nothing queued it answers {"result": None}.
    """

    def __init__(self, name: str = "fake") -> None:
        self.name = name
        self.url = f"https://{name}.example.org/v2/test-key"
        self.sent: List[Dict[str, Any]] = []
        self.replies: List[Any] = []
        self.closed = False

    def __repr__(self) -> str:
        return f"FakeProvider({self.name!r})"

    def reply(self, *items: Any) -> "FakeProvider":
        self.replies.extend(items)
        return self

    @property
    def methods(self) -> List[str]:
        return [p["method"] for p in self.sent]

    async def send(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.sent.append(payload)
        item = self.replies.pop(0) if self.replies else {"result": None}
        if callable(item):
            item = item(payload)
            if inspect.isawaitable(item):
                item = await item
        if isinstance(item, BaseException):
            raise item
        return {"jsonrpc": "2.0", "id": payload["id"], **item}

    async def close(self) -> None:
        self.closed = True


class FakeSubscriptionProvider(FakeProvider):
    """FakeProvider that also accepts subscription listeners and lets tests push to them."""

    def __init__(self, name: str = "fake-ws") -> None:
        super().__init__(name)
        self.url = f"wss://{name}.example.org/v2/test-key"
        self.listeners: Dict[str, Tuple[Callable[[Any], None], Callable[[BaseException], None]]] = {}

    def add_subscription_listener(self, subscription_id, on_event, on_error) -> None:
        self.listeners[subscription_id] = (on_event, on_error)

    def remove_subscription_listener(self, subscription_id) -> None:
        self.listeners.pop(subscription_id, None)

    def emit(self, subscription_id: str, event: Any) -> None:
        self.listeners[subscription_id][0](event)

    def drop(self, exc: BaseException) -> None:
        listeners = list(self.listeners.values())
        self.listeners.clear()
        for _, on_error in listeners:
            on_error(exc)


@pytest.fixture
def read_provider() -> FakeProvider:
    return FakeProvider("read")


@pytest.fixture
def write_provider() -> FakeProvider:
    return FakeProvider("write")


@pytest.fixture
def ws_provider() -> FakeSubscriptionProvider:
    return FakeSubscriptionProvider()


@pytest.fixture
def provider_factory() -> Callable[[str], FakeProvider]:
    return FakeProvider


class RecordingSleep:
    """Stand-in for asyncio.sleep that records the requested delays."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def fake_sleep() -> RecordingSleep:
    return RecordingSleep()
