import pytest

from alchemy_web3.config import (DEFAULT_MAX_RETRIES, DEFAULT_RETRY_INTERVAL, DEFAULT_RETRY_JITTER,
                                 WRITE_PROVIDER_ENV, Config, detect_write_provider, fill_in_config_defaults)
from alchemy_web3.errors import ConfigurationError
from alchemy_web3.rpc import HttpProvider, WebsocketProvider


def test_defaults():
    cfg = fill_in_config_defaults()
    assert cfg.write_provider is None
    assert cfg.middlewares == ()
    assert cfg.max_retries == DEFAULT_MAX_RETRIES == 3
    assert cfg.retry_interval == DEFAULT_RETRY_INTERVAL == 1000
    assert cfg.retry_jitter == DEFAULT_RETRY_JITTER == 250
    assert cfg.retry_interval_s == 1.0
    assert cfg.retry_jitter_s == 0.25


def test_partial_mapping_keeps_given_values(write_provider):
    async def mw(request, next_):
        return await next_(request)

    cfg = fill_in_config_defaults({"max_retries": 0, "middlewares": [mw], "write_provider": write_provider})
    assert cfg.max_retries == 0
    assert cfg.middlewares == (mw,)
    assert cfg.write_provider is write_provider
    assert cfg.retry_interval == DEFAULT_RETRY_INTERVAL


def test_config_instance_is_returned_unchanged():
    cfg = Config(max_retries=5)
    assert fill_in_config_defaults(cfg) is cfg


def test_unknown_keys_are_rejected():
    with pytest.raises(ConfigurationError, match="retryInterval"):
        fill_in_config_defaults({"retryInterval": 10})


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_retries": -1},
        {"retry_interval": -5},
        {"retry_jitter": 1.5},
        {"max_retries": True},
        {"request_timeout": 0},
        {"middlewares": ["not callable"]},
    ],
)
def test_invalid_values(kwargs):
    with pytest.raises(ConfigurationError):
        Config(**kwargs)


def test_config_is_frozen():
    cfg = Config()
    with pytest.raises(AttributeError):
        cfg.max_retries = 10  # type: ignore[misc]


def test_write_provider_from_environment(monkeypatch):
    monkeypatch.setenv(WRITE_PROVIDER_ENV, "http://127.0.0.1:8545")
    cfg = fill_in_config_defaults({})
    assert isinstance(cfg.write_provider, HttpProvider)
    assert cfg.write_provider.url == "http://127.0.0.1:8545"


def test_explicit_none_overrides_environment(monkeypatch):
    monkeypatch.setenv(WRITE_PROVIDER_ENV, "http://127.0.0.1:8545")
    assert fill_in_config_defaults({"write_provider": None}).write_provider is None


def test_detect_write_provider():
    assert detect_write_provider({}) is None
    assert isinstance(detect_write_provider({WRITE_PROVIDER_ENV: "ws://127.0.0.1:8546"}), WebsocketProvider)
    with pytest.raises(ConfigurationError, match=WRITE_PROVIDER_ENV):
        detect_write_provider({WRITE_PROVIDER_ENV: "ipc:///tmp/geth.ipc"})


def test_from_env():
    cfg = Config.from_env(environ={
        "ALCHEMY_MAX_RETRIES": "5",
        "ALCHEMY_RETRY_INTERVAL": "200",
        "ALCHEMY_RETRY_JITTER": "0",
        "ALCHEMY_REQUEST_TIMEOUT": "2.5",
    })
    assert (cfg.max_retries, cfg.retry_interval, cfg.retry_jitter, cfg.request_timeout) == (5, 200, 0, 2.5)
    assert cfg.write_provider is None


def test_from_env_rejects_garbage():
    with pytest.raises(ConfigurationError):
        Config.from_env(environ={"ALCHEMY_MAX_RETRIES": "lots"})
