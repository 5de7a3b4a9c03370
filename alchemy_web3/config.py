"""
Client configuration: write provider, JSON-RPC middlewares, retry policy and
timeouts.

- `Config` is the complete, immutable configuration one client is built with.
- `fill_in_config_defaults()` turns a partial mapping (or nothing) into a
  `Config`, filling every unset field with its default.
- The write provider defaults to the signing node named by the
  `ALCHEMY_WRITE_PROVIDER_URL` environment variable, or None.
- `Config.from_env()` reads the retry/timeout settings from ALCHEMY_* too.

Retry intervals are in milliseconds; timeouts are in seconds.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional, Sequence, Tuple, TypedDict, Union

from .errors import ConfigurationError
from .rpc import make_provider
from .types import Middleware, Provider

log = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_INTERVAL = 1000
DEFAULT_RETRY_JITTER = 250
DEFAULT_REQUEST_TIMEOUT = 30.0

WRITE_PROVIDER_ENV = "ALCHEMY_WRITE_PROVIDER_URL"


class AlchemyWeb3Config(TypedDict, total=False):
    """Partial configuration accepted by `create_alchemy_web3()`; every key is optional."""

    write_provider: Optional[Provider]
    middlewares: Sequence[Middleware]
    max_retries: int
    retry_interval: int
    retry_jitter: int
    request_timeout: float


def _env(name: str, default: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    v = (os.environ if environ is None else environ).get(name)
    return v if v is not None else default


def _non_negative_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigurationError(f"{name} must be a non-negative integer, got {value!r}")
    return value


def detect_write_provider(environ: Optional[Mapping[str, str]] = None) -> Optional[Provider]:
    """
    The write provider injected by the environment, if any.

    Set ALCHEMY_WRITE_PROVIDER_URL to the http(s) or ws(s) URL of a node or
    wallet daemon that holds the signing keys.
    """
    url = _env(WRITE_PROVIDER_ENV, environ=environ)
    if not url:
        return None
    try:
        provider = make_provider(url)
    except ValueError as e:
        raise ConfigurationError(f"{WRITE_PROVIDER_ENV}: {e}") from e
    log.info("using write provider from %s: %r", WRITE_PROVIDER_ENV, provider)
    return provider


@dataclass(frozen=True, slots=True)
class Config:
    write_provider: Optional[Provider] = None
    middlewares: Tuple[Middleware, ...] = ()
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_interval: int = DEFAULT_RETRY_INTERVAL
    retry_jitter: int = DEFAULT_RETRY_JITTER
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def __post_init__(self) -> None:
        # Freeze the middleware list: its length and order never change afterwards.
        object.__setattr__(self, "middlewares", tuple(self.middlewares))
        for mw in self.middlewares:
            if not callable(mw):
                raise ConfigurationError(f"middleware must be callable, got {mw!r}")
        _non_negative_int("max_retries", self.max_retries)
        _non_negative_int("retry_interval", self.retry_interval)
        _non_negative_int("retry_jitter", self.retry_jitter)
        if not self.request_timeout > 0:
            raise ConfigurationError(f"request_timeout must be positive, got {self.request_timeout!r}")

    @classmethod
    def from_env(cls, prefix: str = "ALCHEMY_", environ: Optional[Mapping[str, str]] = None) -> "Config":
        """
        Create config from environment variables:

        ALCHEMY_WRITE_PROVIDER_URL  (http/https/ws/wss) optional
        ALCHEMY_MAX_RETRIES         (int)
        ALCHEMY_RETRY_INTERVAL      (int milliseconds)
        ALCHEMY_RETRY_JITTER        (int milliseconds)
        ALCHEMY_REQUEST_TIMEOUT     (float seconds)
        """
        try:
            retries = int(_env(f"{prefix}MAX_RETRIES", str(DEFAULT_MAX_RETRIES), environ))
            interval = int(_env(f"{prefix}RETRY_INTERVAL", str(DEFAULT_RETRY_INTERVAL), environ))
            jitter = int(_env(f"{prefix}RETRY_JITTER", str(DEFAULT_RETRY_JITTER), environ))
            timeout = float(_env(f"{prefix}REQUEST_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT), environ))
        except ValueError as e:
            raise ConfigurationError(f"invalid {prefix}* setting: {e}") from e
        return cls(
            write_provider=detect_write_provider(environ),
            max_retries=retries,
            retry_interval=interval,
            retry_jitter=jitter,
            request_timeout=timeout,
        )

    @property
    def retry_interval_s(self) -> float:
        return self.retry_interval / 1000.0

    @property
    def retry_jitter_s(self) -> float:
        return self.retry_jitter / 1000.0


_FIELD_NAMES = frozenset(f.name for f in fields(Config))


def fill_in_config_defaults(config: Union[Config, Mapping[str, Any], None] = None) -> Config:
    """
    Build the full `Config` for a client.

    A `Config` is returned unchanged. For a mapping, missing keys take their
    defaults; a missing `write_provider` is detected from the environment while
    an explicit `write_provider=None` stays None. Unknown keys are rejected.
    """
    if isinstance(config, Config):
        return config
    data = dict(config or {})
    unknown = set(data) - _FIELD_NAMES
    if unknown:
        raise ConfigurationError(f"unknown config keys: {sorted(unknown)}")
    if "write_provider" not in data:
        data["write_provider"] = detect_write_provider()
    return Config(**data)


__all__ = [
    "AlchemyWeb3Config",
    "Config",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_RETRY_INTERVAL",
    "DEFAULT_RETRY_JITTER",
    "DEFAULT_REQUEST_TIMEOUT",
    "WRITE_PROVIDER_ENV",
    "detect_write_provider",
    "fill_in_config_defaults",
]
