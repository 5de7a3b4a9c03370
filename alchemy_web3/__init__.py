"""
alchemy-web3 for Python.
Convenience exports for the most common client APIs.
"""

from .version import __version__  # noqa: F401

# Core config & errors
from .config import AlchemyWeb3Config, Config, fill_in_config_defaults  # noqa: F401
from .errors import (  # noqa: F401
    AlchemyWeb3Error,
    ApplicationError,
    ConfigurationError,
    InvalidSubscriptionArgs,
    RateLimited,
    RestError,
    RpcError,
    TransportError,
)

# Client
from .client import AlchemyWeb3, create_alchemy_web3  # noqa: F401

# Transports
from .rpc import HttpProvider, Subscription, SubscriptionState, WebsocketProvider  # noqa: F401

# Types
from .types import Middleware, Provider, RpcRequest  # noqa: F401

# Utilities
from .utils.callbacks import call_when_done  # noqa: F401
from .utils.hex import decode_integer, format_block  # noqa: F401

__all__ = [
    "__version__",
    # Core
    "AlchemyWeb3Config", "Config", "fill_in_config_defaults",
    "AlchemyWeb3Error", "ApplicationError", "ConfigurationError", "InvalidSubscriptionArgs",
    "RateLimited", "RestError", "RpcError", "TransportError",
    # Client
    "AlchemyWeb3", "create_alchemy_web3",
    # Transports
    "HttpProvider", "WebsocketProvider", "Subscription", "SubscriptionState",
    # Types
    "Middleware", "Provider", "RpcRequest",
    # Utils
    "call_when_done", "decode_integer", "format_block",
]
