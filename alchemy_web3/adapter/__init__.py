"""
The dispatch layer between the public client and the transports.

- ProviderRouter:      read vs. write provider selection (see .router)
- JsonRpcDispatcher:   middleware chain + retry (see .json_rpc)
- RestDispatcher:      enhanced REST calls (see .rest)
- SubscriptionAdapter: extra subscription types (see .subscriptions)
- make_alchemy_context wires all of them for one endpoint (see .context)
"""

from __future__ import annotations

from .context import AlchemyContext, make_alchemy_context
from .json_rpc import JsonRpcDispatcher
from .rest import RestDispatcher, fix_array_query_params
from .router import WRITE_METHODS, ProviderRouter
from .subscriptions import SubscriptionAdapter

__all__ = [
    "AlchemyContext",
    "make_alchemy_context",
    "JsonRpcDispatcher",
    "RestDispatcher",
    "fix_array_query_params",
    "ProviderRouter",
    "WRITE_METHODS",
    "SubscriptionAdapter",
]
