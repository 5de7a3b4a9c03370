"""
Enhanced REST API calls (NFT endpoints and friends).

The REST endpoints live under the same URL as the JSON-RPC read endpoint (a
websocket URL is mapped to its https twin). Parameters travel as query string
values; the service reads multi-valued parameters from keys ending in `[]`, so
list-valued keys are renamed before the request goes out:

    fix_array_query_params({"ids": [1, 2, 3], "x": 1})
    # -> {"ids[]": [1, 2, 3], "x": 1}

Unlike JSON-RPC calls, REST calls are sent exactly once: no retry.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from ..errors import RestError
from ..version import default_headers
from .router import ProviderRouter

log = logging.getLogger(__name__)

ARRAY_KEY_SUFFIX = "[]"


def to_array_key(key: str) -> str:
    return key if key.endswith(ARRAY_KEY_SUFFIX) else f"{key}{ARRAY_KEY_SUFFIX}"


def fix_array_query_params(params: Mapping[str, Any]) -> Dict[str, Any]:
    """Rename every list/tuple-valued key to the `key[]` convention; scalars are untouched."""
    result: Dict[str, Any] = {}
    for key, value in params.items():
        fixed_key = to_array_key(key) if isinstance(value, (list, tuple)) else key
        result[fixed_key] = value
    return result


def rest_base_url(url: str) -> str:
    """
    REST base URL for a JSON-RPC endpoint URL.

    wss://eth-mainnet.ws.alchemyapi.io/v2/<key> -> https://eth-mainnet.alchemyapi.io/v2/<key>
    http(s) URLs are returned without a trailing slash.
    """
    lower = url.lower()
    if lower.startswith("wss://"):
        url = "https://" + url[len("wss://"):].replace(".ws.", ".", 1)
    elif lower.startswith("ws://"):
        url = "http://" + url[len("ws://"):].replace(".ws.", ".", 1)
    return url.rstrip("/")


class RestDispatcher:
    def __init__(
        self,
        router: ProviderRouter,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = rest_base_url(router.read_provider.url)  # type: ignore[attr-defined]
        self._client = httpx.AsyncClient(timeout=timeout, headers=default_headers(), transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    async def send_rest_payload(self, path: str, params: Mapping[str, Any]) -> Any:
        """GET `path` with `params` (array keys fixed) and return the decoded JSON body."""
        fixed = fix_array_query_params(params)
        url = f"{self.base_url}/{path.lstrip('/')}"
        log.debug("GET %s params=%s", url, list(fixed))
        try:
            r = await self._client.get(url, params={k: v for k, v in fixed.items() if v is not None})
        except httpx.HTTPError as e:
            raise RestError(status=None, body=str(e), path=path) from e

        if not r.is_success:
            try:
                body: Any = r.json()
            except ValueError:
                body = r.text
            raise RestError(status=r.status_code, body=body, path=path)
        try:
            return r.json()
        except ValueError as e:
            raise RestError(status=r.status_code, body=r.text[:256], path=path) from e
