"""
Version helpers for the alchemy-web3 Python client.
We keep a static __version__ (PEP 440); it is also sent to the service in the
`User-Agent` and `Alchemy-Web3-Version` headers.
"""

from __future__ import annotations

# Bump this when publishing
__version__ = "0.1.0"

USER_AGENT = f"alchemy-web3-python/{__version__}"


def default_headers() -> dict[str, str]:
    """Headers attached to every HTTP request made by this package."""
    return {
        "Content-Type": "application/json",
        "Accept": "application/json",
        "User-Agent": USER_AGENT,
        "Alchemy-Web3-Version": __version__,
    }


__all__ = ["__version__", "USER_AGENT", "default_headers"]
