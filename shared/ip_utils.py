"""
Client IP resolution for FastAPI requests.

The resolved address keys the rate limiter, so it takes an explicit
``Request`` parameter and is testable without a running server. Proxy
headers are client-controlled; they are only read when the direct peer
is one of the configured trusted proxies.
"""

from __future__ import annotations

import ipaddress
from typing import Iterable, Optional, Union

from fastapi import Request

UNKNOWN_CLIENT = "unknown"

_Network = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


def parse_trusted_proxies(entries: Iterable[str]) -> list[_Network]:
    """Parse addresses or CIDR ranges (``"10.0.0.0/8"``, ``"127.0.0.1"``)."""
    return [ipaddress.ip_network(entry.strip(), strict=False) for entry in entries if entry.strip()]


def _is_trusted(host: Optional[str], networks: list[_Network]) -> bool:
    if not host or not networks:
        return False
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False
    return any(address in network for network in networks)


def get_client_ip(request: Request, trusted_proxies: Iterable[str] = ()) -> str:
    """Extract the real client IP from a FastAPI ``Request``.

    When the direct peer is a trusted proxy, proxy headers are checked in
    priority order:

    1. ``CF-Connecting-IP`` (Cloudflare)
    2. ``X-Forwarded-For``, walked right to left past trusted hops
    3. ``X-Real-IP`` (nginx and other reverse proxies)

    Otherwise the direct connection address is used as-is.

    Args:
        request: The current FastAPI ``Request`` object.
        trusted_proxies: Proxy addresses or CIDR ranges allowed to set
            forwarding headers.

    Returns:
        The resolved client IP string, or ``"unknown"`` if none can be found.
    """
    peer: Optional[str] = request.client.host if request.client else None
    networks = parse_trusted_proxies(trusted_proxies)

    if _is_trusted(peer, networks):
        cf_ip = (request.headers.get("CF-Connecting-IP") or "").strip()
        if cf_ip:
            return cf_ip

        forwarded = request.headers.get("X-Forwarded-For") or ""
        hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
        for hop in reversed(hops):
            if not _is_trusted(hop, networks):
                return hop
        if hops:
            return hops[0]

        real_ip = (request.headers.get("X-Real-IP") or "").strip()
        if real_ip:
            return real_ip

    return peer or UNKNOWN_CLIENT
