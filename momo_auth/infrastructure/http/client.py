from __future__ import annotations

from typing import Optional

import httpx

USER_AGENT = "momo-auth/0.1"

_client: Optional[httpx.AsyncClient] = None


async def open_http_client(
    timeout: float = 10.0, *, connect_retries: int = 2
) -> httpx.AsyncClient:
    """
    Process-wide client for outbound gateways (SMS). Only connection
    failures are retried at this level; a request the gateway has seen is
    retried by the outbox with the same idempotency key.
    """
    global _client
    if _client is None:
        _client = httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
            transport=httpx.AsyncHTTPTransport(retries=connect_retries),
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=5),
        )
    return _client


def get_http_client() -> httpx.AsyncClient:
    if _client is None:
        raise RuntimeError("HTTP client is not open; call open_http_client() first")
    return _client


async def close_http_client() -> None:
    global _client
    client, _client = _client, None
    if client is not None:
        await client.aclose()
