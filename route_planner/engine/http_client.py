from __future__ import annotations

import asyncio

import httpx

from .settings import settings

_client: httpx.AsyncClient | None = None
_client_lock = asyncio.Lock()


async def get_async_client() -> httpx.AsyncClient:
    """Shared client for routing backends; one connection pool per process."""
    global _client
    if _client is None:
        async with _client_lock:
            if _client is None:
                timeout = httpx.Timeout(
                    settings.ROUTING_TIMEOUT_SECONDS,
                    connect=settings.ROUTING_CONNECT_TIMEOUT_SECONDS,
                )
                _client = httpx.AsyncClient(
                    timeout=timeout,
                    headers={"Accept": "application/json"},
                )
    return _client


async def close_async_client() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


__all__ = ["close_async_client", "get_async_client"]
