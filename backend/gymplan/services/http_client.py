"""
Shared httpx.AsyncClient for outbound calls to Firecrawl.

Opened once by the app lifespan (or the one-off ingestion script) and reused by
every FirecrawlSource that is not handed its own client.
"""
from __future__ import annotations

import httpx

from gymplan.config import settings

_http_client: httpx.AsyncClient | None = None


def get_http_client() -> httpx.AsyncClient:
    if _http_client is None:
        raise RuntimeError("HTTP client not initialized; call init_http_client() first")
    return _http_client


def init_http_client(timeout: float | None = None) -> httpx.AsyncClient:
    """Open the shared client; page scrapes are slow, so the timeout defaults to the Firecrawl one."""
    global _http_client
    if _http_client is None:
        _http_client = httpx.AsyncClient(
            timeout=float(timeout or settings.firecrawl_timeout_seconds),
            headers={"Accept": "application/json"},
        )
    return _http_client


async def close_http_client() -> None:
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None
