"""Reusable HTTP client utilities."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

GITHUB_USER_AGENT = "github-mcp-agent"


@asynccontextmanager
async def async_http_client(
    base_url: str = "", timeout: float = 10.0
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield a configured AsyncClient and close it afterwards."""

    async with httpx.AsyncClient(
        base_url=base_url,
        timeout=timeout,
        headers={"User-Agent": GITHUB_USER_AGENT},
    ) as client:
        yield client
