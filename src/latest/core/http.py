"""Shared HTTP client for registry providers."""

from __future__ import annotations

import time
from typing import Any

import httpx

from latest.core.config import DEFAULT_TIMEOUT
from latest.core.errors import (
    NetworkError,
    ProviderParseError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)
from latest.core.logging import get_logger

log = get_logger(__name__)

USER_AGENT = "latest-version-lookup/0.1"
ABSENT_STATUSES = {404, 410}


def build_client(timeout: float = DEFAULT_TIMEOUT) -> httpx.AsyncClient:
    """Create the AsyncClient shared by every network provider in one run."""
    return httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
    )


async def get_json(client: httpx.AsyncClient, url: str) -> Any | None:
    """GET a URL and decode its JSON body.

    Args:
        client: The shared AsyncClient.
        url: Fully built request URL.

    Returns:
        The decoded body, or None when the registry says the package
        does not exist (404/410).

    Raises:
        ProviderTimeoutError: The request timed out.
        NetworkError: Transport failure, rate limiting or a 5xx answer.
        ProviderUnavailableError: Any other non-success status.
        ProviderParseError: The body is not JSON.
    """
    start = time.perf_counter()
    try:
        response = await client.get(url)
    except httpx.TimeoutException as e:
        raise ProviderTimeoutError("Request timed out", context={"url": url, "error": str(e)}) from e
    except httpx.HTTPError as e:
        raise NetworkError(f"Request failed: {type(e).__name__}", context={"url": url, "error": str(e)}) from e

    duration_ms = int((time.perf_counter() - start) * 1000)
    log.debug("http_response", url=url, status_code=response.status_code, duration_ms=duration_ms)

    if response.status_code in ABSENT_STATUSES:
        return None
    if response.status_code == 429 or response.status_code >= 500:
        raise NetworkError(
            f"Registry answered {response.status_code}",
            context={"url": url, "status_code": response.status_code}
        )
    if response.is_error:
        raise ProviderUnavailableError(
            f"Registry answered {response.status_code}",
            context={"url": url, "status_code": response.status_code}
        )

    try:
        return response.json()
    except ValueError as e:
        raise ProviderParseError(
            "Registry returned invalid JSON",
            context={"url": url, "error": str(e)}
        ) from e
