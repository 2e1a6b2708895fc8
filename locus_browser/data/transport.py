from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from locus_browser.core.exceptions import RequestError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


async def fetch_text(
        method: str,
        url: str,
        *,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
) -> str:
    """
    Issue one HTTP request and return the response body as text.

    A shared ``client`` is used as-is; otherwise a short-lived client is
    opened for this request.

    Raises:
        RequestError: on transport failure or a non-2xx status
    """
    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=timeout or DEFAULT_TIMEOUT)

    try:
        response = await client.request(method, url, data=data, headers=headers)
    except httpx.HTTPError as e:
        logger.error("Request failed", extra={"method": method, "url": url, "error": str(e)})
        raise RequestError(f"{method} {url} failed: {e}") from e
    finally:
        if owns_client:
            await client.aclose()

    if not response.is_success:
        logger.warning(
            "Request returned error status",
            extra={"method": method, "url": url, "status_code": response.status_code},
        )
        raise RequestError(f"HTTP {response.status_code} for {url}")

    return response.text
