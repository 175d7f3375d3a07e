"""httpx plumbing shared by the adapters."""

import logging
from typing import Any, Optional

import httpx

from govcon_ingest.errors import FetchError
from govcon_ingest.sources.throttle import RequestThrottle

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "govcon-ingest/0.1 (federal opportunity aggregator)",
    "Accept": "application/json",
}


def build_client(timeout_seconds: float, base_url: str = "") -> httpx.Client:
    """Client with the package's default headers and timeout."""
    return httpx.Client(
        base_url=base_url,
        timeout=timeout_seconds,
        follow_redirects=True,
        headers=DEFAULT_HEADERS,
    )


def request_json(
    client: httpx.Client,
    method: str,
    url: str,
    *,
    source: str,
    partition: str,
    throttle: Optional[RequestThrottle] = None,
    **kwargs: Any,
) -> Any:
    """
    Send one request and decode its JSON body.
    Every transport, HTTP status or decoding failure is raised as FetchError.
    """
    if throttle is not None:
        throttle.wait()
    try:
        response = client.request(method, url, **kwargs)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        raise FetchError(
            f"{source} returned HTTP {status} for partition {partition}",
            source=source,
            partition=partition,
        ) from e
    except httpx.HTTPError as e:
        raise FetchError(
            f"{source} request failed for partition {partition}: {e}",
            source=source,
            partition=partition,
        ) from e

    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as e:
        raise FetchError(
            f"{source} returned a non-JSON body for partition {partition}",
            source=source,
            partition=partition,
        ) from e
