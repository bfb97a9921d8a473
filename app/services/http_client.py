"""
Shared HTTP client for external APIs (Shopify Admin, Dutify).
One AsyncClient per process, created at startup and injected into handlers.
Single attempt per call with a bounded timeout: retry policy belongs to the caller.
"""
import logging
from typing import Any, Optional

import httpx
from fastapi import Request

from app.config import settings
from app.exceptions import RemoteFetchError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
BODY_PREVIEW_CHARS = 200


def create_http_client(timeout: Optional[float] = None, **kwargs: Any) -> httpx.AsyncClient:
    """Build the process-wide client. Extra kwargs (e.g. transport=) are passed to httpx."""
    return httpx.AsyncClient(
        timeout=timeout or settings.REMOTE_TIMEOUT_SECONDS or DEFAULT_TIMEOUT,
        follow_redirects=True,
        **kwargs,
    )


def get_http_client(request: Request) -> httpx.AsyncClient:
    """FastAPI dependency: the client created in main.py startup."""
    client = getattr(request.app.state, "http_client", None)
    if client is None:
        # Startup hook not run (e.g. app mounted elsewhere); create lazily once
        client = create_http_client()
        request.app.state.http_client = client
    return client


def response_body(response: httpx.Response) -> Any:
    """Upstream error body as JSON when possible, else raw text."""
    try:
        return response.json()
    except ValueError:
        return response.text


def _log_response(service: str, method: str, url: str, status: int, body_preview: str = "") -> None:
    """Log every upstream call. No credentials: tokens travel in headers only."""
    if status >= 400:
        logger.warning("%s API %s %s -> %s %s", service, method, url, status, body_preview[:BODY_PREVIEW_CHARS])
    else:
        logger.info("%s API %s %s -> %s", service, method, url, status)


async def send(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    service: str = "Shopify",
    timeout: Optional[float] = None,
    **kwargs: Any,
) -> httpx.Response:
    """
    Perform one request. Transport failures, timeouts and non-2xx responses
    raise RemoteFetchError carrying the upstream status and body.
    """
    if timeout is not None:
        kwargs["timeout"] = timeout
    try:
        response = await client.request(method, url, **kwargs)
    except httpx.TimeoutException as e:
        logger.warning("%s API %s %s timed out: %s", service, method, url, e)
        raise RemoteFetchError(f"{service} request timed out", status=None, body=str(e)) from e
    except httpx.RequestError as e:
        logger.warning("%s API %s %s failed: %s", service, method, url, e)
        raise RemoteFetchError(f"{service} request failed", status=None, body=str(e)) from e

    _log_response(service, method, url, response.status_code, response.text if response.status_code >= 400 else "")
    if response.status_code >= 400:
        raise RemoteFetchError(
            f"{service} API error: {response.status_code}",
            status=response.status_code,
            body=response_body(response),
        )
    return response
