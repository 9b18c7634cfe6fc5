"""
HTTP access for the place providers.

Providers never build their own httpx clients: every request goes through
``fetch_with_retry``, which sends the bot User-Agent, applies the configured
timeout and retries dropped connections and gateway errors (502/503/504)
with exponential backoff. Anything else non-2xx is raised straight away as
``HTTPError`` for the provider base class to report.
"""

from typing import Optional

import httpx
from loguru import logger
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pipeline.config import settings


ACCEPT = "application/json, application/sparql-results+json, text/html;q=0.9, */*;q=0.5"

# Upstream hiccups worth another attempt
GATEWAY_STATUSES = {502, 503, 504}


class HTTPError(Exception):
    """Non-2xx answer (or an undecodable body) from a provider endpoint."""

    def __init__(self, message: str, status_code: int = None, response: httpx.Response = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class GatewayError(HTTPError):
    """502/503/504 from a provider; retried before it surfaces."""
    pass


class RateLimitError(HTTPError):
    """429 from a provider. Not retried: the next scan run picks it up."""

    def __init__(self, message: str, retry_after: int | None = None, response: httpx.Response = None):
        super().__init__(message, status_code=429, response=response)
        self.retry_after = retry_after


def provider_headers(extra: Optional[dict] = None) -> dict:
    """Default request headers, overridden by ``extra``."""
    return {
        "User-Agent": settings.pipeline.user_agent,
        "Accept": ACCEPT,
        **(extra or {}),
    }


def _retry_after(response: httpx.Response) -> int | None:
    value = response.headers.get("Retry-After")
    try:
        return int(value) if value is not None else None
    except ValueError:
        # HTTP-date form, not worth parsing
        return None


def _check_status(response: httpx.Response, url: str) -> httpx.Response:
    status = response.status_code
    if status < 400:
        return response

    if status == 429:
        retry_after = _retry_after(response)
        wait = f", retry after {retry_after}s" if retry_after is not None else ""
        raise RateLimitError(f"Rate limited by {url}{wait}", retry_after=retry_after, response=response)

    error_class = GatewayError if status in GATEWAY_STATUSES else HTTPError
    raise error_class(f"HTTP {status} for {url}: {response.text[:200]}", status_code=status, response=response)


def _log_retry(retry_state) -> None:
    error = retry_state.outcome.exception()
    logger.warning(f"Attempt {retry_state.attempt_number} failed ({error}), retrying...")


@retry(
    stop=stop_after_attempt(settings.pipeline.http_max_retries),
    wait=wait_exponential(multiplier=settings.pipeline.http_retry_delay, min=1, max=30),
    retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError, GatewayError)),
    before_sleep=_log_retry,
    reraise=True,
)
def fetch_with_retry(
    url: str,
    method: str = "GET",
    headers: Optional[dict] = None,
    params: Optional[dict] = None,
    data: Optional[dict] = None,
    timeout: Optional[int] = None,
    client: Optional[httpx.Client] = None,
) -> httpx.Response:
    """
    Request a provider URL.

    Args:
        url: URL to fetch
        method: HTTP method
        headers: Headers on top of ``provider_headers()``
        params: Query parameters
        data: Form body (SPARQL endpoints take the query this way)
        timeout: Seconds, defaults to ``PIPELINE.http_timeout``
        client: Client to reuse instead of a fresh one per call

    Returns:
        The 2xx/3xx response

    Raises:
        RateLimitError: On 429
        HTTPError: On any other 4xx/5xx, after retries for gateway errors
        httpx.TransportError: When the endpoint stays unreachable
    """
    logger.debug(f"{method} {url}")
    request = {
        "method": method,
        "url": url,
        "headers": provider_headers(headers),
        "params": params,
        "data": data,
        "timeout": timeout or settings.pipeline.http_timeout,
    }

    if client is not None:
        response = client.request(**request)
    else:
        with httpx.Client(follow_redirects=True) as owned:
            response = owned.request(**request)

    return _check_status(response, url)


def fetch_json(url: str, **kwargs) -> dict | list:
    """``fetch_with_retry`` plus JSON decoding.

    Raises:
        HTTPError: Also when the body is not JSON (SPARQL endpoints answer
            overload with an HTML page and a 200)
    """
    response = fetch_with_retry(url, **kwargs)
    try:
        return response.json()
    except ValueError as e:
        raise HTTPError(
            f"Invalid JSON from {url}: {e}",
            status_code=response.status_code,
            response=response,
        ) from e
