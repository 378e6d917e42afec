"""Shared HTTP layer for the GitHub and npm APIs."""

import logging
import os
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

GITHUB_API = "https://api.github.com"
NPM_API = "https://api.npmjs.org"
NPM_REGISTRY = "https://registry.npmjs.org"

DEFAULT_TIMEOUT = 30.0
USER_AGENT = "badge-stats"


class StatsError(Exception):
    """Base class for errors raised while collecting stats."""


class ConfigurationError(StatsError):
    """Raised when a required identity or credential is missing."""


class NotFoundError(StatsError):
    """Raised when the remote API answers 404."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Not found: {url}")


class APIError(StatsError):
    """Raised when the remote API answers with a non-success status."""

    def __init__(self, url: str, status_code: int, message: str = ""):
        self.url = url
        self.status_code = status_code
        detail = f": {message}" if message else ""
        super().__init__(f"HTTP {status_code} from {url}{detail}")


def github_headers(token: str | None) -> dict[str, str]:
    """Return headers for GitHub API requests."""
    headers = {
        "Accept": "application/vnd.github+json",
        "User-Agent": USER_AGENT,
        "X-GitHub-Api-Version": "2022-11-28",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def npm_headers() -> dict[str, str]:
    """Return headers for npm registry requests."""
    return {"Accept": "application/json", "User-Agent": USER_AGENT}


def configure_logging() -> None:
    """Configure root logging for the command-line entry points."""
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )


def create_client(timeout: float = DEFAULT_TIMEOUT) -> httpx.AsyncClient:
    """Create the HTTP client shared by all fetchers in a run."""
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(timeout),
    )


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(data, dict):
        return str(data.get("message") or data.get("error") or "")
    return ""


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=30),
    retry=retry_if_exception_type((httpx.TransportError, httpx.TimeoutException)),
    reraise=True,
)
async def get_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
) -> Any:
    """
    GET ``url`` and decode the JSON body.

    Transport failures are retried; HTTP error statuses are not.
    A 404 raises NotFoundError, any other non-2xx raises APIError.
    """
    response = await client.get(url, headers=headers, params=params)

    if response.status_code == 404:
        raise NotFoundError(url)

    if not response.is_success:
        raise APIError(url, response.status_code, _error_message(response))

    return response.json()
