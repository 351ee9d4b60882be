"""HTTP request capability handed to destination actions.

Actions never build HTTP clients themselves. They receive a `request`
callable and call it once; authentication headers, timeouts and status
handling live here.

Why a small wrapper instead of passing `httpx.Client` around?
- Actions only need "send this JSON to this URL", so tests can pass a plain
  `unittest.mock.Mock` or an `httpx.MockTransport`-backed client.
- Non-2xx responses become `httpx.HTTPStatusError` in exactly one place.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from .config import (
    ALGOLIA_API_KEY,
    ALGOLIA_APP_ID,
    HTTP_TIMEOUT_SECONDS,
    ITERABLE_API_KEY,
)

logger = logging.getLogger(__name__)


class Request(Protocol):
    """What an action is allowed to do with the network."""

    def __call__(self, url: str, *, method: str = "GET", json: Any = None) -> httpx.Response:
        ...


class HttpRequest:
    """Request capability backed by an `httpx.Client`.

    Raises:
        httpx.HTTPError on connection failures, timeouts, or non-2xx status
        (after raise_for_status). Nothing is retried.
    """

    def __init__(self, client: httpx.Client):
        self.client = client

    def __call__(self, url: str, *, method: str = "GET", json: Any = None) -> httpx.Response:
        resp = self.client.request(method.upper(), url, json=json)
        logger.info("[HTTP] %s %s -> %s", method.upper(), url, resp.status_code)
        resp.raise_for_status()
        return resp

    def close(self) -> None:
        self.client.close()


def create_iterable_request(api_key: str = ITERABLE_API_KEY) -> HttpRequest:
    """Request capability that authenticates against Iterable."""
    client = httpx.Client(
        timeout=HTTP_TIMEOUT_SECONDS,
        headers={"Api-Key": api_key},
    )
    return HttpRequest(client)


def create_algolia_request(
    app_id: str = ALGOLIA_APP_ID, api_key: str = ALGOLIA_API_KEY
) -> HttpRequest:
    """Request capability that authenticates against Algolia."""
    client = httpx.Client(
        timeout=HTTP_TIMEOUT_SECONDS,
        headers={
            "X-Algolia-Application-Id": app_id,
            "X-Algolia-API-Key": api_key,
        },
    )
    return HttpRequest(client)
